"""Unit tests for operation results."""

import pytest

from .lib import OperationResult, Rejection


class TestOperationResult:
    """Tests for OperationResult construction and truthiness."""

    @pytest.mark.unit
    def test_success_is_truthy(self):
        """Successful results evaluate as True."""
        result = OperationResult.success("abc")
        assert result
        assert result.instance_id == "abc"
        assert result.error is None

    @pytest.mark.unit
    def test_rejected_is_falsy(self):
        """Rejected results evaluate as False and carry the reason."""
        result = OperationResult.rejected(Rejection.UNKNOWN_SCHEMA, "no 'Foo'")
        assert not result
        assert result.error is Rejection.UNKNOWN_SCHEMA
        assert result.message == "no 'Foo'"

    @pytest.mark.unit
    def test_rejection_values(self):
        """Rejection values are stable machine-readable strings."""
        assert Rejection.CYCLIC_MOVE_REJECTED.value == "cyclic_move_rejected"
        assert Rejection.INVALID_POSITION == "invalid_position"
