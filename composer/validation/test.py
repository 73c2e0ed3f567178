"""Unit tests for tree validation."""

import pytest

from composer.instance import ComponentInstance, TreeSnapshot

from .lib import is_consistent, validate_store


def _snapshot(*instances: ComponentInstance, roots: list[str]) -> TreeSnapshot:
    return TreeSnapshot(instances={i.id: i for i in instances}, root_order=roots)


def _types(errors) -> set[str]:
    return {e.error_type for e in errors}


class TestValidTrees:
    """Trees built through the store validate cleanly."""

    @pytest.mark.unit
    def test_empty(self):
        assert is_consistent(TreeSnapshot())

    @pytest.mark.unit
    def test_sample_tree(self, sample_tree, store):
        """The fixture tree satisfies every invariant."""
        assert validate_store(store) == []
        assert is_consistent(store.snapshot())


class TestViolations:
    """Hand-built broken trees report the right error types."""

    @pytest.mark.unit
    def test_missing_parent(self):
        snapshot = _snapshot(
            ComponentInstance(id="a", schema_id="Card", parent_id="ghost"), roots=[]
        )
        assert "missing_parent" in _types(validate_store(snapshot))

    @pytest.mark.unit
    def test_parent_does_not_list_child(self):
        snapshot = _snapshot(
            ComponentInstance(id="p", schema_id="Stack"),
            ComponentInstance(id="a", schema_id="Card", parent_id="p"),
            roots=["p"],
        )
        assert _types(validate_store(snapshot)) == {"parent_mismatch"}

    @pytest.mark.unit
    def test_duplicate_child(self):
        snapshot = _snapshot(
            ComponentInstance(id="p", schema_id="Stack", children=["a", "a"]),
            ComponentInstance(id="a", schema_id="Card", parent_id="p"),
            roots=["p"],
        )
        assert "duplicate_child" in _types(validate_store(snapshot))

    @pytest.mark.unit
    def test_missing_child(self):
        snapshot = _snapshot(
            ComponentInstance(id="p", schema_id="Stack", children=["ghost"]),
            roots=["p"],
        )
        assert _types(validate_store(snapshot)) == {"missing_child"}

    @pytest.mark.unit
    def test_child_points_elsewhere(self):
        snapshot = _snapshot(
            ComponentInstance(id="p", schema_id="Stack", children=["a"]),
            ComponentInstance(id="a", schema_id="Card"),
            roots=["p", "a"],
        )
        assert "parent_mismatch" in _types(validate_store(snapshot))

    @pytest.mark.unit
    def test_root_order_problems(self):
        """Missing, duplicated and parented roots are all reported."""
        snapshot = _snapshot(
            ComponentInstance(id="p", schema_id="Stack", children=["a"]),
            ComponentInstance(id="a", schema_id="Card", parent_id="p"),
            ComponentInstance(id="lost", schema_id="Card"),
            roots=["p", "p", "a", "ghost"],
        )
        errors = [e for e in validate_store(snapshot) if e.error_type == "root_order"]
        assert {e.instance_id for e in errors} == {"p", "a", "ghost", "lost"}

    @pytest.mark.unit
    def test_cycle(self):
        snapshot = _snapshot(
            ComponentInstance(id="a", schema_id="Stack", parent_id="b", children=["b"]),
            ComponentInstance(id="b", schema_id="Stack", parent_id="a", children=["a"]),
            roots=[],
        )
        errors = [e for e in validate_store(snapshot) if e.error_type == "cycle"]
        assert {e.instance_id for e in errors} == {"a", "b"}
        assert not is_consistent(snapshot)
