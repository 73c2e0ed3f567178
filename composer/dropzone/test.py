"""Unit tests for drop-zone classification."""

import pytest

from .lib import DropPosition, Point, Rect, classify, is_in_center, resolve_drop

BEFORE = DropPosition.BEFORE
AFTER = DropPosition.AFTER
INSIDE = DropPosition.INSIDE

SQUARE = Rect(top=0, left=0, width=200, height=200)


class TestContainerWithChildren:
    """Border band reorders, centre nests."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("x", "y", "expected"),
        [
            (100, 15, BEFORE),  # top band
            (100, 100, INSIDE),  # centre
            (100, 190, AFTER),  # bottom band
            (10, 60, BEFORE),  # left band, upper half
            (195, 150, AFTER),  # right band, lower half
            (100, 30, BEFORE),  # exactly on the threshold is still edge
            (100, 31, INSIDE),
            (100, 170, AFTER),  # exactly height - threshold
            (30, 100, AFTER),  # exactly on the left threshold, at midpoint
        ],
    )
    def test_zones(self, x, y, expected):
        """Literal zone boundaries on a 200x200 container."""
        assert classify(Point(x=x, y=y), SQUARE, True, True) is expected

    @pytest.mark.unit
    def test_offset_rect(self):
        """Coordinates are taken relative to the rect origin."""
        rect = Rect(top=500, left=300, width=200, height=200)
        assert classify(Point(x=400, y=515), rect, True, True) is BEFORE
        assert classify(Point(x=400, y=600), rect, True, True) is INSIDE
        assert classify(Point(x=400, y=690), rect, True, True) is AFTER

    @pytest.mark.unit
    def test_small_container_has_no_centre(self):
        """A container thinner than two bands never nests."""
        rect = Rect(top=0, left=0, width=200, height=50)
        assert classify(Point(x=100, y=25), rect, True, True) is AFTER
        assert classify(Point(x=100, y=10), rect, True, True) is BEFORE

    @pytest.mark.unit
    def test_custom_threshold(self):
        """A smaller threshold widens the nesting area."""
        assert classify(Point(x=100, y=15), SQUARE, True, True, edge_threshold=10) is INSIDE


class TestEmptyContainer:
    """Empty containers nest everywhere."""

    @pytest.mark.unit
    @pytest.mark.parametrize(("x", "y"), [(1, 1), (100, 100), (199, 199), (100, 5)])
    def test_always_inside(self, x, y):
        assert classify(Point(x=x, y=y), SQUARE, True, False) is INSIDE


class TestLeaf:
    """Leaves split at the vertical midpoint."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("y", "expected"),
        [(0, BEFORE), (99.9, BEFORE), (100, AFTER), (200, AFTER)],
    )
    def test_midpoint(self, y, expected):
        assert classify(Point(x=100, y=y), SQUARE, False, False) is expected

    @pytest.mark.unit
    def test_centre_is_not_inside(self):
        """has_children is irrelevant for leaves."""
        assert classify(Point(x=100, y=100), SQUARE, False, True) is AFTER


class TestHelpers:
    """Tests for rect helpers and resolve_drop."""

    @pytest.mark.unit
    def test_contains_edges(self):
        """Edges count as inside the rect."""
        rect = Rect(top=10, left=10, width=20, height=20)
        assert rect.contains(Point(x=10, y=10))
        assert rect.contains(Point(x=30, y=30))
        assert not rect.contains(Point(x=31, y=20))

    @pytest.mark.unit
    def test_is_in_center(self):
        """Centre test is strict on both axes."""
        assert is_in_center(Point(x=100, y=100), SQUARE)
        assert not is_in_center(Point(x=100, y=30), SQUARE)

    @pytest.mark.unit
    def test_resolve_outside_is_cancelled(self):
        """A pointer outside the target cancels the drop."""
        assert resolve_drop(Point(x=250, y=100), SQUARE, True, False) is None

    @pytest.mark.unit
    def test_resolve_inside_classifies(self):
        """A pointer over the target is classified as usual."""
        assert resolve_drop(Point(x=100, y=15), SQUARE, True, True) is BEFORE

    @pytest.mark.unit
    def test_negative_size_rejected(self):
        """Rect dimensions cannot be negative."""
        with pytest.raises(ValueError):
            Rect(width=-1, height=10)
