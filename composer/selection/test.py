"""Unit tests for selection state."""

import pytest

from composer.result import Rejection

from .lib import SelectionController


@pytest.fixture
def selection(store):
    return SelectionController(store)


class TestSelect:
    """Tests for select_instance."""

    @pytest.mark.unit
    def test_select_and_clear(self, sample_tree, selection):
        assert selection.select_instance(sample_tree["b"]).ok
        assert selection.selected_id == sample_tree["b"]
        assert selection.selected_instance.schema_id == "Card"

        selection.select_instance(None)
        assert selection.selected_id is None
        assert selection.selected_instance is None

    @pytest.mark.unit
    def test_unknown_rejected(self, sample_tree, selection):
        """Unknown ids leave the selection untouched."""
        selection.select_instance(sample_tree["b"])
        result = selection.select_instance("ghost")
        assert result.error is Rejection.UNKNOWN_INSTANCE
        assert selection.selected_id == sample_tree["b"]

    @pytest.mark.unit
    def test_locked_rejects_pointer(self, sample_tree, store, selection):
        """Locked instances refuse pointer selection only."""
        store.update_instance(sample_tree["c"], metadata={"locked": True})

        result = selection.select_instance(sample_tree["c"], from_pointer=True)
        assert result.error is Rejection.INSTANCE_LOCKED
        assert selection.selected_id is None

        assert selection.select_instance(sample_tree["c"]).ok
        assert selection.selected_id == sample_tree["c"]

    @pytest.mark.unit
    def test_locked_pointer_rule_can_be_disabled(self, sample_tree, store):
        """With the rule off, pointer selection of locked instances works."""
        selection = SelectionController(store, locked_blocks_pointer=False)
        store.update_instance(sample_tree["c"], metadata={"locked": True})
        assert selection.select_instance(sample_tree["c"], from_pointer=True).ok


class TestHover:
    """Tests for hover_instance."""

    @pytest.mark.unit
    def test_hover(self, sample_tree, selection):
        assert selection.hover_instance(sample_tree["d"]).ok
        assert selection.hovered_id == sample_tree["d"]
        selection.hover_instance(None)
        assert selection.hovered_id is None

    @pytest.mark.unit
    def test_hover_unknown(self, selection):
        assert selection.hover_instance("ghost").error is Rejection.UNKNOWN_INSTANCE


class TestDeletionReset:
    """Selection follows deletions."""

    @pytest.mark.unit
    def test_reset_when_selected_deleted(self, sample_tree, store, selection):
        """Deleting an ancestor of the selection clears it."""
        selection.select_instance(sample_tree["c"])
        selection.hover_instance(sample_tree["d"])
        store.delete_instance(sample_tree["body"])

        assert selection.selected_id is None
        assert selection.hovered_id is None

    @pytest.mark.unit
    def test_kept_when_other_deleted(self, sample_tree, store, selection):
        selection.select_instance(sample_tree["header"])
        store.delete_instance(sample_tree["body"])
        assert selection.selected_id == sample_tree["header"]

    @pytest.mark.unit
    def test_close_stops_tracking(self, sample_tree, store, selection):
        selection.select_instance(sample_tree["c"])
        selection.close()
        store.delete_instance(sample_tree["c"])
        assert selection.selected_id == sample_tree["c"]


class TestNavigation:
    """Tests for parent/child navigation."""

    @pytest.mark.unit
    def test_select_parent(self, sample_tree, selection):
        selection.select_instance(sample_tree["c"])
        selection.select_parent()
        assert selection.selected_id == sample_tree["body"]
        selection.select_parent()
        selection.select_parent()
        assert selection.selected_id == sample_tree["page"]

    @pytest.mark.unit
    def test_select_child(self, sample_tree, selection):
        selection.select_instance(sample_tree["body"])
        selection.select_child(2)
        assert selection.selected_id == sample_tree["d"]
        selection.select_child()
        assert selection.selected_id == sample_tree["d"]

    @pytest.mark.unit
    def test_navigation_without_selection(self, selection):
        assert selection.select_parent().ok
        assert selection.select_child().ok
        assert selection.selected_id is None


class TestBreadcrumb:
    """Tests for the breadcrumb path."""

    @pytest.mark.unit
    def test_root_first(self, sample_tree, store, selection):
        """Breadcrumb runs from the outermost root down to the parent."""
        store.update_instance(sample_tree["page"], metadata={"name": "Landing"})
        selection.select_instance(sample_tree["c"])

        crumbs = selection.breadcrumb()
        assert [c.instance_id for c in crumbs] == [sample_tree["page"], sample_tree["body"]]
        assert [c.label for c in crumbs] == ["Landing", "Stack"]

    @pytest.mark.unit
    def test_empty_for_root(self, sample_tree, selection):
        """A selected root has no breadcrumb at all."""
        selection.select_instance(sample_tree["aside"])
        assert selection.breadcrumb() == []

    @pytest.mark.unit
    def test_empty_without_selection(self, selection):
        assert selection.breadcrumb() == []

    @pytest.mark.unit
    def test_get_ancestors_delegates(self, sample_tree, selection):
        ancestors = selection.get_ancestors(sample_tree["d"])
        assert [a.id for a in ancestors] == [sample_tree["body"], sample_tree["page"]]
