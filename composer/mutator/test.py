"""Unit tests for the tree mutator."""

import pytest

from composer.dropzone import DropPosition
from composer.result import Rejection
from composer.validation import validate_store

from .lib import TreeMutator


@pytest.fixture
def mutator(store):
    return TreeMutator(store)


def _children(store, instance_id):
    return store.get_instance(instance_id).children


class TestCheckDrop:
    """Tests for drop validation."""

    @pytest.mark.unit
    def test_self_drop_rejected(self, sample_tree, mutator):
        """An instance cannot be dropped onto itself."""
        result = mutator.check_drop(sample_tree["body"], sample_tree["body"])
        assert result.error is Rejection.CYCLIC_MOVE_REJECTED
        assert not mutator.can_drop(sample_tree["body"], sample_tree["body"])

    @pytest.mark.unit
    def test_descendant_drop_rejected(self, sample_tree, mutator):
        """Dropping onto any descendant is rejected, however deep."""
        assert not mutator.can_drop(sample_tree["page"], sample_tree["body"])
        assert not mutator.can_drop(sample_tree["page"], sample_tree["d"])

    @pytest.mark.unit
    def test_sibling_and_ancestor_targets_allowed(self, sample_tree, mutator):
        """Siblings and ancestors are valid targets."""
        assert mutator.can_drop(sample_tree["b"], sample_tree["d"])
        assert mutator.can_drop(sample_tree["d"], sample_tree["page"])
        assert mutator.can_drop(sample_tree["body"], sample_tree["aside"], "inside")

    @pytest.mark.unit
    def test_unknown_ids(self, sample_tree, mutator):
        """Unknown drag or target ids are reported as such."""
        assert mutator.check_drop("ghost", sample_tree["b"]).error is (
            Rejection.UNKNOWN_INSTANCE
        )
        assert mutator.check_drop(sample_tree["b"], "ghost").error is (
            Rejection.UNKNOWN_INSTANCE
        )

    @pytest.mark.unit
    def test_inside_leaf_rejected(self, sample_tree, mutator):
        """Nesting inside a non-container is an invalid position."""
        result = mutator.check_drop(sample_tree["b"], sample_tree["c"], "inside")
        assert result.error is Rejection.INVALID_POSITION

    @pytest.mark.unit
    def test_locked_instance_cannot_be_dragged(self, sample_tree, store, mutator):
        """Locked instances are not draggable."""
        store.update_instance(sample_tree["b"], metadata={"locked": True})
        result = mutator.check_drop(sample_tree["b"], sample_tree["d"])
        assert result.error is Rejection.INSTANCE_LOCKED


class TestMove:
    """Tests for moving existing instances."""

    @pytest.mark.unit
    def test_sibling_reorder_after(self, sample_tree, store, mutator):
        """[B, C, D] + move(B, D, after) -> [C, D, B]."""
        b, c, d = sample_tree["b"], sample_tree["c"], sample_tree["d"]
        assert mutator.move(b, d, DropPosition.AFTER).ok
        assert _children(store, sample_tree["body"]) == [c, d, b]

    @pytest.mark.unit
    def test_sibling_reorder_before(self, sample_tree, store, mutator):
        """[B, C, D] + move(D, B, before) -> [D, B, C]."""
        b, c, d = sample_tree["b"], sample_tree["c"], sample_tree["d"]
        assert mutator.move(d, b, "before").ok
        assert _children(store, sample_tree["body"]) == [d, b, c]

    @pytest.mark.unit
    def test_adjacent_noop(self, sample_tree, store, mutator):
        """Dropping right where the instance already is changes nothing."""
        calls = []
        store.subscribe(calls.append)
        before = store.snapshot()

        result = mutator.move(sample_tree["c"], sample_tree["b"], "after")

        assert result.ok
        assert store.snapshot() == before
        assert calls == []

    @pytest.mark.unit
    def test_move_inside_container(self, sample_tree, store, mutator):
        """INSIDE appends to the target's children and re-parents."""
        c = sample_tree["c"]
        assert mutator.move(c, sample_tree["aside"], DropPosition.INSIDE).ok

        assert _children(store, sample_tree["aside"]) == [c]
        assert c not in _children(store, sample_tree["body"])
        assert store.get_instance(c).parent_id == sample_tree["aside"]

    @pytest.mark.unit
    def test_move_inside_own_parent_goes_last(self, sample_tree, store, mutator):
        """Dropping into the current parent re-appends at the end, once."""
        b, c, d = sample_tree["b"], sample_tree["c"], sample_tree["d"]
        assert mutator.move(b, sample_tree["body"], "inside").ok
        assert _children(store, sample_tree["body"]) == [c, d, b]

    @pytest.mark.unit
    def test_move_to_root_level(self, sample_tree, store, mutator):
        """Positioning against a root makes the instance a root."""
        c = sample_tree["c"]
        assert mutator.move(c, sample_tree["aside"], "before").ok

        assert store.root_order == [sample_tree["page"], c, sample_tree["aside"]]
        assert store.get_instance(c).parent_id is None
        assert c not in _children(store, sample_tree["body"])

    @pytest.mark.unit
    def test_move_root_into_container(self, sample_tree, store, mutator):
        """A root moved inside a container leaves the root order."""
        aside = sample_tree["aside"]
        assert mutator.move(aside, sample_tree["body"], "inside").ok
        assert store.root_order == [sample_tree["page"]]
        assert _children(store, sample_tree["body"])[-1] == aside

    @pytest.mark.unit
    def test_move_without_target_appends_root(self, sample_tree, store, mutator):
        """Dropping on the bare canvas appends to the root order."""
        header = sample_tree["header"]
        assert mutator.move(header, None, "after").ok
        assert store.root_order[-1] == header

    @pytest.mark.unit
    def test_move_across_levels(self, sample_tree, store, mutator):
        """Moving a nested child next to an ancestor's sibling."""
        d = sample_tree["d"]
        assert mutator.move(d, sample_tree["header"], "after").ok
        assert _children(store, sample_tree["page"]) == [
            sample_tree["header"],
            d,
            sample_tree["body"],
            sample_tree["footer"],
        ]
        assert store.get_instance(d).parent_id == sample_tree["page"]

    @pytest.mark.unit
    def test_cycle_rejected_unchanged(self, sample_tree, store, mutator):
        """move(A, descendant, inside) is rejected and changes nothing."""
        before = store.snapshot().model_dump_json()
        calls = []
        store.subscribe(calls.append)

        result = mutator.move(sample_tree["page"], sample_tree["body"], "inside")

        assert result.error is Rejection.CYCLIC_MOVE_REJECTED
        assert store.snapshot().model_dump_json() == before
        assert calls == []

    @pytest.mark.unit
    def test_invalid_position_string(self, sample_tree, mutator):
        """Unknown position values are rejected."""
        result = mutator.move(sample_tree["b"], sample_tree["d"], "beside")
        assert result.error is Rejection.INVALID_POSITION

    @pytest.mark.unit
    def test_dangling_parent_rejected(self, sample_tree, store, mutator):
        """A target whose parent cannot be resolved has no before/after context."""
        store._instances[sample_tree["d"]].parent_id = "ghost"
        result = mutator.move(sample_tree["header"], sample_tree["d"], "before")
        assert result.error is Rejection.INVALID_POSITION

    @pytest.mark.unit
    def test_single_notification(self, sample_tree, store, mutator):
        """A move publishes exactly one consistent snapshot."""
        snapshots = []
        store.subscribe(snapshots.append)
        mutator.move(sample_tree["b"], sample_tree["aside"], "inside")

        assert len(snapshots) == 1
        assert validate_store(snapshots[0]) == []


class TestInsertNew:
    """Tests for palette inserts."""

    @pytest.mark.unit
    def test_insert_before(self, sample_tree, store, mutator):
        """New instances land before the target."""
        result = mutator.insert_new("Divider", {}, sample_tree["c"], "before")
        assert result.ok
        assert _children(store, sample_tree["body"]) == [
            sample_tree["b"],
            result.instance_id,
            sample_tree["c"],
            sample_tree["d"],
        ]
        assert store.get_instance(result.instance_id).parent_id == sample_tree["body"]

    @pytest.mark.unit
    def test_insert_after_root(self, sample_tree, store, mutator):
        """After a root target inserts into the root order."""
        result = mutator.insert_new("Container", None, sample_tree["page"], "after")
        assert store.root_order == [
            sample_tree["page"],
            result.instance_id,
            sample_tree["aside"],
        ]

    @pytest.mark.unit
    def test_insert_inside(self, sample_tree, store, mutator):
        """INSIDE appends to the container with schema defaults applied."""
        result = mutator.insert_new("Card", {"title": "X"}, sample_tree["aside"])
        assert _children(store, sample_tree["aside"]) == [result.instance_id]
        assert store.get_instance(result.instance_id).props == {
            "elevation": 1,
            "title": "X",
        }

    @pytest.mark.unit
    def test_insert_on_canvas(self, sample_tree, store, mutator):
        """No target falls back to appending at root level."""
        result = mutator.insert_new("Stack", target_id=None, position="before")
        assert store.root_order[-1] == result.instance_id

    @pytest.mark.unit
    def test_unknown_schema(self, sample_tree, store, mutator):
        """Unknown schemas are rejected before anything is created."""
        count = len(store)
        result = mutator.insert_new("Nope", {}, sample_tree["body"], "inside")
        assert result.error is Rejection.UNKNOWN_SCHEMA
        assert len(store) == count

    @pytest.mark.unit
    def test_inside_leaf_rejected(self, sample_tree, store, mutator):
        """A leaf target cannot take a new child."""
        count = len(store)
        result = mutator.insert_new("Button", {}, sample_tree["c"], "inside")
        assert result.error is Rejection.INVALID_POSITION
        assert len(store) == count

    @pytest.mark.unit
    def test_invalid_metadata_rejected(self, sample_tree, store, mutator):
        """Bad metadata from the palette is reported, nothing is inserted."""
        before = store.snapshot()
        calls = []
        store.subscribe(calls.append)
        result = mutator.insert_new(
            "Card", None, sample_tree["body"], "inside", metadata={"locked": [1]}
        )

        assert result.error is Rejection.INVALID_METADATA
        assert store.snapshot() == before
        assert calls == []

    @pytest.mark.unit
    def test_unknown_target(self, store, mutator):
        """Unknown targets are rejected."""
        result = mutator.insert_new("Button", {}, "ghost", "after")
        assert result.error is Rejection.UNKNOWN_INSTANCE
        assert len(store) == 0

    @pytest.mark.unit
    def test_single_notification(self, sample_tree, store, mutator):
        """Create and splice publish one snapshot with the final order."""
        snapshots = []
        store.subscribe(snapshots.append)
        result = mutator.insert_new("Chip", {}, sample_tree["b"], "before")

        assert len(snapshots) == 1
        body = snapshots[0].get(sample_tree["body"])
        assert body.children[0] == result.instance_id


class TestDuplicate:
    """Tests for subtree duplication."""

    @pytest.mark.unit
    def test_duplicate_subtree(self, sample_tree, store, mutator):
        """The copy mirrors the source subtree with fresh ids."""
        store.update_instance(sample_tree["b"], props={"title": "Hero"})
        result = mutator.duplicate(sample_tree["body"])
        assert result.ok

        page_children = _children(store, sample_tree["page"])
        assert page_children[-1] == result.instance_id
        copies = store.get_children(result.instance_id)
        assert [c.schema_id for c in copies] == ["Card", "Button", "Typography"]
        assert copies[0].props["title"] == "Hero"
        assert not {c.id for c in copies} & {
            sample_tree["b"],
            sample_tree["c"],
            sample_tree["d"],
        }
        assert validate_store(store.snapshot()) == []

    @pytest.mark.unit
    def test_duplicate_keeps_metadata(self, store, mutator):
        """Editor metadata is carried over."""
        source = store.create_instance(
            "Card", metadata={"name": "Hero", "locked": True}
        ).instance_id
        copy_id = mutator.duplicate(source).instance_id
        meta = store.get_instance(copy_id).metadata
        assert (meta.name, meta.locked) == ("Hero", True)
        assert store.root_order == [source, copy_id]

    @pytest.mark.unit
    def test_duplicate_unknown(self, mutator):
        """Unknown ids are rejected."""
        assert mutator.duplicate("ghost").error is Rejection.UNKNOWN_INSTANCE

    @pytest.mark.unit
    def test_duplicate_unregistered_schema_rolls_back(
        self, sample_tree, store, registry, mutator
    ):
        """If any node cannot be recreated the whole copy is abandoned."""
        before = store.snapshot()
        registry.unregister("Typography")
        result = mutator.duplicate(sample_tree["body"])

        assert result.error is Rejection.UNKNOWN_SCHEMA
        assert store.snapshot() == before
