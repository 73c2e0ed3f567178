"""Unit tests for the instance store."""

import pytest

from composer.result import Rejection

from .lib import InstanceStore
from .models import ComponentInstance, TreeSnapshot


class TestCreateInstance:
    """Tests for create_instance."""

    @pytest.mark.unit
    def test_defaults_merged_with_props(self, store):
        """Supplied props override schema defaults."""
        result = store.create_instance("Card", {"title": "X"})
        assert result.ok
        assert store.get_instance(result.instance_id).props == {
            "elevation": 1,
            "title": "X",
        }

    @pytest.mark.unit
    def test_root_insertion(self, store):
        """Root instances are appended to the root order with no ancestors."""
        first = store.create_instance("Container").instance_id
        second = store.create_instance("Container", {}).instance_id

        assert store.root_order == [first, second]
        assert store.get_ancestors(second) == []
        assert store.get_instance(second).parent_id is None

    @pytest.mark.unit
    def test_child_appended_to_parent(self, store):
        """Children are appended at the end of the parent's list."""
        page = store.create_instance("Container").instance_id
        a = store.create_instance("Button", parent_id=page).instance_id
        b = store.create_instance("Button", parent_id=page).instance_id

        assert store.get_instance(page).children == [a, b]
        assert store.get_instance(b).parent_id == page
        assert store.root_order == [page]

    @pytest.mark.unit
    def test_unknown_schema_rejected(self, store):
        """Unknown schemas are rejected without mutation."""
        before = store.snapshot()
        result = store.create_instance("Nope")

        assert not result.ok
        assert result.error is Rejection.UNKNOWN_SCHEMA
        assert store.snapshot() == before

    @pytest.mark.unit
    def test_unknown_parent_rejected(self, store):
        """Unknown parents are rejected without mutation."""
        result = store.create_instance("Button", parent_id="ghost")
        assert result.error is Rejection.UNKNOWN_INSTANCE
        assert len(store) == 0

    @pytest.mark.unit
    def test_leaf_parent_rejected(self, store):
        """A non-container cannot receive children."""
        button = store.create_instance("Button").instance_id
        result = store.create_instance("Typography", parent_id=button)

        assert result.error is Rejection.INVALID_POSITION
        assert store.get_instance(button).children == []
        assert len(store) == 1

    @pytest.mark.unit
    def test_metadata_applied(self, store):
        """Initial metadata fields are stored."""
        result = store.create_instance("Card", metadata={"locked": True, "name": "Hero"})
        meta = store.get_instance(result.instance_id).metadata
        assert meta.locked is True
        assert meta.name == "Hero"
        assert meta.updated_at >= meta.created_at

    @pytest.mark.unit
    def test_invalid_metadata_rejected(self, store):
        """Metadata that does not validate is a rejection, not an exception."""
        calls = []
        store.subscribe(calls.append)
        result = store.create_instance("Container", metadata={"locked": "maybe"})

        assert result.error is Rejection.INVALID_METADATA
        assert "locked" in result.message
        assert len(store) == 0
        assert calls == []

    @pytest.mark.unit
    def test_id_collisions_are_skipped(self, registry):
        """The store never reuses an existing id."""
        ids = iter(["same", "same", "other"])
        store = InstanceStore(registry, id_factory=lambda: next(ids))
        first = store.create_instance("Button").instance_id
        second = store.create_instance("Button").instance_id
        assert (first, second) == ("same", "other")


class TestUpdateInstance:
    """Tests for update_instance."""

    @pytest.mark.unit
    def test_props_shallow_merged(self, store):
        """Only supplied keys change."""
        card = store.create_instance("Card").instance_id
        store.update_instance(card, props={"title": "New"})
        assert store.get_instance(card).props == {"elevation": 1, "title": "New"}

    @pytest.mark.unit
    def test_metadata_shallow_merged(self, store):
        """Metadata keeps fields not mentioned in the update."""
        card = store.create_instance("Card", metadata={"name": "Hero"}).instance_id
        before = store.get_instance(card).metadata.updated_at
        store.update_instance(card, metadata={"locked": True})

        meta = store.get_instance(card).metadata
        assert meta.name == "Hero"
        assert meta.locked is True
        assert meta.updated_at >= before

    @pytest.mark.unit
    def test_children_replaced_wholesale(self, sample_tree, store):
        """children replaces the stored list."""
        body = sample_tree["body"]
        reordered = [sample_tree["d"], sample_tree["b"], sample_tree["c"]]
        assert store.update_instance(body, children=reordered).ok
        assert store.get_instance(body).children == reordered

    @pytest.mark.unit
    def test_unknown_instance(self, store):
        """Updating a missing instance is rejected."""
        assert store.update_instance("ghost", props={"a": 1}).error is (
            Rejection.UNKNOWN_INSTANCE
        )

    @pytest.mark.unit
    def test_unknown_child_ids_rejected(self, sample_tree, store):
        """children must reference existing instances."""
        before = store.snapshot()
        result = store.update_instance(sample_tree["body"], children=["ghost"])
        assert result.error is Rejection.UNKNOWN_INSTANCE
        assert store.snapshot() == before

    @pytest.mark.unit
    def test_self_parent_rejected(self, store):
        """An instance cannot be its own parent."""
        page = store.create_instance("Container").instance_id
        result = store.update_instance(page, parent_id=page)
        assert result.error is Rejection.CYCLIC_MOVE_REJECTED

    @pytest.mark.unit
    def test_invalid_metadata_leaves_instance(self, sample_tree, store):
        """A rejected metadata merge keeps props and metadata untouched."""
        before = store.snapshot()
        result = store.update_instance(
            sample_tree["b"], props={"title": "B"}, metadata={"locked": [1]}
        )
        assert result.error is Rejection.INVALID_METADATA
        assert store.snapshot() == before

    @pytest.mark.unit
    def test_parent_below_self_rejected(self, sample_tree, store):
        """Parenting an instance under its own descendant is refused."""
        before = store.snapshot()
        result = store.update_instance(sample_tree["page"], parent_id=sample_tree["c"])
        assert result.error is Rejection.CYCLIC_MOVE_REJECTED
        assert store.snapshot() == before

    @pytest.mark.unit
    def test_ancestor_as_child_rejected(self, sample_tree, store):
        """A children list naming an ancestor is refused."""
        body = sample_tree["body"]
        result = store.update_instance(body, children=[sample_tree["b"], sample_tree["page"]])
        assert result.error is Rejection.CYCLIC_MOVE_REJECTED
        assert store.get_instance(body).children == [
            sample_tree["b"],
            sample_tree["c"],
            sample_tree["d"],
        ]

    @pytest.mark.unit
    def test_parent_can_be_cleared(self, sample_tree, store):
        """parent_id=None is an explicit value, not 'unchanged'."""
        store.update_instance(sample_tree["header"], parent_id=None)
        assert store.get_instance(sample_tree["header"]).parent_id is None

    @pytest.mark.unit
    def test_bulk_update_notifies_once(self, sample_tree, store):
        """update_instances batches notifications."""
        calls = []
        store.subscribe(calls.append)
        results = store.update_instances(
            [
                (sample_tree["b"], {"props": {"title": "B"}}),
                (sample_tree["c"], {"props": {"label": "Go"}}),
                ("ghost", {"props": {}}),
            ]
        )
        assert [r.ok for r in results] == [True, True, False]
        assert len(calls) == 1


class TestDeleteInstance:
    """Tests for delete_instance."""

    @pytest.mark.unit
    def test_subtree_removed(self, sample_tree, store):
        """Deleting removes the instance and every descendant."""
        store.delete_instance(sample_tree["body"])

        for name in ("body", "b", "c", "d"):
            assert store.get_instance(sample_tree[name]) is None
        assert store.get_instance(sample_tree["page"]).children == [
            sample_tree["header"],
            sample_tree["footer"],
        ]

    @pytest.mark.unit
    def test_root_deletion_compacts_root_order(self, sample_tree, store):
        """Deleting a root removes it from the root order."""
        store.delete_instance(sample_tree["page"])
        assert store.root_order == [sample_tree["aside"]]
        assert len(store) == 1

    @pytest.mark.unit
    def test_unknown_instance(self, store):
        """Deleting a missing instance is a rejected no-op."""
        result = store.delete_instance("ghost")
        assert result.error is Rejection.UNKNOWN_INSTANCE

    @pytest.mark.unit
    def test_delete_many(self, sample_tree, store):
        """Ids swallowed by an earlier subtree report UNKNOWN_INSTANCE."""
        results = store.delete_instances([sample_tree["body"], sample_tree["b"]])
        assert [r.ok for r in results] == [True, False]

    @pytest.mark.unit
    def test_clear(self, sample_tree, store):
        """clear() empties the store."""
        store.clear()
        assert len(store) == 0
        assert store.root_order == []


class TestQueries:
    """Tests for read accessors."""

    @pytest.mark.unit
    def test_get_children_resolves_in_order(self, sample_tree, store):
        """get_children returns instances in children order."""
        children = store.get_children(sample_tree["body"])
        assert [c.id for c in children] == [
            sample_tree["b"],
            sample_tree["c"],
            sample_tree["d"],
        ]

    @pytest.mark.unit
    def test_get_children_skips_dangling(self, sample_tree, store):
        """Dangling ids are filtered out."""
        store._instances[sample_tree["body"]].children.append("ghost")
        assert len(store.get_children(sample_tree["body"])) == 3

    @pytest.mark.unit
    def test_get_ancestors_nearest_first(self, sample_tree, store):
        """Ancestors run from the immediate parent to the root."""
        ancestors = store.get_ancestors(sample_tree["c"])
        assert [a.id for a in ancestors] == [sample_tree["body"], sample_tree["page"]]

    @pytest.mark.unit
    def test_descendants_document_order(self, sample_tree, store):
        """Descendants are listed depth-first."""
        assert store.get_descendants(sample_tree["page"]) == [
            sample_tree[n] for n in ("header", "body", "b", "c", "d", "footer")
        ]

    @pytest.mark.unit
    def test_is_descendant(self, sample_tree, store):
        """is_descendant follows parent links."""
        assert store.is_descendant(sample_tree["page"], sample_tree["d"])
        assert not store.is_descendant(sample_tree["d"], sample_tree["page"])
        assert not store.is_descendant(sample_tree["aside"], sample_tree["d"])

    @pytest.mark.unit
    def test_index_of(self, sample_tree, store):
        """index_of reports the position within the owning list."""
        assert store.index_of(sample_tree["c"]) == 1
        assert store.index_of(sample_tree["aside"]) == 1
        assert store.index_of("ghost") is None

    @pytest.mark.unit
    def test_returned_instances_are_copies(self, sample_tree, store):
        """Mutating a returned instance leaves the store untouched."""
        copy_ = store.get_instance(sample_tree["body"])
        copy_.children.clear()
        assert len(store.get_instance(sample_tree["body"]).children) == 3

    @pytest.mark.unit
    def test_id_is_frozen(self, sample_tree, store):
        """The id field cannot be reassigned."""
        instance = store.get_instance(sample_tree["b"])
        with pytest.raises(Exception):
            instance.id = "other"


class TestSubscription:
    """Tests for change notification."""

    @pytest.mark.unit
    def test_listener_receives_snapshot(self, store):
        """Every mutation publishes a snapshot."""
        snapshots: list[TreeSnapshot] = []
        store.subscribe(snapshots.append)
        page = store.create_instance("Container").instance_id

        assert len(snapshots) == 1
        assert snapshots[0].root_order == [page]
        assert isinstance(snapshots[0].get(page), ComponentInstance)

    @pytest.mark.unit
    def test_unsubscribe(self, store):
        """Unsubscribed listeners are no longer called."""
        calls = []
        unsubscribe = store.subscribe(calls.append)
        unsubscribe()
        unsubscribe()
        store.create_instance("Container")
        assert calls == []

    @pytest.mark.unit
    def test_rejections_do_not_notify(self, store):
        """Rejected operations publish nothing."""
        calls = []
        store.subscribe(calls.append)
        store.create_instance("Nope")
        store.delete_instance("ghost")
        assert calls == []

    @pytest.mark.unit
    def test_failing_listener_is_isolated(self, store):
        """A raising listener neither breaks the store nor other listeners."""
        calls = []

        def broken(_snapshot):
            raise RuntimeError("boom")

        store.subscribe(broken)
        store.subscribe(calls.append)
        assert store.create_instance("Container").ok
        assert len(calls) == 1

    @pytest.mark.unit
    def test_batch_notifies_once(self, store):
        """Nested batches publish a single snapshot at the end."""
        calls = []
        store.subscribe(calls.append)
        with store.batch():
            page = store.create_instance("Container").instance_id
            with store.batch():
                store.create_instance("Button", parent_id=page)
            assert calls == []
        assert len(calls) == 1
        assert len(calls[0]) == 2

    @pytest.mark.unit
    def test_batch_rolls_back_on_error(self, sample_tree, store):
        """A failing batch restores the previous state silently."""
        before = store.snapshot()
        calls = []
        store.subscribe(calls.append)

        with pytest.raises(RuntimeError):
            with store.batch():
                store.delete_instance(sample_tree["body"])
                raise RuntimeError("abort")

        assert store.snapshot() == before
        assert calls == []

    @pytest.mark.unit
    def test_batch_rollback_covers_every_edit_kind(self, sample_tree, store):
        """Creates, updates, reorders and deletes all unwind together."""
        before = store.snapshot()

        with pytest.raises(RuntimeError):
            with store.batch():
                extra = store.create_instance("Card", parent_id=sample_tree["body"])
                store.update_instance(extra.instance_id, props={"title": "New"})
                store.update_instance(sample_tree["header"], props={"text": "Changed"})
                store.set_root_order([sample_tree["aside"], sample_tree["page"]])
                store.delete_instance(sample_tree["aside"])
                store.clear()
                raise RuntimeError("abort")

        assert store.snapshot() == before
        assert store.create_instance("Button", parent_id=sample_tree["page"]).ok

    @pytest.mark.unit
    def test_batch_copies_only_touched_instances(self, sample_tree, store):
        """Rollback state covers the edited instances, not the whole arena."""
        with store.batch():
            new_id = store.create_instance("Chip", parent_id=sample_tree["body"]).instance_id
            store.update_instance(sample_tree["b"], props={"title": "B"})
            assert set(store._journal) == {new_id, sample_tree["body"], sample_tree["b"]}
            assert store._saved_roots is None
        assert store._journal == {}


class TestSnapshot:
    """Tests for TreeSnapshot helpers."""

    @pytest.mark.unit
    def test_walk_document_order(self, sample_tree, store):
        """walk yields instances depth-first with depths."""
        walked = [(i.id, depth) for i, depth in store.snapshot().walk()]
        assert walked[:3] == [
            (sample_tree["page"], 0),
            (sample_tree["header"], 1),
            (sample_tree["body"], 1),
        ]
        assert walked[-1] == (sample_tree["aside"], 0)
        assert len(walked) == len(store)

    @pytest.mark.unit
    def test_to_nested(self, sample_tree, store):
        """to_nested mirrors the tree shape."""
        nested = store.snapshot().to_nested()
        assert [n["id"] for n in nested] == [sample_tree["page"], sample_tree["aside"]]
        body = nested[0]["children"][1]
        assert [c["schema_id"] for c in body["children"]] == [
            "Card",
            "Button",
            "Typography",
        ]

    @pytest.mark.unit
    def test_snapshot_is_detached(self, sample_tree, store):
        """Later mutations do not leak into an earlier snapshot."""
        snapshot = store.snapshot()
        store.delete_instance(sample_tree["body"])
        assert sample_tree["body"] in snapshot.instances
