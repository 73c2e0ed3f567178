"""Unit tests for the workspace facade."""

import itertools

import pytest
from pydantic import ValidationError

from composer.dropzone import DropPosition, Point, Rect
from composer.result import Rejection

from .lib import (
    InstanceDrag,
    PaletteDrag,
    Workspace,
    close_workspace,
    get_workspace,
    parse_drag_payload,
)

BOX = Rect(top=0, left=0, width=200, height=200)
TOP_EDGE = Point(x=100, y=15)
CENTRE = Point(x=100, y=100)
BOTTOM_EDGE = Point(x=100, y=190)


@pytest.fixture
def ws(registry):
    counter = itertools.count(1)
    workspace = Workspace(registry, edge_threshold=30, id_factory=lambda: f"w{next(counter)}")
    yield workspace
    workspace.close()


@pytest.fixture
def page(ws):
    """A page container holding a stack with two buttons."""
    page_id = ws.create_instance("Container").instance_id
    stack_id = ws.create_instance("Stack", parent_id=page_id).instance_id
    first = ws.create_instance("Button", parent_id=stack_id).instance_id
    second = ws.create_instance("Button", parent_id=stack_id).instance_id
    return {"page": page_id, "stack": stack_id, "first": first, "second": second}


class TestPayloads:
    """Tests for drag payload parsing."""

    @pytest.mark.unit
    def test_parse_instance(self):
        payload = parse_drag_payload({"kind": "instance", "instance_id": "a"})
        assert isinstance(payload, InstanceDrag)

    @pytest.mark.unit
    def test_parse_palette(self):
        payload = parse_drag_payload({"kind": "palette", "schema_id": "Card"})
        assert isinstance(payload, PaletteDrag)
        assert payload.props == {}

    @pytest.mark.unit
    def test_parse_unknown_kind(self):
        with pytest.raises(ValidationError):
            parse_drag_payload({"kind": "file", "path": "/tmp/x"})


class TestDrop:
    """Tests for pointer-driven drops."""

    @pytest.mark.unit
    def test_palette_into_centre(self, ws, page):
        """Centre of a populated container nests the new instance."""
        result = ws.drop(PaletteDrag(schema_id="Chip"), page["stack"], CENTRE, BOX)
        assert result.ok
        assert ws.get_instance(page["stack"]).children[-1] == result.instance_id

    @pytest.mark.unit
    def test_palette_on_container_edge(self, ws, page):
        """The top band of a populated container inserts before it."""
        result = ws.drop(PaletteDrag(schema_id="Chip"), page["stack"], TOP_EDGE, BOX)
        assert ws.get_instance(page["page"]).children == [
            result.instance_id,
            page["stack"],
        ]

    @pytest.mark.unit
    def test_instance_after_leaf(self, ws, page):
        """Lower half of a leaf places the dragged instance after it."""
        result = ws.drop(
            InstanceDrag(instance_id=page["first"]), page["second"], BOTTOM_EDGE, BOX
        )
        assert result.ok
        assert ws.get_instance(page["stack"]).children == [page["second"], page["first"]]

    @pytest.mark.unit
    def test_empty_container_anywhere(self, ws, page):
        """An empty container accepts a drop at its very edge."""
        empty = ws.create_instance("Grid", parent_id=page["page"]).instance_id
        result = ws.drop(InstanceDrag(instance_id=page["first"]), empty, TOP_EDGE, BOX)
        assert result.ok
        assert ws.get_instance(empty).children == [page["first"]]

    @pytest.mark.unit
    def test_cycle_via_pointer(self, ws, page):
        """Dragging a container into its own child is refused."""
        before = ws.store.snapshot()
        result = ws.drop(InstanceDrag(instance_id=page["page"]), page["stack"], CENTRE, BOX)
        assert result.error is Rejection.CYCLIC_MOVE_REJECTED
        assert ws.store.snapshot() == before

    @pytest.mark.unit
    def test_pointer_outside_cancels(self, ws, page):
        """A drop outside the target's rect changes nothing."""
        before = ws.store.snapshot()
        result = ws.drop(
            InstanceDrag(instance_id=page["first"]),
            page["second"],
            Point(x=500, y=500),
            BOX,
        )
        assert not result.ok
        assert ws.store.snapshot() == before

    @pytest.mark.unit
    def test_drop_on_canvas(self, ws, page):
        """No target appends at root level."""
        result = ws.drop(PaletteDrag(schema_id="Container"), None)
        assert ws.root_order == [page["page"], result.instance_id]

    @pytest.mark.unit
    def test_missing_geometry(self, ws, page):
        result = ws.drop(PaletteDrag(schema_id="Chip"), page["stack"])
        assert result.error is Rejection.INVALID_POSITION

    @pytest.mark.unit
    def test_unknown_target(self, ws):
        result = ws.drop(PaletteDrag(schema_id="Chip"), "ghost", CENTRE, BOX)
        assert result.error is Rejection.UNKNOWN_INSTANCE


class TestPreview:
    """Tests for drag-over previews."""

    @pytest.mark.unit
    def test_preview_positions(self, ws, page):
        payload = PaletteDrag(schema_id="Chip")
        assert ws.preview_drop(payload, page["stack"], CENTRE, BOX) is DropPosition.INSIDE
        assert ws.preview_drop(payload, page["stack"], TOP_EDGE, BOX) is DropPosition.BEFORE

    @pytest.mark.unit
    def test_preview_refuses_cycles(self, ws, page):
        payload = InstanceDrag(instance_id=page["page"])
        assert ws.preview_drop(payload, page["first"], TOP_EDGE, BOX) is None

    @pytest.mark.unit
    def test_preview_unknown_schema(self, ws, page):
        payload = PaletteDrag(schema_id="Nope")
        assert ws.preview_drop(payload, page["stack"], CENTRE, BOX) is None


class TestFacade:
    """Tests for the delegated interaction surface."""

    @pytest.mark.unit
    def test_selection_and_breadcrumb(self, ws, page):
        ws.select_instance(page["second"])
        assert [c.instance_id for c in ws.breadcrumb()] == [page["page"], page["stack"]]
        ws.delete_instance(page["stack"])
        assert ws.selection.selected_id is None
        assert ws.breadcrumb() == []

    @pytest.mark.unit
    def test_subscribe(self, ws):
        snapshots = []
        unsubscribe = ws.subscribe(snapshots.append)
        ws.insert_new("Container")
        unsubscribe()
        ws.insert_new("Container")
        assert len(snapshots) == 1

    @pytest.mark.unit
    def test_update_merges_props_and_metadata(self, ws, page):
        result = ws.update_instance(
            page["first"], props={"label": "Save"}, metadata={"name": "Primary"}
        )
        assert result.ok
        instance = ws.get_instance(page["first"])
        assert instance.props["label"] == "Save"
        assert instance.metadata.name == "Primary"

    @pytest.mark.unit
    def test_update_invalid_metadata(self, ws, page):
        before = ws.store.snapshot()
        result = ws.update_instance(page["first"], metadata={"locked": "maybe"})
        assert result.error is Rejection.INVALID_METADATA
        assert ws.store.snapshot() == before

    @pytest.mark.unit
    def test_update_has_no_structural_fields(self, ws, page):
        """Re-parenting goes through move, which refuses cycles."""
        with pytest.raises(TypeError):
            ws.update_instance(page["page"], parent_id=page["stack"])
        result = ws.move(page["page"], page["stack"], DropPosition.INSIDE)
        assert result.error is Rejection.CYCLIC_MOVE_REJECTED

    @pytest.mark.unit
    def test_insert_new_forwards_metadata(self, ws, page):
        result = ws.insert_new(
            "Chip", target_id=page["stack"], metadata={"name": "Tag", "locked": True}
        )
        metadata = ws.get_instance(result.instance_id).metadata
        assert (metadata.name, metadata.locked) == ("Tag", True)

    @pytest.mark.unit
    def test_configuration_defaults(self, monkeypatch, registry):
        """Threshold and lock rule come from the environment when not given."""
        monkeypatch.setenv("COMPOSER_EDGE_THRESHOLD", "12")
        monkeypatch.setenv("COMPOSER_LOCKED_BLOCKS_POINTER", "false")
        ws = Workspace(registry)
        locked = ws.create_instance("Card", metadata={"locked": True}).instance_id

        assert ws.edge_threshold == 12
        assert ws.select_instance(locked, from_pointer=True).ok
        ws.close()


class TestGlobalWorkspace:
    """Tests for the process-wide workspace."""

    @pytest.mark.unit
    def test_singleton_lifecycle(self, monkeypatch):
        monkeypatch.setenv("COMPOSER_BUILTIN_SCHEMAS", "true")
        close_workspace()
        first = get_workspace()
        assert get_workspace() is first
        assert "Card" in first.schemas
        close_workspace()
        assert get_workspace() is not first
        close_workspace()
