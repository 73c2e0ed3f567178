"""Integration tests for drag-and-drop editing workflows.

Drives a workspace through long random sequences of creates, moves,
inserts, duplicates and deletes and checks after every step that the tree
is still a well-formed forest:
1. Every parent/child link is mirrored on both sides
2. Root order lists exactly the roots
3. No instance is its own ancestor
4. Deleted subtrees leave nothing behind
"""

import itertools
import random

import pytest

from composer.dropzone import DropPosition, Point, Rect
from composer.result import Rejection
from composer.schema import create_default_registry
from composer.validation import validate_store
from composer.workspace import InstanceDrag, PaletteDrag, Workspace

SCHEMA_IDS = ["Container", "Stack", "Grid", "Card", "Button", "Typography", "Chip"]
POSITIONS = list(DropPosition)


@pytest.fixture
def workspace():
    counter = itertools.count(1)
    ws = Workspace(
        create_default_registry(),
        edge_threshold=30,
        id_factory=lambda: f"n{next(counter)}",
    )
    yield ws
    ws.close()


def _ids(ws: Workspace) -> list[str]:
    return list(ws.store.snapshot().instances)


def _assert_well_formed(ws: Workspace) -> None:
    snapshot = ws.store.snapshot()
    assert validate_store(snapshot) == []
    walked = [instance.id for instance, _ in snapshot.walk()]
    assert sorted(walked) == sorted(snapshot.instances)


METADATA_UPDATES = [
    {"name": "Hero"},
    {"sub_component_type": "header", "is_sub_component": True},
    {"locked": "maybe"},
    {"name": ["not", "a", "string"]},
]


def _random_step(ws: Workspace, rng: random.Random) -> None:
    ids = _ids(ws)
    action = rng.choice(
        ["insert", "insert", "move", "move", "duplicate", "delete", "update"]
    )
    target = rng.choice(ids + [None]) if ids else None

    if action == "insert" or not ids:
        ws.insert_new(rng.choice(SCHEMA_IDS), target_id=target, position=rng.choice(POSITIONS))
    elif action == "move":
        ws.move(rng.choice(ids), target, rng.choice(POSITIONS))
    elif action == "duplicate":
        ws.duplicate(rng.choice(ids))
    elif action == "update":
        ws.update_instance(
            rng.choice(ids),
            props={"step": rng.randint(0, 100)},
            metadata=rng.choice(METADATA_UPDATES),
        )
    else:
        ws.delete_instance(rng.choice(ids))


@pytest.mark.integration
@pytest.mark.parametrize("seed", range(8))
def test_random_edit_sequences_keep_tree_valid(workspace, seed):
    """Any sequence of accepted or rejected edits leaves a valid forest."""
    rng = random.Random(seed)
    for _ in range(150):
        _random_step(workspace, rng)
        _assert_well_formed(workspace)


@pytest.mark.integration
@pytest.mark.parametrize("seed", range(4))
def test_moves_never_create_cycles(workspace, seed):
    """Moving onto any descendant is rejected and changes nothing."""
    rng = random.Random(seed)
    for _ in range(40):
        _random_step(workspace, rng)

    store = workspace.store
    for drag_id in _ids(workspace):
        for target_id in store.get_descendants(drag_id):
            before = store.snapshot()
            result = workspace.move(drag_id, target_id, rng.choice(POSITIONS))
            assert result.error is Rejection.CYCLIC_MOVE_REJECTED
            assert store.snapshot() == before


@pytest.mark.integration
def test_delete_removes_whole_subtree(workspace):
    page = workspace.insert_new("Container").instance_id
    stack = workspace.insert_new("Stack", target_id=page).instance_id
    for _ in range(3):
        workspace.insert_new("Card", target_id=stack)
    doomed = [stack] + workspace.store.get_descendants(stack)

    workspace.delete_instance(stack)

    assert all(i not in workspace.store for i in doomed)
    assert workspace.get_instance(page).children == []
    _assert_well_formed(workspace)


@pytest.mark.integration
def test_pointer_session(workspace):
    """Build a small page purely through palette and canvas drops."""
    box = Rect(top=100, left=100, width=300, height=200)
    centre = Point(x=250, y=200)
    top_edge = Point(x=250, y=110)
    bottom_edge = Point(x=250, y=290)

    page = workspace.drop(PaletteDrag(schema_id="Container"), None).instance_id
    title = workspace.drop(
        PaletteDrag(schema_id="Typography", props={"text": "Hello"}), page, top_edge, box
    ).instance_id
    button = workspace.drop(PaletteDrag(schema_id="Button"), title, bottom_edge, box).instance_id
    card = workspace.drop(PaletteDrag(schema_id="Card"), page, centre, box).instance_id

    assert workspace.get_instance(page).children == [title, button, card]
    assert workspace.get_instance(title).props["text"] == "Hello"

    # Reorder: drag the card above the title.
    assert workspace.drop(InstanceDrag(instance_id=card), title, top_edge, box).ok
    assert workspace.get_instance(page).children == [card, title, button]

    # Cancelled drop: pointer released outside the target.
    before = workspace.store.snapshot()
    workspace.drop(InstanceDrag(instance_id=button), card, Point(x=0, y=0), box)
    assert workspace.store.snapshot() == before

    workspace.select_instance(button)
    assert [c.instance_id for c in workspace.breadcrumb()] == [page]
    _assert_well_formed(workspace)


@pytest.mark.integration
def test_subscribers_see_one_snapshot_per_edit(workspace):
    page = workspace.insert_new("Container").instance_id
    first = workspace.insert_new("Button", target_id=page).instance_id
    second = workspace.insert_new("Button", target_id=page).instance_id

    snapshots = []
    workspace.subscribe(snapshots.append)
    workspace.move(first, second, DropPosition.AFTER)
    workspace.duplicate(page)
    workspace.move(page, first, DropPosition.INSIDE)

    assert len(snapshots) == 2
    for snapshot in snapshots:
        assert validate_store(snapshot) == []


@pytest.mark.integration
def test_structural_store_updates_refuse_cycles(workspace):
    """Raw parent/children rewrites cannot close a loop at any depth."""
    outer = workspace.insert_new("Container").instance_id
    middle = workspace.insert_new("Stack", target_id=outer).instance_id
    inner = workspace.insert_new("Grid", target_id=middle).instance_id
    store = workspace.store
    before = store.snapshot()

    for ancestor, descendant in [(outer, middle), (outer, inner), (middle, inner)]:
        by_parent = store.update_instance(ancestor, parent_id=descendant)
        by_children = store.update_instance(descendant, children=[ancestor])
        assert by_parent.error is Rejection.CYCLIC_MOVE_REJECTED
        assert by_children.error is Rejection.CYCLIC_MOVE_REJECTED

    assert store.snapshot() == before
    _assert_well_formed(workspace)
