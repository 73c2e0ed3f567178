"""Structural edits on the instance tree.

TreeMutator applies drag-and-drop edits (moving an existing instance,
inserting a new one from the palette, duplicating a subtree) on top of the
InstanceStore primitives. Every edit is validated in full before anything
changes and then applied inside a single store batch, so subscribers never
observe an instance detached but not yet reattached, and a rejected edit
leaves the tree exactly as it was.
"""

import logging
from typing import Any, Mapping

from composer.dropzone import DropPosition
from composer.instance import ComponentInstance, InstanceStore
from composer.result import OperationResult, Rejection

logger = logging.getLogger(__name__)

# Metadata fields carried over when a subtree is duplicated.
_COPIED_METADATA = ("locked", "is_sub_component", "sub_component_type", "name")


class _Aborted(Exception):
    """Raised inside a batch to roll it back with a rejection."""

    def __init__(self, result: OperationResult):
        super().__init__(result.message)
        self.result = result


def _coerce_position(position: DropPosition | str) -> DropPosition | None:
    try:
        return DropPosition(position)
    except ValueError:
        return None


class TreeMutator:
    """Move, insert and duplicate instances while keeping the tree valid.

    Example:
        >>> mutator = TreeMutator(store)
        >>> mutator.move(card_id, stack_id, DropPosition.INSIDE).ok
        True
        >>> mutator.move(stack_id, card_id, "inside").error
        <Rejection.CYCLIC_MOVE_REJECTED: 'cyclic_move_rejected'>

    Args:
        store: The store to edit.
    """

    def __init__(self, store: InstanceStore):
        self._store = store

    @property
    def store(self) -> InstanceStore:
        return self._store

    # =========================================================================
    # Validation
    # =========================================================================

    def check_drop(
        self,
        drag_id: str,
        target_id: str | None,
        position: DropPosition | str | None = None,
    ) -> OperationResult:
        """Check whether an existing instance may be dropped on a target.

        Rejects unknown ids, dropping an instance onto itself or onto any
        of its descendants, dragging a locked instance, and (when a
        position is given) nesting inside a non-container or positioning
        against a target whose parent cannot be resolved.
        """
        store = self._store
        drag = store.get_instance(drag_id)
        if drag is None:
            return OperationResult.rejected(
                Rejection.UNKNOWN_INSTANCE, f"Instance '{drag_id}' not found"
            )
        if target_id is not None and target_id not in store:
            return OperationResult.rejected(
                Rejection.UNKNOWN_INSTANCE, f"Target '{target_id}' not found"
            )
        if drag_id == target_id:
            return OperationResult.rejected(
                Rejection.CYCLIC_MOVE_REJECTED,
                f"Instance '{drag_id}' cannot be dropped onto itself",
                drag_id,
            )
        if target_id is not None and store.is_descendant(drag_id, target_id):
            return OperationResult.rejected(
                Rejection.CYCLIC_MOVE_REJECTED,
                f"Instance '{drag_id}' cannot be dropped into its descendant "
                f"'{target_id}'",
                drag_id,
            )
        if drag.metadata.locked:
            return OperationResult.rejected(
                Rejection.INSTANCE_LOCKED, f"Instance '{drag_id}' is locked", drag_id
            )

        if position is not None:
            placement = self._placement(target_id, position, exclude=drag_id)
            if isinstance(placement, OperationResult):
                return placement

        return OperationResult.success(drag_id)

    def can_drop(
        self,
        drag_id: str,
        target_id: str | None,
        position: DropPosition | str | None = None,
    ) -> bool:
        """Boolean form of check_drop, for drop affordances."""
        return self.check_drop(drag_id, target_id, position).ok

    def _placement(
        self,
        target_id: str | None,
        position: DropPosition | str,
        exclude: str | None = None,
    ) -> tuple[str | None, int] | OperationResult:
        """Resolve (parent id, insertion index) for a drop.

        The index is computed against the sibling list with ``exclude``
        already removed, i.e. after detaching the dragged instance.
        """
        store = self._store
        resolved = _coerce_position(position)
        if resolved is None:
            return OperationResult.rejected(
                Rejection.INVALID_POSITION, f"Unknown drop position '{position}'"
            )

        if target_id is None:
            # Dropped on the canvas itself: append at root level.
            if resolved is not DropPosition.INSIDE:
                logger.debug(f"No target for '{resolved.value}', appending to root")
            roots = [r for r in store.root_order if r != exclude]
            return None, len(roots)

        target = store.get_instance(target_id)
        if target is None:
            return OperationResult.rejected(
                Rejection.UNKNOWN_INSTANCE, f"Target '{target_id}' not found"
            )

        if resolved is DropPosition.INSIDE:
            if not store.is_container(target_id):
                return OperationResult.rejected(
                    Rejection.INVALID_POSITION,
                    f"Target '{target_id}' does not accept children",
                )
            children = [c for c in target.children if c != exclude]
            return target_id, len(children)

        parent_id = target.parent_id
        if parent_id is not None and parent_id not in store:
            return OperationResult.rejected(
                Rejection.INVALID_POSITION,
                f"Target '{target_id}' has no resolvable parent",
            )
        siblings = [s for s in store.sibling_ids(parent_id) if s != exclude]
        if target_id not in siblings:
            return OperationResult.rejected(
                Rejection.INVALID_POSITION,
                f"Target '{target_id}' is missing from its parent's list",
            )
        index = siblings.index(target_id)
        if resolved is DropPosition.AFTER:
            index += 1
        return parent_id, index

    # =========================================================================
    # Edits
    # =========================================================================

    def _write_siblings(self, parent_id: str | None, ids: list[str]) -> None:
        if parent_id is None:
            result = self._store.set_root_order(ids)
        else:
            result = self._store.update_instance(parent_id, children=ids)
        if not result.ok:
            raise _Aborted(result)

    def move(
        self, drag_id: str, target_id: str | None, position: DropPosition | str
    ) -> OperationResult:
        """Move an existing instance relative to a target.

        The instance is detached from its current list first, then spliced
        into the target's list (BEFORE/AFTER) or appended to the target's
        children (INSIDE). Other siblings keep their relative order. A
        ``target_id`` of None appends to the root order.

        Returns:
            Success with the moved id, or a rejection with the tree unchanged.
        """
        check = self.check_drop(drag_id, target_id)
        if not check.ok:
            logger.info(f"Rejected move of '{drag_id}': {check.message}")
            return check

        placement = self._placement(target_id, position, exclude=drag_id)
        if isinstance(placement, OperationResult):
            logger.info(f"Rejected move of '{drag_id}': {placement.message}")
            return placement
        new_parent_id, index = placement

        store = self._store
        old_parent_id = store.get_instance(drag_id).parent_id
        old_siblings = store.sibling_ids(old_parent_id)
        new_siblings = [s for s in store.sibling_ids(new_parent_id) if s != drag_id]
        new_siblings.insert(index, drag_id)

        if old_parent_id == new_parent_id and old_siblings == new_siblings:
            return OperationResult.success(drag_id, "Already in place")

        try:
            with store.batch():
                if old_parent_id != new_parent_id:
                    self._write_siblings(
                        old_parent_id, [s for s in old_siblings if s != drag_id]
                    )
                self._write_siblings(new_parent_id, new_siblings)
                result = store.update_instance(drag_id, parent_id=new_parent_id)
                if not result.ok:
                    raise _Aborted(result)
        except _Aborted as e:
            logger.error(f"Move of '{drag_id}' rolled back: {e.result.message}")
            return e.result

        logger.debug(f"Moved '{drag_id}' to {new_parent_id or 'root'}[{index}]")
        return OperationResult.success(drag_id)

    def insert_new(
        self,
        schema_id: str,
        props: Mapping[str, Any] | None = None,
        target_id: str | None = None,
        position: DropPosition | str = DropPosition.INSIDE,
        metadata: Mapping[str, Any] | None = None,
    ) -> OperationResult:
        """Create an instance from the palette and place it like a move.

        Follows the same BEFORE/AFTER/INSIDE contract as ``move``. With no
        target the instance is appended to the root order.

        Returns:
            Success with the new id, or a rejection with the tree unchanged.
        """
        store = self._store
        if store.schemas.lookup(schema_id) is None:
            logger.info(f"Rejected insert: schema '{schema_id}' not found")
            return OperationResult.rejected(
                Rejection.UNKNOWN_SCHEMA, f"Schema '{schema_id}' not found"
            )

        placement = self._placement(target_id, position)
        if isinstance(placement, OperationResult):
            logger.info(f"Rejected insert of '{schema_id}': {placement.message}")
            return placement
        parent_id, index = placement

        try:
            with store.batch():
                created = store.create_instance(schema_id, props, parent_id, metadata)
                if not created.ok:
                    raise _Aborted(created)
                new_id = created.instance_id
                siblings = [s for s in store.sibling_ids(parent_id) if s != new_id]
                siblings.insert(index, new_id)
                self._write_siblings(parent_id, siblings)
        except _Aborted as e:
            logger.info(f"Rejected insert of '{schema_id}': {e.result.message}")
            return e.result

        return OperationResult.success(new_id)

    def duplicate(self, instance_id: str) -> OperationResult:
        """Deep-copy a subtree and append the copy next to its source's siblings.

        The copy gets fresh ids and timestamps; props and editor metadata
        (lock state, name, sub-component role) are carried over.

        Returns:
            Success with the id of the copied root.
        """
        source = self._store.get_instance(instance_id)
        if source is None:
            return OperationResult.rejected(
                Rejection.UNKNOWN_INSTANCE, f"Instance '{instance_id}' not found"
            )

        try:
            with self._store.batch():
                new_id = self._copy_subtree(source, source.parent_id)
        except _Aborted as e:
            logger.info(f"Rejected duplicate of '{instance_id}': {e.result.message}")
            return e.result

        return OperationResult.success(new_id)

    def _copy_subtree(self, source: ComponentInstance, parent_id: str | None) -> str:
        metadata = source.metadata.model_dump(include=set(_COPIED_METADATA))
        created = self._store.create_instance(
            source.schema_id, source.props, parent_id, metadata
        )
        if not created.ok:
            raise _Aborted(created)
        for child in self._store.get_children(source.id):
            self._copy_subtree(child, created.instance_id)
        return created.instance_id


__all__ = ["TreeMutator"]
