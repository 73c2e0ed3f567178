"""Selection and hover state.

Selection is view state, not part of the document: it is never persisted
and is reset automatically when the selected or hovered instance is
deleted. The breadcrumb is derived from the store's ancestor walk.
"""

import logging
from dataclasses import dataclass

from composer.instance import ComponentInstance, InstanceStore, TreeSnapshot
from composer.result import OperationResult, Rejection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BreadcrumbItem:
    """One step of the root-first path to the selected instance."""

    instance_id: str
    schema_id: str
    label: str


class SelectionController:
    """Tracks the selected and hovered instance for one canvas.

    Args:
        store: Store the ids refer to. The controller subscribes to it to
            drop ids that get deleted.
        locked_blocks_pointer: Whether locked instances refuse selection
            coming from pointer interaction.
    """

    def __init__(self, store: InstanceStore, locked_blocks_pointer: bool = True):
        self._store = store
        self._locked_blocks_pointer = locked_blocks_pointer
        self._selected_id: str | None = None
        self._hovered_id: str | None = None
        self._unsubscribe = store.subscribe(self._on_change)

    @property
    def selected_id(self) -> str | None:
        return self._selected_id

    @property
    def hovered_id(self) -> str | None:
        return self._hovered_id

    @property
    def selected_instance(self) -> ComponentInstance | None:
        if self._selected_id is None:
            return None
        return self._store.get_instance(self._selected_id)

    def _on_change(self, snapshot: TreeSnapshot) -> None:
        if self._selected_id is not None and self._selected_id not in snapshot.instances:
            logger.debug(f"Selected instance {self._selected_id} was deleted")
            self._selected_id = None
        if self._hovered_id is not None and self._hovered_id not in snapshot.instances:
            self._hovered_id = None

    def select_instance(
        self, instance_id: str | None, from_pointer: bool = False
    ) -> OperationResult:
        """Select an instance, or clear the selection with None.

        Locked instances refuse selection from pointer interaction but may
        still be selected programmatically.
        """
        if instance_id is None:
            self._selected_id = None
            return OperationResult.success()

        instance = self._store.get_instance(instance_id)
        if instance is None:
            return OperationResult.rejected(
                Rejection.UNKNOWN_INSTANCE, f"Instance '{instance_id}' not found"
            )
        if from_pointer and self._locked_blocks_pointer and instance.metadata.locked:
            return OperationResult.rejected(
                Rejection.INSTANCE_LOCKED,
                f"Instance '{instance_id}' is locked",
                instance_id,
            )

        self._selected_id = instance_id
        return OperationResult.success(instance_id)

    def hover_instance(self, instance_id: str | None) -> OperationResult:
        """Mark an instance as hovered, or clear hover with None."""
        if instance_id is not None and instance_id not in self._store:
            return OperationResult.rejected(
                Rejection.UNKNOWN_INSTANCE, f"Instance '{instance_id}' not found"
            )
        self._hovered_id = instance_id
        return OperationResult.success(instance_id)

    def select_parent(self) -> OperationResult:
        """Move the selection to the selected instance's parent.

        Nothing changes when the selection is empty or a root.
        """
        instance = self.selected_instance
        if instance is None or instance.parent_id is None:
            return OperationResult.success(self._selected_id)
        return self.select_instance(instance.parent_id)

    def select_child(self, index: int = 0) -> OperationResult:
        """Move the selection to one of the selected instance's children."""
        instance = self.selected_instance
        if instance is None or not 0 <= index < len(instance.children):
            return OperationResult.success(self._selected_id)
        return self.select_instance(instance.children[index])

    def get_ancestors(self, instance_id: str) -> list[ComponentInstance]:
        """Ancestors of an instance, nearest first."""
        return self._store.get_ancestors(instance_id)

    def breadcrumb(self) -> list[BreadcrumbItem]:
        """Root-first path of ancestors above the selected instance.

        Empty when nothing is selected or the selection is a root, so the
        breadcrumb disappears entirely in those cases.
        """
        if self._selected_id is None:
            return []
        ancestors = self.get_ancestors(self._selected_id)
        return [self._crumb(a) for a in reversed(ancestors)]

    def _crumb(self, instance: ComponentInstance) -> BreadcrumbItem:
        label = instance.metadata.name
        if not label:
            schema = self._store.schemas.lookup(instance.schema_id)
            label = schema.name if schema else "Component"
        return BreadcrumbItem(instance.id, instance.schema_id, label)

    def clear(self) -> None:
        self._selected_id = None
        self._hovered_id = None

    def close(self) -> None:
        """Stop tracking store changes."""
        self._unsubscribe()


__all__ = ["BreadcrumbItem", "SelectionController"]
