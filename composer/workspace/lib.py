"""Workspace facade for the interaction layer.

Wires a schema registry, instance store, tree mutator and selection
controller together and exposes the operations the palette and canvas
call: creating, moving, inserting, deleting and selecting instances, and
turning a raw pointer drop into the right structural edit.
"""

import logging
from typing import Annotated, Any, Callable, Literal

from pydantic import BaseModel, Field, TypeAdapter

from composer.config import (
    EnvVar,
    get_edge_threshold,
    get_environment,
    get_log_level,
    load_environment,
)
from composer.core.log import setup_logging
from composer.dropzone import DropPosition, Point, Rect, resolve_drop
from composer.instance import ComponentInstance, InstanceStore, Listener
from composer.mutator import TreeMutator
from composer.result import OperationResult, Rejection
from composer.schema import SchemaSource, create_default_registry
from composer.selection import BreadcrumbItem, SelectionController

logger = logging.getLogger(__name__)


class InstanceDrag(BaseModel):
    """Drag payload for an instance already on the canvas."""

    kind: Literal["instance"] = "instance"
    instance_id: str


class PaletteDrag(BaseModel):
    """Drag payload for a new component pulled from the palette."""

    kind: Literal["palette"] = "palette"
    schema_id: str
    props: dict[str, Any] = Field(default_factory=dict)


DragPayload = Annotated[InstanceDrag | PaletteDrag, Field(discriminator="kind")]

_payload_adapter: TypeAdapter = TypeAdapter(DragPayload)


def parse_drag_payload(data: dict[str, Any]) -> InstanceDrag | PaletteDrag:
    """Build a drag payload from the event source's plain dict.

    Raises:
        pydantic.ValidationError: If the dict matches neither payload kind.
    """
    return _payload_adapter.validate_python(data)


class Workspace:
    """One editable document with its selection state.

    Example:
        >>> ws = Workspace()
        >>> page = ws.create_instance("Container").instance_id
        >>> ws.drop(PaletteDrag(schema_id="Card"), page,
        ...         Point(x=50, y=50), Rect(width=400, height=300)).ok
        True

    Args:
        schemas: Schema source. Defaults to the built-in catalog.
        edge_threshold: Drop-zone border band. Defaults to configuration.
        locked_blocks_pointer: Locked-selection rule. Defaults to configuration.
        id_factory: Instance id generator passed to the store.
    """

    def __init__(
        self,
        schemas: SchemaSource | None = None,
        edge_threshold: int | None = None,
        locked_blocks_pointer: bool | None = None,
        id_factory: Callable[[], str] | None = None,
    ):
        self.schemas = schemas if schemas is not None else create_default_registry()
        self.edge_threshold = get_edge_threshold(edge_threshold)
        self.store = InstanceStore(self.schemas, id_factory=id_factory)
        self.mutator = TreeMutator(self.store)
        self.selection = SelectionController(
            self.store,
            locked_blocks_pointer=get_environment(
                EnvVar.LOCKED_BLOCKS_POINTER, override=locked_blocks_pointer
            ),
        )

    # =========================================================================
    # Document Operations
    # =========================================================================

    def create_instance(
        self,
        schema_id: str,
        props: dict[str, Any] | None = None,
        parent_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> OperationResult:
        return self.store.create_instance(schema_id, props, parent_id, metadata)

    def update_instance(
        self,
        instance_id: str,
        *,
        props: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> OperationResult:
        """Merge new props or metadata into an instance.

        Structural changes go through move, insert_new and delete_instance,
        which keep both sides of every parent link in step.
        """
        return self.store.update_instance(instance_id, props=props, metadata=metadata)

    def delete_instance(self, instance_id: str) -> OperationResult:
        return self.store.delete_instance(instance_id)

    def move(
        self, drag_id: str, target_id: str | None, position: DropPosition | str
    ) -> OperationResult:
        return self.mutator.move(drag_id, target_id, position)

    def insert_new(
        self,
        schema_id: str,
        props: dict[str, Any] | None = None,
        target_id: str | None = None,
        position: DropPosition | str = DropPosition.INSIDE,
        metadata: dict[str, Any] | None = None,
    ) -> OperationResult:
        return self.mutator.insert_new(schema_id, props, target_id, position, metadata)

    def duplicate(self, instance_id: str) -> OperationResult:
        return self.mutator.duplicate(instance_id)

    def get_instance(self, instance_id: str) -> ComponentInstance | None:
        return self.store.get_instance(instance_id)

    def get_children(self, instance_id: str) -> list[ComponentInstance]:
        return self.store.get_children(instance_id)

    @property
    def root_order(self) -> list[str]:
        return self.store.root_order

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.store.subscribe(listener)

    # =========================================================================
    # Selection
    # =========================================================================

    def select_instance(
        self, instance_id: str | None, from_pointer: bool = False
    ) -> OperationResult:
        return self.selection.select_instance(instance_id, from_pointer=from_pointer)

    def hover_instance(self, instance_id: str | None) -> OperationResult:
        return self.selection.hover_instance(instance_id)

    def get_ancestors(self, instance_id: str) -> list[ComponentInstance]:
        return self.selection.get_ancestors(instance_id)

    def breadcrumb(self) -> list[BreadcrumbItem]:
        return self.selection.breadcrumb()

    # =========================================================================
    # Pointer Drops
    # =========================================================================

    def classify_drop(
        self, target_id: str, pointer: Point, rect: Rect
    ) -> DropPosition | None:
        """Classify a pointer over a rendered target; None if it is outside."""
        target = self.store.get_instance(target_id)
        if target is None:
            return None
        return resolve_drop(
            pointer,
            rect,
            is_container=self.store.is_container(target_id),
            has_children=bool(target.children),
            edge_threshold=self.edge_threshold,
        )

    def preview_drop(
        self,
        payload: InstanceDrag | PaletteDrag,
        target_id: str,
        pointer: Point,
        rect: Rect,
    ) -> DropPosition | None:
        """Drop position to highlight while dragging, or None if not droppable."""
        position = self.classify_drop(target_id, pointer, rect)
        if position is None:
            return None
        if isinstance(payload, InstanceDrag):
            if not self.mutator.can_drop(payload.instance_id, target_id, position):
                return None
        elif self.schemas.lookup(payload.schema_id) is None:
            return None
        return position

    def drop(
        self,
        payload: InstanceDrag | PaletteDrag,
        target_id: str | None,
        pointer: Point | None = None,
        rect: Rect | None = None,
    ) -> OperationResult:
        """Apply a completed drag.

        With a target, the pointer and the target's rect decide the drop
        position. Without one the drop landed on the bare canvas and the
        item is appended at root level. A pointer outside the rect cancels
        the drop and leaves the document untouched.
        """
        if target_id is None:
            position: DropPosition | None = DropPosition.INSIDE
        else:
            if target_id not in self.store:
                return OperationResult.rejected(
                    Rejection.UNKNOWN_INSTANCE, f"Target '{target_id}' not found"
                )
            if pointer is None or rect is None:
                return OperationResult.rejected(
                    Rejection.INVALID_POSITION, "Drop on a target needs pointer and rect"
                )
            position = self.classify_drop(target_id, pointer, rect)

        if position is None:
            logger.debug(f"Drop on '{target_id}' cancelled: pointer outside target")
            return OperationResult.rejected(
                Rejection.INVALID_POSITION, "Pointer outside the drop target"
            )

        if isinstance(payload, InstanceDrag):
            return self.mutator.move(payload.instance_id, target_id, position)
        return self.mutator.insert_new(
            payload.schema_id, payload.props, target_id, position
        )

    def close(self) -> None:
        """Detach the selection controller from the store."""
        self.selection.close()


# Global instance for convenience
_global_workspace: Workspace | None = None


def get_workspace() -> Workspace:
    """Get or create the global workspace.

    The first call loads ``.env``, configures logging from
    ``COMPOSER_LOG_LEVEL`` and seeds the registry according to
    ``COMPOSER_BUILTIN_SCHEMAS``.

    Returns:
        Global Workspace instance.
    """
    global _global_workspace
    if _global_workspace is None:
        load_environment()
        setup_logging(get_log_level())
        registry = create_default_registry(get_environment(EnvVar.BUILTIN_SCHEMAS))
        _global_workspace = Workspace(registry)
        logger.info(f"Workspace ready with {len(registry)} schemas")
    return _global_workspace


def close_workspace() -> None:
    """Close and clear the global workspace."""
    global _global_workspace
    if _global_workspace:
        _global_workspace.close()
        _global_workspace = None


__all__ = [
    "InstanceDrag",
    "PaletteDrag",
    "DragPayload",
    "parse_drag_payload",
    "Workspace",
    "get_workspace",
    "close_workspace",
]
