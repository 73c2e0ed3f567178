"""canvas-composer: drag-and-drop component tree editing engine."""

from composer.dropzone import DropPosition, Point, Rect, classify, resolve_drop
from composer.instance import ComponentInstance, InstanceStore, TreeSnapshot
from composer.mutator import TreeMutator
from composer.result import OperationResult, Rejection
from composer.schema import ComponentSchema, SchemaRegistry, create_default_registry
from composer.validation import ValidationError, is_consistent, validate_store
from composer.workspace import Workspace, get_workspace

__all__ = [
    # Schemas
    "ComponentSchema",
    "SchemaRegistry",
    "create_default_registry",
    # Store
    "ComponentInstance",
    "InstanceStore",
    "TreeSnapshot",
    "OperationResult",
    "Rejection",
    # Drag and drop
    "DropPosition",
    "Point",
    "Rect",
    "classify",
    "resolve_drop",
    "TreeMutator",
    "Workspace",
    "get_workspace",
    # Validation
    "validate_store",
    "is_consistent",
    "ValidationError",
]
