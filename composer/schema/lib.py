"""Component schema registry.

The registry is the engine's view of the external component catalog. The
core only ever asks it two things about a schema id: which default props a
new instance starts with, and whether instances of it accept children.
Anything with a compatible ``lookup`` method can stand in for it.

This module provides:
- Schema type enum and frozen ComponentSchema metadata
- An in-memory SchemaRegistry
- A built-in catalog of common layout, display and form components
"""

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class SchemaType(str, Enum):
    """High-level component groupings."""

    DISPLAY = "display"
    FORM = "form"
    LAYOUT = "layout"
    NAVIGATION = "navigation"
    UTILITY = "utility"


# Schema ids that behave as containers regardless of their declared type.
CONTAINER_SCHEMA_IDS: frozenset[str] = frozenset(
    {"Container", "Stack", "Grid", "DataDisplayCard"}
)


@dataclass(frozen=True)
class ComponentSchema:
    """Declarative description of a component type.

    Attributes:
        id: Registry key referenced by instances.
        name: Display name (palette, breadcrumb).
        type: High-level grouping.
        description: Human-readable summary.
        category: Optional free-form sub-category; "layout" marks a container.
        default_props: Props every new instance starts with.
        accepts_children: Explicit container capability. None derives it
            from type, category and id.
    """

    id: str
    name: str
    type: SchemaType
    description: str = ""
    category: str | None = None
    default_props: dict[str, Any] = field(default_factory=dict)
    accepts_children: bool | None = None

    @property
    def is_container(self) -> bool:
        """Whether instances of this schema may hold child instances."""
        if self.accepts_children is not None:
            return self.accepts_children
        return (
            self.type == SchemaType.LAYOUT
            or self.category == "layout"
            or self.id in CONTAINER_SCHEMA_IDS
        )

    def new_props(self, overrides: dict[str, Any] | None = None) -> dict[str, Any]:
        """Default props merged with overrides, never sharing mutable state."""
        props = copy.deepcopy(self.default_props)
        if overrides:
            props.update(copy.deepcopy(overrides))
        return props

    def to_dict(self) -> dict[str, Any]:
        """Convert metadata to a plain dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "description": self.description,
            "category": self.category,
            "default_props": copy.deepcopy(self.default_props),
            "is_container": self.is_container,
        }


@runtime_checkable
class SchemaSource(Protocol):
    """Anything the store can resolve schema ids against."""

    def lookup(self, schema_id: str) -> ComponentSchema | None:
        """Return the schema for an id, or None if it is unknown."""
        ...


class SchemaRegistry:
    """In-memory schema registry keyed by schema id.

    Example:
        >>> registry = SchemaRegistry()
        >>> registry.register(ComponentSchema("Card", "Card", SchemaType.DISPLAY))
        >>> registry.lookup("Card").name
        'Card'
    """

    def __init__(self, schemas: Iterable[ComponentSchema] | None = None):
        self._schemas: dict[str, ComponentSchema] = {}
        if schemas:
            self.register_many(schemas)

    def register(self, schema: ComponentSchema) -> None:
        """Add or replace a schema."""
        if schema.id in self._schemas:
            logger.debug(f"Replacing schema '{schema.id}'")
        self._schemas[schema.id] = schema

    def register_many(self, schemas: Iterable[ComponentSchema]) -> None:
        """Add or replace several schemas."""
        for schema in schemas:
            self.register(schema)

    def unregister(self, schema_id: str) -> bool:
        """Remove a schema.

        Existing instances keep their schema id; they simply can no longer
        be created anew.

        Returns:
            True if the schema was registered.
        """
        return self._schemas.pop(schema_id, None) is not None

    def lookup(self, schema_id: str) -> ComponentSchema | None:
        return self._schemas.get(schema_id)

    def get(self, schema_id: str) -> ComponentSchema:
        """Get a schema by id.

        Raises:
            KeyError: If the schema is not registered.
        """
        return self._schemas[schema_id]

    def list_schemas(self, schema_type: SchemaType | None = None) -> list[ComponentSchema]:
        """List registered schemas, optionally filtered by type."""
        if schema_type is None:
            return list(self._schemas.values())
        return [s for s in self._schemas.values() if s.type == schema_type]

    def __contains__(self, schema_id: object) -> bool:
        return schema_id in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)


# === BUILT-IN CATALOG ===


BUILTIN_SCHEMAS: tuple[ComponentSchema, ...] = (
    # Layout
    ComponentSchema(
        id="Container",
        name="Container",
        type=SchemaType.LAYOUT,
        description="Generic wrapper that groups child components",
        default_props={"maxWidth": "lg", "padding": 2},
    ),
    ComponentSchema(
        id="Stack",
        name="Stack",
        type=SchemaType.LAYOUT,
        description="One-dimensional layout with consistent spacing",
        default_props={"direction": "column", "spacing": 2},
    ),
    ComponentSchema(
        id="Grid",
        name="Grid",
        type=SchemaType.LAYOUT,
        description="Responsive two-dimensional grid of cells",
        default_props={"columns": 12, "spacing": 2},
    ),
    # Display
    ComponentSchema(
        id="Card",
        name="Card",
        type=SchemaType.DISPLAY,
        description="Surface presenting a titled block of content",
        default_props={"elevation": 1, "title": "Card"},
    ),
    ComponentSchema(
        id="DataDisplayCard",
        name="Data Display Card",
        type=SchemaType.DISPLAY,
        description="Card that renders bound data and nested content",
        default_props={"title": "Data", "variant": "outlined"},
    ),
    ComponentSchema(
        id="Typography",
        name="Typography",
        type=SchemaType.DISPLAY,
        description="Text in one of the theme's type scales",
        default_props={"variant": "body1", "text": "Text"},
    ),
    ComponentSchema(
        id="Image",
        name="Image",
        type=SchemaType.DISPLAY,
        description="Static image with alternative text",
        default_props={"src": "", "alt": ""},
    ),
    ComponentSchema(
        id="Chip",
        name="Chip",
        type=SchemaType.DISPLAY,
        description="Compact label for tags or filters",
        default_props={"label": "Chip", "size": "medium"},
    ),
    # Form
    ComponentSchema(
        id="Button",
        name="Button",
        type=SchemaType.FORM,
        description="Clickable action trigger",
        default_props={"variant": "contained", "label": "Button"},
    ),
    ComponentSchema(
        id="TextField",
        name="Text Field",
        type=SchemaType.FORM,
        description="Single-line text entry",
        default_props={"label": "Label", "variant": "outlined"},
    ),
    # Utility
    ComponentSchema(
        id="Divider",
        name="Divider",
        type=SchemaType.UTILITY,
        description="Thin rule separating content",
        default_props={"orientation": "horizontal"},
    ),
    ComponentSchema(
        id="Alert",
        name="Alert",
        type=SchemaType.UTILITY,
        description="Short message drawing attention to a status",
        default_props={"severity": "info", "message": "Alert"},
    ),
)


def create_default_registry(include_builtins: bool = True) -> SchemaRegistry:
    """Create a registry, seeded with the built-in catalog by default."""
    return SchemaRegistry(BUILTIN_SCHEMAS if include_builtins else None)


__all__ = [
    "SchemaType",
    "CONTAINER_SCHEMA_IDS",
    "ComponentSchema",
    "SchemaSource",
    "SchemaRegistry",
    "BUILTIN_SCHEMAS",
    "create_default_registry",
]
