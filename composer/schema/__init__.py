"""Schema module - the engine's view of the component catalog.

This module provides:
- Component schema metadata (defaults, container capability)
- An in-memory registry and the SchemaSource protocol it satisfies
- A built-in catalog of common components

Example usage:
    >>> from composer.schema import create_default_registry
    >>> registry = create_default_registry()
    >>> registry.lookup("Card").default_props
    {'elevation': 1, 'title': 'Card'}
"""

from .lib import (
    BUILTIN_SCHEMAS,
    CONTAINER_SCHEMA_IDS,
    ComponentSchema,
    SchemaRegistry,
    SchemaSource,
    SchemaType,
    create_default_registry,
)

__all__ = [
    # Types
    "SchemaType",
    "ComponentSchema",
    "SchemaSource",
    # Registry
    "SchemaRegistry",
    "create_default_registry",
    # Catalog
    "BUILTIN_SCHEMAS",
    "CONTAINER_SCHEMA_IDS",
]
