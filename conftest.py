"""Root pytest configuration and fixtures.

This module provides:
- Environment setup (loads .env)
- Schema registry and instance store fixtures
- A small sample document used across test modules
"""

from __future__ import annotations

import itertools
from typing import TYPE_CHECKING

import pytest
from dotenv import load_dotenv

if TYPE_CHECKING:
    from composer.instance import InstanceStore
    from composer.schema import SchemaRegistry

# Load environment variables from .env file
load_dotenv()


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def registry() -> SchemaRegistry:
    """Registry seeded with the built-in component catalog."""
    from composer.schema import create_default_registry

    return create_default_registry()


@pytest.fixture
def store(registry: SchemaRegistry) -> InstanceStore:
    """Empty store with predictable ids (i1, i2, ...)."""
    from composer.instance import InstanceStore

    counter = itertools.count(1)
    return InstanceStore(registry, id_factory=lambda: f"i{next(counter)}")


@pytest.fixture
def sample_tree(store: InstanceStore) -> dict[str, str]:
    """Populate the store with a small page and return name -> id.

    Layout::

        page [Container]
        ├── header [Typography]
        ├── body [Stack]
        │   ├── b [Card]
        │   ├── c [Button]
        │   └── d [Typography]
        └── footer [Button]
        aside [Container]
    """
    ids: dict[str, str] = {}
    ids["page"] = store.create_instance("Container").instance_id
    ids["header"] = store.create_instance(
        "Typography", {"text": "Title"}, parent_id=ids["page"]
    ).instance_id
    ids["body"] = store.create_instance("Stack", parent_id=ids["page"]).instance_id
    ids["b"] = store.create_instance("Card", parent_id=ids["body"]).instance_id
    ids["c"] = store.create_instance("Button", parent_id=ids["body"]).instance_id
    ids["d"] = store.create_instance("Typography", parent_id=ids["body"]).instance_id
    ids["footer"] = store.create_instance("Button", parent_id=ids["page"]).instance_id
    ids["aside"] = store.create_instance("Container").instance_id
    return ids
