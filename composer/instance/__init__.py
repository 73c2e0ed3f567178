"""Component instance tree.

This module provides the instance data model and the InstanceStore that
owns it: creation with schema defaults, shallow-merge updates, subtree
deletion, ancestry queries and change subscription.

Example:
    >>> from composer.instance import InstanceStore
    >>> from composer.schema import create_default_registry
    >>> store = InstanceStore(create_default_registry())
    >>> result = store.create_instance("Card", {"title": "X"})
    >>> store.get_instance(result.instance_id).props
    {'elevation': 1, 'title': 'X'}
"""

from .lib import UNSET, InstanceStore, Listener
from .models import ComponentInstance, InstanceMetadata, TreeSnapshot

__all__ = [
    # Store
    "InstanceStore",
    "Listener",
    "UNSET",
    # Models
    "ComponentInstance",
    "InstanceMetadata",
    "TreeSnapshot",
]
