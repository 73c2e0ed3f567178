"""Tree mutation: drag-and-drop moves, palette inserts and duplication."""

from .lib import TreeMutator

__all__ = ["TreeMutator"]
