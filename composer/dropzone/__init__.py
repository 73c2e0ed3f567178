"""Drop-zone geometry: before / after / inside classification."""

from .lib import (
    EDGE_THRESHOLD,
    DropPosition,
    Point,
    Rect,
    classify,
    is_in_center,
    resolve_drop,
)

__all__ = [
    "EDGE_THRESHOLD",
    "DropPosition",
    "Point",
    "Rect",
    "classify",
    "is_in_center",
    "resolve_drop",
]
