"""Drop-zone classification.

Maps a pointer position over a target's bounding rectangle to where a
dragged item lands relative to that target: before it, after it, or
inside it. Everything here is a pure function of its arguments.

Rules:
    - Leaves split at the vertical midpoint: upper half is BEFORE, lower
      half is AFTER.
    - Empty containers take the whole rectangle as INSIDE.
    - Containers with children are INSIDE only in the central area that
      lies strictly more than ``edge_threshold`` pixels from every border.
      The border band falls back to the midpoint rule, so dropping near
      the edge of a nested container reorders siblings while dropping in
      its centre nests.
"""

from enum import Enum

from pydantic import BaseModel, Field

EDGE_THRESHOLD = 30


class DropPosition(str, Enum):
    """Where a dropped item lands relative to the target."""

    BEFORE = "before"
    AFTER = "after"
    INSIDE = "inside"


class Point(BaseModel):
    """Pointer position in client coordinates."""

    x: float
    y: float


class Rect(BaseModel):
    """Bounding rectangle of a rendered target in client coordinates."""

    top: float = 0
    left: float = 0
    width: float = Field(default=0, ge=0)
    height: float = Field(default=0, ge=0)

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def right(self) -> float:
        return self.left + self.width

    def contains(self, point: Point) -> bool:
        """Whether the point lies within the rectangle, edges included."""
        return self.left <= point.x <= self.right and self.top <= point.y <= self.bottom

    def relative(self, point: Point) -> Point:
        """The point expressed relative to the rectangle's top-left corner."""
        return Point(x=point.x - self.left, y=point.y - self.top)


def _midpoint_position(local_y: float, height: float) -> DropPosition:
    return DropPosition.BEFORE if local_y < height / 2 else DropPosition.AFTER


def is_in_center(
    pointer: Point, rect: Rect, edge_threshold: float = EDGE_THRESHOLD
) -> bool:
    """Whether the pointer is strictly inside the rect's central area."""
    local = rect.relative(pointer)
    in_center_y = edge_threshold < local.y < rect.height - edge_threshold
    in_center_x = edge_threshold < local.x < rect.width - edge_threshold
    return in_center_y and in_center_x


def classify(
    pointer: Point,
    rect: Rect,
    is_container: bool,
    has_children: bool,
    edge_threshold: float = EDGE_THRESHOLD,
) -> DropPosition:
    """Classify a pointer position over a drop target.

    The pointer is assumed to be over the target; see resolve_drop for the
    variant that detects a pointer outside the rectangle.

    Args:
        pointer: Pointer position in client coordinates.
        rect: Target bounding rectangle in the same coordinates.
        is_container: Whether the target accepts children.
        has_children: Whether the target currently has children.
        edge_threshold: Border band width in pixels.

    Returns:
        The drop position.

    Example:
        >>> rect = Rect(top=0, left=0, width=200, height=200)
        >>> classify(Point(x=100, y=15), rect, True, True)
        <DropPosition.BEFORE: 'before'>
    """
    if is_container and not has_children:
        return DropPosition.INSIDE

    if is_container and is_in_center(pointer, rect, edge_threshold):
        return DropPosition.INSIDE

    return _midpoint_position(rect.relative(pointer).y, rect.height)


def resolve_drop(
    pointer: Point,
    rect: Rect,
    is_container: bool,
    has_children: bool,
    edge_threshold: float = EDGE_THRESHOLD,
) -> DropPosition | None:
    """Classify a drop, or return None if the pointer left the target.

    A None result means the drop is cancelled and nothing should change.
    """
    if not rect.contains(pointer):
        return None
    return classify(pointer, rect, is_container, has_children, edge_threshold)


__all__ = [
    "EDGE_THRESHOLD",
    "DropPosition",
    "Point",
    "Rect",
    "classify",
    "is_in_center",
    "resolve_drop",
]
