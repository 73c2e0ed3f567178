"""Workspace facade for the palette and canvas.

Example:
    >>> from composer.workspace import PaletteDrag, Workspace
    >>> from composer.dropzone import Point, Rect
    >>> ws = Workspace()
    >>> page = ws.create_instance("Container").instance_id
    >>> ws.drop(PaletteDrag(schema_id="Card"), page,
    ...         Point(x=50, y=50), Rect(width=400, height=300)).ok
    True
"""

from .lib import (
    DragPayload,
    InstanceDrag,
    PaletteDrag,
    Workspace,
    close_workspace,
    get_workspace,
    parse_drag_payload,
)

__all__ = [
    # Payloads
    "DragPayload",
    "InstanceDrag",
    "PaletteDrag",
    "parse_drag_payload",
    # Facade
    "Workspace",
    "get_workspace",
    "close_workspace",
]
