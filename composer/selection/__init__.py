"""Selection, hover and breadcrumb state for the canvas."""

from .lib import BreadcrumbItem, SelectionController

__all__ = ["BreadcrumbItem", "SelectionController"]
