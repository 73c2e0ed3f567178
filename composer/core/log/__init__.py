"""Logging micro API for canvas-composer."""

from .lib import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
