"""Package logger setup for canvas-composer.

Modules log through ``logging.getLogger(__name__)``, so every record ends
up under the ``composer`` logger. setup_logging attaches one stream handler
there and leaves the root logger to the host application.
"""

import logging
import sys
from typing import Optional

__all__ = ["get_logger", "setup_logging"]

DEFAULT_LOGGER_NAME = "composer"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: int | str = logging.INFO, stream=sys.stderr) -> logging.Logger:
    """Configure the package logger.

    Calling it again replaces the handler installed by the previous call,
    so the level and stream can be changed at runtime.

    Args:
        level: Numeric level or a level name such as "debug". Unknown
            names fall back to INFO.
        stream: Output stream.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(DEFAULT_LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_composer_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._composer_handler = True
    logger.addHandler(handler)
    logger.setLevel(_resolve_level(level))
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger, the package logger when no name is given."""
    return logging.getLogger(name or DEFAULT_LOGGER_NAME)
