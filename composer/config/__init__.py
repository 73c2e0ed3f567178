"""Centralized configuration management for canvas-composer.

Provides unified access to all configuration via the `get_environment()` function.

Example:
    >>> from composer.config import EnvVar, get_environment
    >>>
    >>> threshold = get_environment(EnvVar.EDGE_THRESHOLD)  # Returns int: 30
    >>> threshold = get_environment(EnvVar.EDGE_THRESHOLD, override=12)

Environment Variable Categories:
    interaction: Drop-zone geometry and selection rules
    schema: Built-in component catalog
    logging: Log level
"""

from .lib import (
    # Core types
    EnvConfig,
    EnvVar,
    # Main interface
    get_edge_threshold,
    get_environment,
    get_environment_info,
    get_log_level,
    # Introspection
    list_environment_variables,
    load_environment,
)

__all__ = [
    # Core types
    "EnvConfig",
    "EnvVar",
    # Main interface
    "get_environment",
    "get_environment_info",
    "load_environment",
    # Convenience functions
    "get_edge_threshold",
    "get_log_level",
    # Introspection
    "list_environment_variables",
]
