"""Centralized environment configuration management for canvas-composer.

Provides a unified interface for all environment variables with:
- Single `get_environment()` function for all configuration
- Type-safe enum with metadata (default, type, description)
- Consistent resolution: override > environment > default

Example:
    >>> from composer.config import EnvVar, get_environment
    >>>
    >>> # Get values with automatic type conversion
    >>> threshold = get_environment(EnvVar.EDGE_THRESHOLD)  # Returns int
    >>>
    >>> # Override at runtime
    >>> threshold = get_environment(EnvVar.EDGE_THRESHOLD, override=12)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, overload

from dotenv import load_dotenv

# =============================================================================
# Environment Variable Configuration
# =============================================================================


@dataclass(frozen=True)
class EnvConfig:
    """Metadata for an environment variable.

    Attributes:
        name: Environment variable name (e.g., "COMPOSER_EDGE_THRESHOLD").
        default: Default value if not set in environment.
        var_type: Python type for value conversion (str, int, bool).
        description: Human-readable description.
        category: Grouping category for documentation.
    """

    name: str
    default: Any
    var_type: type
    description: str = ""
    category: str = "general"


class EnvVar(Enum):
    """All environment variables used by canvas-composer.

    Each member contains an EnvConfig with name, default, type, and description.
    Use with `get_environment()` for type-safe access.

    Categories:
        - interaction: Drag-and-drop and selection behaviour
        - schema: Component schema catalog
        - logging: Log output
    """

    # -------------------------------------------------------------------------
    # Interaction
    # -------------------------------------------------------------------------
    EDGE_THRESHOLD = EnvConfig(
        name="COMPOSER_EDGE_THRESHOLD",
        default=30,
        var_type=int,
        description="Pixel margin near a container border treated as a reorder zone",
        category="interaction",
    )
    LOCKED_BLOCKS_POINTER = EnvConfig(
        name="COMPOSER_LOCKED_BLOCKS_POINTER",
        default=True,
        var_type=bool,
        description="Locked instances refuse selection from pointer interaction",
        category="interaction",
    )

    # -------------------------------------------------------------------------
    # Schema Catalog
    # -------------------------------------------------------------------------
    BUILTIN_SCHEMAS = EnvConfig(
        name="COMPOSER_BUILTIN_SCHEMAS",
        default=True,
        var_type=bool,
        description="Seed the default registry with the built-in component catalog",
        category="schema",
    )

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    LOG_LEVEL = EnvConfig(
        name="COMPOSER_LOG_LEVEL",
        default="INFO",
        var_type=str,
        description="Log level name (DEBUG, INFO, WARNING, ERROR)",
        category="logging",
    )


# =============================================================================
# Type Conversion Helpers
# =============================================================================


def _parse_bool(value: str) -> bool | None:
    """Parse string to boolean.

    Recognizes: true/false, 1/0, yes/no (case-insensitive).
    Returns None for unrecognized values.
    """
    normalized = value.lower().strip()
    if normalized in ("true", "1", "yes"):
        return True
    if normalized in ("false", "0", "no"):
        return False
    return None


def _convert_value(value: str | None, var_type: type, default: Any) -> Any:
    """Convert string value to target type.

    Args:
        value: Raw string value from environment (or None).
        var_type: Target Python type.
        default: Default value if conversion fails or value is None.

    Returns:
        Converted value or default.
    """
    if value is None:
        return default

    if var_type is str:
        return value

    if var_type is int:
        try:
            return int(value)
        except ValueError:
            return default

    if var_type is bool:
        result = _parse_bool(value)
        return result if result is not None else default

    # Unknown type, return as-is
    return value


# =============================================================================
# Main Interface
# =============================================================================


@overload
def get_environment(env_var: EnvVar, override: int) -> int: ...
@overload
def get_environment(env_var: EnvVar, override: str) -> str: ...
@overload
def get_environment(env_var: EnvVar, override: bool) -> bool: ...
@overload
def get_environment(env_var: EnvVar, override: None = None) -> Any: ...


def get_environment(env_var: EnvVar, override: Any = None) -> Any:
    """Get environment variable value with type conversion.

    Resolution priority:
        1. Explicit override parameter (highest)
        2. Environment variable value
        3. Default from EnvConfig (lowest)

    Args:
        env_var: Environment variable enum member.
        override: Optional override value (bypasses env lookup).

    Returns:
        Value converted to the appropriate type (str, int, or bool).

    Example:
        >>> get_environment(EnvVar.EDGE_THRESHOLD)
        30
        >>> get_environment(EnvVar.EDGE_THRESHOLD, override=12)
        12
    """
    config: EnvConfig = env_var.value

    if override is not None:
        return override

    raw_value = os.environ.get(config.name)
    return _convert_value(raw_value, config.var_type, config.default)


def get_environment_info(env_var: EnvVar) -> EnvConfig:
    """Get metadata for an environment variable."""
    return env_var.value


def load_environment(path: Path | str | None = None) -> bool:
    """Load variables from a .env file into the process environment.

    Existing environment values are never overwritten.

    Args:
        path: Explicit .env path. None searches upward from the cwd.

    Returns:
        True if a file was found and at least one variable was set.
    """
    return load_dotenv(dotenv_path=path, override=False)


# =============================================================================
# Convenience Functions
# =============================================================================


def get_edge_threshold(override: int | None = None) -> int:
    """Get the drop-zone edge threshold in pixels.

    Negative values are clamped to zero.
    """
    return max(0, get_environment(EnvVar.EDGE_THRESHOLD, override=override))


def get_log_level(override: str | None = None) -> str:
    """Get the configured log level name, upper-cased."""
    return str(get_environment(EnvVar.LOG_LEVEL, override=override)).upper()


def list_environment_variables(category: str | None = None) -> list[EnvVar]:
    """List all environment variables, optionally filtered by category.

    Args:
        category: Filter by category (interaction, schema, logging).
                 None returns all variables.

    Returns:
        List of EnvVar enum members.
    """
    if category is None:
        return list(EnvVar)

    return [var for var in EnvVar if var.value.category == category]


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
