"""Instance tree invariant checking."""

from composer.validation.lib import ValidationError, is_consistent, validate_store

__all__ = [
    "ValidationError",
    "validate_store",
    "is_consistent",
]
