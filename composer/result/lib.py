"""Typed operation results for the composition engine.

Public operations never raise for a rejected edit. They return an
OperationResult carrying either the affected instance id or a Rejection
reason the interaction layer can surface (e.g. a "cannot drop here" cue).
"""

from dataclasses import dataclass
from enum import Enum


class Rejection(str, Enum):
    """Reasons an operation was refused. No mutation accompanies any of them."""

    UNKNOWN_SCHEMA = "unknown_schema"
    UNKNOWN_INSTANCE = "unknown_instance"
    CYCLIC_MOVE_REJECTED = "cyclic_move_rejected"
    INVALID_POSITION = "invalid_position"
    INSTANCE_LOCKED = "instance_locked"
    INVALID_METADATA = "invalid_metadata"


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a store, mutator or selection operation.

    Attributes:
        ok: True when the operation was applied (or was a valid no-op).
        instance_id: Id of the created/affected instance, if any.
        error: Rejection reason when ok is False.
        message: Human-readable detail for logs and UI hints.
    """

    ok: bool
    instance_id: str | None = None
    error: Rejection | None = None
    message: str = ""

    @classmethod
    def success(
        cls, instance_id: str | None = None, message: str = ""
    ) -> "OperationResult":
        """Build a successful result."""
        return cls(ok=True, instance_id=instance_id, message=message)

    @classmethod
    def rejected(
        cls,
        error: Rejection,
        message: str = "",
        instance_id: str | None = None,
    ) -> "OperationResult":
        """Build a rejected result."""
        return cls(ok=False, instance_id=instance_id, error=error, message=message)

    def __bool__(self) -> bool:
        return self.ok


__all__ = ["Rejection", "OperationResult"]
