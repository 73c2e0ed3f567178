"""Operation results and the rejection taxonomy."""

from .lib import OperationResult, Rejection

__all__ = ["OperationResult", "Rejection"]
