from .base import Operation, OperationContext, OperationResult
from .errors import InvalidArgument, NotFound, OperationError, OperationFailed
from .registry import ActionDispatcher

__all__ = [
    "ActionDispatcher",
    "InvalidArgument",
    "NotFound",
    "Operation",
    "OperationContext",
    "OperationError",
    "OperationFailed",
    "OperationResult",
]
