from __future__ import annotations


class OperationError(RuntimeError):
    """Base class for failures raised by task and mail operations."""


class InvalidArgument(OperationError, ValueError):
    """Operation arguments failed local validation; no remote call was made."""


class NotFound(OperationError):
    """A plan, bucket or user could not be resolved."""


class OperationFailed(OperationError):
    def __init__(self, operation: str, cause: BaseException) -> None:
        super().__init__(f"{operation} failed: {cause.__class__.__name__}: {cause}")
        self.operation = operation
        self.cause = cause
