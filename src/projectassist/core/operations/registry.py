from __future__ import annotations

import logging
import time

from projectassist.core.logging.context import log_context

from .base import Operation, OperationContext, OperationResult
from .errors import InvalidArgument, OperationFailed

logger = logging.getLogger(__name__)


class ActionDispatcher:
    """Holds the named operations and is the single place their failures are converted."""

    def __init__(self) -> None:
        self._operations: dict[str, Operation] = {}

    def register(self, operation: Operation) -> None:
        self._operations[operation.name] = operation

    def get(self, name: str) -> Operation:
        return self._operations[name]

    def names(self) -> list[str]:
        return sorted(self._operations.keys())

    def tool_specs(self) -> list[dict]:
        specs: list[dict] = []
        for name in self.names():
            operation = self._operations[name]
            specs.append(
                {
                    "type": "function",
                    "function": {
                        "name": name,
                        "description": operation.description,
                        "parameters": operation.input_model.model_json_schema(by_alias=True),
                    },
                }
            )
        return specs

    def dispatch(self, name: str, arguments: str, context: OperationContext) -> OperationResult:
        start = time.perf_counter()
        with log_context(operation=name):
            try:
                operation = self._operations.get(name)
                if operation is None:
                    raise InvalidArgument(f"unknown operation '{name}'")
                result = operation.run(context, arguments or "{}")
            except Exception as exc:
                self._log(name, start, ok=False, error=exc)
                raise OperationFailed(name, exc) from exc
            self._log(name, start, ok=True)
            return result

    def _log(self, name: str, start: float, ok: bool, error: Exception | None = None) -> None:
        fields: dict[str, object] = {
            "operation": name,
            "duration_ms": int((time.perf_counter() - start) * 1000),
            "ok": ok,
        }
        if error is not None:
            fields["error_type"] = error.__class__.__name__
        logger.info("operation_dispatched", extra={"extra_fields": fields})
