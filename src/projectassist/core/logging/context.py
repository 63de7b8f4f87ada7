from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import Iterator, Mapping

CONTEXT_KEYS = ("correlation_id", "turn_id", "operation")

_EMPTY: Mapping[str, str] = MappingProxyType({})
_bound: ContextVar[Mapping[str, str]] = ContextVar("projectassist_log_context", default=_EMPTY)


@contextmanager
def log_context(
    correlation_id: str | None = None,
    turn_id: str | None = None,
    operation: str | None = None,
) -> Iterator[Mapping[str, str]]:
    """Bind request, turn and operation identifiers for log lines emitted inside the block.

    Identifiers left as None keep whatever an enclosing block bound, so the
    HTTP middleware, the turn loop and the dispatcher can nest freely.
    """
    given = {"correlation_id": correlation_id, "turn_id": turn_id, "operation": operation}
    merged = dict(_bound.get())
    merged.update({key: value for key, value in given.items() if value is not None})
    token = _bound.set(MappingProxyType(merged))
    try:
        yield _bound.get()
    finally:
        _bound.reset(token)


def get_log_context() -> dict[str, str]:
    current = _bound.get()
    return {key: current[key] for key in CONTEXT_KEYS if key in current}
