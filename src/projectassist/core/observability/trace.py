from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from projectassist.core.logging.context import get_log_context


@dataclass
class Trace:
    """In-memory record of one conversation turn: the state path taken and timed events."""

    message: str
    turn_id: str | None = None
    correlation_id: str | None = None
    steps: list[str] = field(default_factory=list)
    events: list[dict[str, Any]] = field(default_factory=list)
    _started: float = field(default_factory=time.perf_counter, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.correlation_id is None:
            self.correlation_id = get_log_context().get("correlation_id")

    def add_step(self, step: str) -> None:
        self.steps.append(step)

    def emit(self, name: str, payload: dict[str, Any]) -> None:
        event = {
            "event": name,
            "elapsed_ms": int((time.perf_counter() - self._started) * 1000),
            "payload": {**payload, **self._ids()},
        }
        self.events.append(event)

    def _ids(self) -> dict[str, str]:
        ids = {"turn_id": self.turn_id, "correlation_id": self.correlation_id}
        return {key: value for key, value in ids.items() if value}
