from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Protocol

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class OperationContext:
    """Per-turn inputs handed explicitly to every operation."""

    access_token: str
    clock: Callable[[], datetime] = utc_now
    turn_id: str | None = None

    def now(self) -> datetime:
        return self.clock()


@dataclass
class OperationResult:
    content: str
    value: Any = field(default=None, repr=False)

    @classmethod
    def of(cls, value: Any) -> OperationResult:
        return cls(content=json.dumps(_jsonable(value), ensure_ascii=False), value=value)


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


class OperationInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, str_strip_whitespace=True)


class Operation(Protocol):
    name: str
    description: str
    input_model: type[OperationInput]

    def run(self, context: OperationContext, arguments: str) -> OperationResult: ...
