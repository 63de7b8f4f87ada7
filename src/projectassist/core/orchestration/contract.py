from __future__ import annotations

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

CORRECTION_TEMPLATE = "That response did not match the expected format. Please try again. Error: {message}"


class ContentType(str, Enum):
    TEXT = "Text"
    ADAPTIVE_CARD = "AdaptiveCard"

    @classmethod
    def parse(cls, raw: str) -> ContentType:
        key = raw.strip().casefold()
        for member in cls:
            if member.value.casefold() == key:
                return member
        raise ContractError(f"unrecognized contentType '{raw}'; expected 'Text' or 'AdaptiveCard'")


class StructuredResponse(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    content_type: ContentType = Field(alias="contentType")
    content: str

    def to_payload(self) -> dict[str, str]:
        return {"contentType": self.content_type.value, "content": self.content}


class ContractError(ValueError):
    """A single generated output that does not fit the two-field response schema."""


class ContractViolation(RuntimeError):
    def __init__(
        self,
        attempts: int,
        last_error: str,
        steps: list[str] | None = None,
        trace_events: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(f"response contract not met after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error
        self.steps = list(steps or [])
        self.trace_events = list(trace_events or [])


def correction_message(error: ContractError) -> str:
    return CORRECTION_TEMPLATE.format(message=str(error))


def _strip_fences(raw: str) -> str:
    cleaned = raw.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        cleaned = "\n".join(lines).strip()
    return cleaned


def _content_as_text(value: object) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


class ResponseContractValidator:
    """Parses raw generated text into a StructuredResponse or raises ContractError."""

    def validate(self, raw: str) -> StructuredResponse:
        text = _strip_fences(raw or "")
        if not text:
            raise ContractError("response was empty")
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ContractError(f"response is not valid JSON ({exc.msg} at line {exc.lineno} column {exc.colno})") from exc
        if not isinstance(parsed, dict):
            raise ContractError(f"response must be a JSON object, got {type(parsed).__name__}")

        missing = [key for key in ("contentType", "content") if parsed.get(key) is None]
        if missing:
            raise ContractError(f"response is missing required field(s): {', '.join(missing)}")

        raw_type = parsed["contentType"]
        if not isinstance(raw_type, str):
            raise ContractError("contentType must be a string")
        content_type = ContentType.parse(raw_type)
        return StructuredResponse(content_type=content_type, content=_content_as_text(parsed["content"]))
