from __future__ import annotations

import json
from dataclasses import dataclass


@dataclass
class ToolCall:
    id: str
    name: str
    arguments: str


def parse_tool_calls(message: dict) -> list[ToolCall]:
    calls: list[ToolCall] = []
    for index, raw in enumerate(message.get("tool_calls") or []):
        function = raw.get("function") or {}
        name = str(function.get("name") or "")
        if not name:
            continue
        arguments = function.get("arguments")
        if not isinstance(arguments, str):
            arguments = json.dumps(arguments or {})
        calls.append(ToolCall(id=str(raw.get("id") or f"call_{index}"), name=name, arguments=arguments or "{}"))
    return calls
