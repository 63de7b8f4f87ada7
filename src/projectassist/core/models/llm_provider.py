from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass
from typing import Protocol

from projectassist.core.http.errors import ProjectAssistHTTPError
from projectassist.core.operations.base import OperationContext
from projectassist.core.operations.errors import OperationFailed
from projectassist.core.operations.registry import ActionDispatcher
from projectassist.core.orchestration.history import ConversationHistory

from .llm_openai_compat import OpenAICompatClient
from .prompts import AGENT_INSTRUCTIONS
from .tool_calling import ToolCall, parse_tool_calls


class LLMUnavailable(RuntimeError):
    pass


class LLMOutputError(RuntimeError):
    pass


class GenerationBackend(Protocol):
    def generate(self, history: ConversationHistory, dispatcher: ActionDispatcher, context: OperationContext) -> str: ...


def _get_int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


@dataclass
class LLMConfig:
    provider: str
    model: str
    timeout_s: float
    temperature: float
    max_tokens: int
    max_tool_rounds: int

    @classmethod
    def from_env(cls) -> LLMConfig:
        return cls(
            provider=os.getenv("PROJECTASSIST_LLM_PROVIDER", "off").strip().casefold(),
            model=os.getenv("PROJECTASSIST_LLM_MODEL", "gpt-4o-mini"),
            timeout_s=_get_float_env("PROJECTASSIST_LLM_TIMEOUT_S", 60.0),
            temperature=_get_float_env("PROJECTASSIST_LLM_TEMPERATURE", 0.2),
            max_tokens=_get_int_env("PROJECTASSIST_LLM_MAX_TOKENS", 1500),
            max_tool_rounds=max(0, _get_int_env("PROJECTASSIST_LLM_MAX_TOOL_ROUNDS", 8)),
        )


def build_compat_client(config: LLMConfig) -> OpenAICompatClient:
    api_key = os.getenv("PROJECTASSIST_LLM_API_KEY", "")
    if config.provider == "azure":
        endpoint = os.getenv("PROJECTASSIST_AZURE_OPENAI_ENDPOINT", "").rstrip("/")
        deployment = os.getenv("PROJECTASSIST_AZURE_OPENAI_DEPLOYMENT", config.model)
        api_version = os.getenv("PROJECTASSIST_AZURE_OPENAI_API_VERSION", "2024-06-01")
        url = f"{endpoint}/openai/deployments/{deployment}/chat/completions?api-version={api_version}"
        return OpenAICompatClient(url=url, model=config.model, api_key=api_key, timeout_s=config.timeout_s, api_key_header="api-key")
    url = os.getenv("PROJECTASSIST_LLM_URL", "https://api.openai.com/v1/chat/completions")
    return OpenAICompatClient(url=url, model=config.model, api_key=api_key, timeout_s=config.timeout_s)


class ProjectAssistLLM:
    """Chat-completions backend that may call operations before answering.

    Assistant text fragments are concatenated, in emission order, into the raw
    output. The history is only read; operation calls, their results and the
    fragments live in the request transcript, and the orchestrator records the
    raw output as the generated turn.
    """

    def __init__(self, config: LLMConfig | None = None, client: OpenAICompatClient | None = None) -> None:
        self.config = config or LLMConfig.from_env()
        self._compat = client or build_compat_client(self.config)
        self.logger = logging.getLogger("projectassist.llm")

    @property
    def enabled(self) -> bool:
        return self.config.provider in {"openai", "azure"}

    def generate(self, history: ConversationHistory, dispatcher: ActionDispatcher, context: OperationContext) -> str:
        messages: list[dict] = [{"role": "system", "content": AGENT_INSTRUCTIONS}, *history.to_messages()]
        tools = dispatcher.tool_specs()
        fragments: list[str] = []

        for _ in range(self.config.max_tool_rounds + 1):
            message = self._call(messages, tools)
            content = str(message.get("content") or "")
            if content:
                fragments.append(content)

            calls = parse_tool_calls(message)
            if not calls:
                return "".join(fragments)

            messages.append({"role": "assistant", "content": content or None, "tool_calls": message.get("tool_calls")})
            for call in calls:
                messages.append({"role": "tool", "tool_call_id": call.id, "content": self._run_tool(call, dispatcher, context)})

        raise LLMOutputError(f"operation call rounds exceeded {self.config.max_tool_rounds}")

    def _run_tool(self, call: ToolCall, dispatcher: ActionDispatcher, context: OperationContext) -> str:
        try:
            return dispatcher.dispatch(call.name, call.arguments, context).content
        except OperationFailed as exc:
            # Returned to the model so it can recover, e.g. by asking a clarifying question.
            return json.dumps({"error": str(exc), "operation": exc.operation}, ensure_ascii=False)

    def _call(self, messages: list[dict], tools: list[dict]) -> dict:
        if not self.enabled:
            raise LLMUnavailable(f"LLM provider is {self.config.provider}")

        start = time.perf_counter()
        ok = False
        try:
            message = self._compat.chat_completion(
                messages=messages,
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
                tools=tools,
                response_format={"type": "json_object"},
            )
            ok = True
            return message
        except (ProjectAssistHTTPError, ValueError) as exc:
            raise LLMUnavailable(f"LLM request failed: {exc}") from exc
        finally:
            self.logger.info(
                "llm_call",
                extra={
                    "extra_fields": {
                        "provider": self.config.provider,
                        "model": self.config.model,
                        "duration_ms": int((time.perf_counter() - start) * 1000),
                        "ok": ok,
                        "message_count": len(messages),
                    }
                },
            )
