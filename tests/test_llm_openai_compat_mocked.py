from __future__ import annotations

import json

import httpx
import pytest

from projectassist.core.models.llm_openai_compat import OpenAICompatClient
from projectassist.core.models.llm_provider import LLMConfig, build_compat_client


def _install(monkeypatch: pytest.MonkeyPatch, seen: list[httpx.Request], message: dict) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"choices": [{"message": message}]})

    client = httpx.Client(transport=httpx.MockTransport(handler))
    monkeypatch.setattr("projectassist.core.http.client.get_http_client", lambda: client)


def test_chat_completion_sends_tools_and_json_mode(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[httpx.Request] = []
    _install(monkeypatch, seen, {"role": "assistant", "content": "{}"})
    tools = [{"type": "function", "function": {"name": "list_tasks", "parameters": {"type": "object"}}}]

    message = OpenAICompatClient(url="https://llm.test/v1/chat/completions", model="gpt-test", api_key="sk-1").chat_completion(
        messages=[{"role": "user", "content": "hi"}],
        temperature=0.1,
        max_tokens=50,
        tools=tools,
        response_format={"type": "json_object"},
    )

    assert message == {"role": "assistant", "content": "{}"}
    payload = json.loads(seen[0].content)
    assert payload["model"] == "gpt-test"
    assert payload["tools"] == tools
    assert payload["tool_choice"] == "auto"
    assert payload["response_format"] == {"type": "json_object"}
    assert seen[0].headers["Authorization"] == "Bearer sk-1"


def test_azure_client_uses_deployment_url_and_api_key_header(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROJECTASSIST_LLM_API_KEY", "azure-key")
    monkeypatch.setenv("PROJECTASSIST_AZURE_OPENAI_ENDPOINT", "https://contoso.openai.azure.com/")
    monkeypatch.setenv("PROJECTASSIST_AZURE_OPENAI_DEPLOYMENT", "pm-gpt")
    monkeypatch.setenv("PROJECTASSIST_AZURE_OPENAI_API_VERSION", "2024-06-01")
    seen: list[httpx.Request] = []
    _install(monkeypatch, seen, {"content": "{}"})

    config = LLMConfig(provider="azure", model="gpt-4o", timeout_s=5.0, temperature=0.0, max_tokens=10, max_tool_rounds=1)
    build_compat_client(config).chat_completion(messages=[], temperature=0.0, max_tokens=10)

    request = seen[0]
    assert request.url.host == "contoso.openai.azure.com"
    assert request.url.path == "/openai/deployments/pm-gpt/chat/completions"
    assert request.url.params["api-version"] == "2024-06-01"
    assert request.headers["api-key"] == "azure-key"
    assert "Authorization" not in request.headers
    assert "tools" not in json.loads(request.content)


def test_missing_choices_yield_empty_message(monkeypatch: pytest.MonkeyPatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"choices": []})

    client = httpx.Client(transport=httpx.MockTransport(handler))
    monkeypatch.setattr("projectassist.core.http.client.get_http_client", lambda: client)

    assert OpenAICompatClient(url="https://llm.test/v1", model="m").chat_completion(messages=[], temperature=0, max_tokens=1) == {}


def test_non_object_body_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200, json=["unexpected"])))
    monkeypatch.setattr("projectassist.core.http.client.get_http_client", lambda: client)

    with pytest.raises(ValueError):
        OpenAICompatClient(url="https://llm.test/v1", model="m").chat_completion(messages=[], temperature=0, max_tokens=1)
