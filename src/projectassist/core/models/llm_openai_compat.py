from __future__ import annotations

from projectassist.core.http.client import request_with_retry


class OpenAICompatClient:
    def __init__(
        self,
        url: str,
        model: str,
        api_key: str = "",
        timeout_s: float = 60.0,
        api_key_header: str = "Authorization",
    ) -> None:
        self.url = url
        self.model = model
        self.api_key = api_key
        self.timeout_s = timeout_s
        self.api_key_header = api_key_header

    def chat_completion(
        self,
        messages: list[dict],
        temperature: float,
        max_tokens: int,
        tools: list[dict] | None = None,
        response_format: dict | None = None,
    ) -> dict:
        payload: dict[str, object] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if tools:
            payload["tools"] = tools
            payload["tool_choice"] = "auto"
        if response_format is not None:
            payload["response_format"] = response_format

        response = request_with_retry(
            "POST",
            self.url,
            headers=self._headers(),
            json=payload,
            timeout_override=self.timeout_s,
            retries=0,
            redact_url=True,
        )
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"chat completion body must be a JSON object, got {type(data).__name__}")
        choices = data.get("choices") or []
        if not choices or not isinstance(choices[0], dict):
            return {}
        message = choices[0].get("message") or {}
        return message if isinstance(message, dict) else {}

    def _headers(self) -> dict[str, str]:
        if not self.api_key:
            return {}
        if self.api_key_header == "Authorization":
            return {"Authorization": f"Bearer {self.api_key}"}
        return {self.api_key_header: self.api_key}
