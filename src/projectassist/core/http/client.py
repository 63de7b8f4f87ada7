from __future__ import annotations

import os
import random
import threading
import time
from dataclasses import dataclass
from email.utils import parsedate_to_datetime
from datetime import datetime, timezone

import httpx

from .errors import ProjectAssistHTTPNetworkError, ProjectAssistHTTPStatusError

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})
_TRANSIENT_ERRORS = (httpx.ConnectError, httpx.ReadTimeout, httpx.RemoteProtocolError)
_MAX_ERROR_BODY_CHARS = 500

_client: httpx.Client | None = None
_client_lock = threading.Lock()


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except ValueError:
        return default


@dataclass(frozen=True)
class TransportSettings:
    timeout_s: float = 15.0
    connect_timeout_s: float = 5.0
    retries: int = 0
    backoff_base_s: float = 0.25
    backoff_max_s: float = 2.0
    user_agent: str = "ProjectAssist/1.0"

    @classmethod
    def from_env(cls) -> TransportSettings:
        return cls(
            timeout_s=max(0.1, _env_float("PROJECTASSIST_HTTP_TIMEOUT_S", cls.timeout_s)),
            connect_timeout_s=max(0.1, _env_float("PROJECTASSIST_HTTP_CONNECT_TIMEOUT_S", cls.connect_timeout_s)),
            retries=max(0, _env_int("PROJECTASSIST_HTTP_RETRIES", cls.retries)),
            backoff_base_s=max(0.01, _env_float("PROJECTASSIST_HTTP_BACKOFF_BASE_S", cls.backoff_base_s)),
            backoff_max_s=max(0.01, _env_float("PROJECTASSIST_HTTP_BACKOFF_MAX_S", cls.backoff_max_s)),
            user_agent=os.getenv("PROJECTASSIST_HTTP_USER_AGENT", cls.user_agent),
        )

    def timeout(self, total_s: float | None = None) -> httpx.Timeout:
        read_s = max(0.1, total_s if total_s is not None else self.timeout_s)
        return httpx.Timeout(read_s, connect=min(self.connect_timeout_s, read_s))

    def backoff(self, attempt: int, retry_after_s: float | None = None) -> float:
        if retry_after_s is not None:
            return min(self.backoff_max_s, retry_after_s)
        return min(self.backoff_max_s, self.backoff_base_s * (2**attempt)) * (0.5 + random.random())


def get_http_client() -> httpx.Client:
    global _client
    if _client is None:
        with _client_lock:
            if _client is None:
                settings = TransportSettings.from_env()
                _client = httpx.Client(timeout=settings.timeout(), headers={"User-Agent": settings.user_agent})
    return _client


def close_http_client() -> None:
    global _client
    with _client_lock:
        if _client is not None:
            _client.close()
            _client = None


def retry_after_seconds(response: httpx.Response) -> float | None:
    """Parse a Retry-After header (seconds or HTTP date) as sent by throttled Graph calls."""
    raw = response.headers.get("Retry-After")
    if not raw:
        return None
    raw = raw.strip()
    if raw.isdigit():
        return float(raw)
    try:
        when = parsedate_to_datetime(raw)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


def request_with_retry(
    method: str,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    params: dict[str, str] | None = None,
    json: object | None = None,
    timeout_override: float | None = None,
    retries: int | None = None,
    allowed_statuses: set[int] | None = None,
    redact_url: bool = False,
) -> httpx.Response:
    """Send one request, retrying transient failures only when retries are configured.

    ``retries`` overrides ``PROJECTASSIST_HTTP_RETRIES`` (default 0). Non-success
    statuses raise ProjectAssistHTTPStatusError unless listed in
    ``allowed_statuses``; transport failures raise ProjectAssistHTTPNetworkError.
    """
    settings = TransportSettings.from_env()
    max_retries = settings.retries if retries is None else max(0, retries)
    shown_url = "[redacted-url]" if redact_url else url
    timeout = settings.timeout(timeout_override) if timeout_override is not None else None
    client = get_http_client()

    attempt = 0
    while True:
        try:
            response = client.request(method, url, headers=headers or None, params=params, json=json, timeout=timeout)
        except _TRANSIENT_ERRORS as exc:
            if attempt >= max_retries:
                raise ProjectAssistHTTPNetworkError(
                    f"{method} {shown_url} failed after {attempt + 1} attempt(s): {exc.__class__.__name__}"
                ) from exc
            time.sleep(settings.backoff(attempt))
            attempt += 1
            continue
        except httpx.HTTPError as exc:
            raise ProjectAssistHTTPNetworkError(f"{method} {shown_url} failed: {exc.__class__.__name__}") from exc

        status = response.status_code
        if response.is_success or (allowed_statuses is not None and status in allowed_statuses):
            return response

        retry_after = retry_after_seconds(response)
        if status in RETRYABLE_STATUS_CODES and attempt < max_retries:
            time.sleep(settings.backoff(attempt, retry_after))
            attempt += 1
            continue
        raise ProjectAssistHTTPStatusError(
            f"HTTP status {status} for {shown_url}",
            status_code=status,
            body=response.text[:_MAX_ERROR_BODY_CHARS],
            retry_after_s=retry_after,
        )
