from __future__ import annotations


class ProjectAssistHTTPError(RuntimeError):
    """Base error for calls made through the shared HTTP client."""


class ProjectAssistHTTPStatusError(ProjectAssistHTTPError):
    """The remote service answered with a non-success status."""

    def __init__(self, message: str, status_code: int | None = None, body: str = "", retry_after_s: float | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.retry_after_s = retry_after_s

    @property
    def throttled(self) -> bool:
        return self.status_code == 429


class ProjectAssistHTTPNetworkError(ProjectAssistHTTPError):
    """No response was received: connect failure, timeout or protocol error."""
