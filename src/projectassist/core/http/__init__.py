from .client import TransportSettings, close_http_client, get_http_client, request_with_retry
from .errors import ProjectAssistHTTPError, ProjectAssistHTTPNetworkError, ProjectAssistHTTPStatusError

__all__ = [
    "TransportSettings",
    "close_http_client",
    "get_http_client",
    "request_with_retry",
    "ProjectAssistHTTPError",
    "ProjectAssistHTTPNetworkError",
    "ProjectAssistHTTPStatusError",
]
