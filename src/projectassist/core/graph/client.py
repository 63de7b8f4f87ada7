from __future__ import annotations

import logging
import os
from urllib.parse import quote

from projectassist.core.http.client import request_with_retry

DEFAULT_GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
DEFAULT_MAX_PAGES = 20

logger = logging.getLogger(__name__)


class GraphClient:
    """Bearer-authenticated JSON calls against the Graph REST API."""

    def __init__(self, base_url: str | None = None, max_pages: int = DEFAULT_MAX_PAGES) -> None:
        configured = base_url or os.getenv("PROJECTASSIST_GRAPH_BASE_URL", DEFAULT_GRAPH_BASE_URL)
        self.base_url = configured.rstrip("/")
        self.max_pages = max(1, max_pages)

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def get(self, access_token: str, path: str, params: dict[str, str] | None = None) -> dict:
        response = request_with_retry("GET", self.url(path), headers=self._headers(access_token), params=params)
        payload = response.json()
        return payload if isinstance(payload, dict) else {"value": payload}

    def get_collection(self, access_token: str, path: str, params: dict[str, str] | None = None) -> list[dict]:
        """Collect every item of a paged collection, following @odata.nextLink up to the page limit."""
        items: list[dict] = []
        page = self.get(access_token, path, params=params)
        pages = 1
        while True:
            items.extend(item for item in page.get("value") or [] if isinstance(item, dict))
            next_link = page.get("@odata.nextLink")
            if not next_link:
                return items
            if pages >= self.max_pages:
                logger.warning(
                    "graph_collection_truncated",
                    extra={"extra_fields": {"path": path, "pages": pages, "items": len(items)}},
                )
                return items
            response = request_with_retry("GET", str(next_link), headers=self._headers(access_token))
            payload = response.json()
            page = payload if isinstance(payload, dict) else {"value": payload}
            pages += 1

    def post(self, access_token: str, path: str, body: dict) -> dict:
        response = request_with_retry("POST", self.url(path), headers=self._headers(access_token), json=body)
        if not response.content:
            return {}
        payload = response.json()
        return payload if isinstance(payload, dict) else {}

    def _headers(self, access_token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {access_token}", "Accept": "application/json"}


def quote_segment(value: str) -> str:
    return quote(value, safe="@")
