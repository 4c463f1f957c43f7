"""Async client for the Ghost Admin API posts resource.

Every call signs a new token before touching the network, so a bad URL or
key fails with ConfigurationError/AuthError without a request being made.
Unexpected HTTP statuses raise BackendError carrying status and body
verbatim; transport failures raise NetworkError.
"""

from __future__ import annotations

import calendar
import logging
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from ghostpub.config import Settings
from ghostpub.core.models import RemoteArticle
from ghostpub.exceptions import BackendError, ConfigurationError, NetworkError
from ghostpub.ghost.token import sign_admin_token


logger = logging.getLogger(__name__)

API_ROOT = "/ghost/api/admin"
READ_PARAMS = {"formats": "html,lexical", "include": "tags"}


def month_filter(year: int, month: int) -> str:
    """Filter DSL selecting published/scheduled posts whose publish date falls in a UTC month."""
    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    end = datetime(year, month, last_day, 23, 59, 59, tzinfo=timezone.utc)

    def iso(dt: datetime) -> str:
        return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    return f"status:[published,scheduled]+published_at:>='{iso(start)}'+published_at:<='{iso(end)}'"


class GhostClient:
    """Admin API client. Use as an async context manager, or call aclose() when done."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        api_version: str = "v5.0",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = (base_url or "").strip().rstrip("/")
        self._api_key = api_key
        self._api_version = api_version
        self._timeout = timeout
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> GhostClient:
        return cls(
            settings.require_url(),
            settings.api_key(),
            api_version=settings.api_version,
            timeout=settings.request_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> GhostClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    def update_credentials(self, base_url: str, api_key: str) -> None:
        self._base_url = (base_url or "").strip().rstrip("/")
        self._api_key = api_key

    def _headers(self) -> dict[str, str]:
        if not self._base_url:
            raise ConfigurationError("Ghost URL not configured")
        return {
            "Authorization": f"Ghost {sign_admin_token(self._api_key)}",
            "Content-Type": "application/json",
            "Accept-Version": self._api_version,
        }

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._http

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        params: Optional[dict[str, Any]] = None,
        body: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        headers = self._headers()
        url = f"{self._base_url}{API_ROOT}{endpoint}"
        logger.debug("%s %s", method, url)
        try:
            return await self._client().request(method, url, params=params, json=body, headers=headers)
        except httpx.TransportError as e:
            raise NetworkError(f"{method} {url} failed: {e}") from e

    @staticmethod
    def _expect(response: httpx.Response, status: int, operation: str) -> None:
        if response.status_code != status:
            raise BackendError(operation, response.status_code, response.text)

    @staticmethod
    def _posts(response: httpx.Response) -> list[RemoteArticle]:
        return [RemoteArticle.model_validate(p) for p in response.json().get("posts") or []]

    @classmethod
    def _first(cls, response: httpx.Response, action: str) -> RemoteArticle:
        posts = cls._posts(response)
        if not posts:
            raise BackendError(action, response.status_code, response.text)
        return posts[0]

    async def test_connection(self) -> bool:
        response = await self._request("GET", "/site/")
        self._expect(response, 200, "connect to Ghost")
        return True

    async def list_articles(self, filter: Optional[str] = None, limit: Optional[int | str] = None) -> list[RemoteArticle]:
        params = dict(READ_PARAMS)
        if filter:
            params["filter"] = filter
        if limit is not None:
            params["limit"] = str(limit)
        response = await self._request("GET", "/posts/", params=params)
        self._expect(response, 200, "fetch posts")
        return self._posts(response)

    async def get_article(self, article_id: str) -> RemoteArticle:
        response = await self._request("GET", f"/posts/{article_id}/", params=READ_PARAMS)
        self._expect(response, 200, "fetch post")
        return self._first(response, "fetch post")

    async def create_article(self, payload: dict[str, Any]) -> RemoteArticle:
        response = await self._request("POST", "/posts/", body={"posts": [payload]})
        self._expect(response, 201, "create post")
        return self._first(response, "create post")

    async def update_article(self, article_id: str, payload: dict[str, Any]) -> RemoteArticle:
        """Update a post, sending the server's current updated_at for its collision check."""
        current = await self.get_article(article_id)
        versioned = {**payload, "updated_at": current.updated_at}
        logger.debug("Sending update for %s with fields %s", article_id, sorted(versioned))
        response = await self._request("PUT", f"/posts/{article_id}/", body={"posts": [versioned]})
        self._expect(response, 200, "update post")
        return self._first(response, "update post")

    async def delete_article(self, article_id: str) -> None:
        response = await self._request("DELETE", f"/posts/{article_id}/")
        self._expect(response, 204, "delete post")
