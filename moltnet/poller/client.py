"""Moltbook API client - read-only access to public data."""

import logging
from typing import Any, Optional

import httpx

from moltnet.config import Config
from moltnet.errors import RemoteMalformed, RemoteUnavailable

logger = logging.getLogger(__name__)


class MoltbookClient:
    """Async client for the Moltbook API.

    Every call is a single attempt: failures surface as ``RemoteUnavailable``
    or ``RemoteMalformed`` and the caller decides what to skip.
    """

    def __init__(self, config: Config, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.client = httpx.AsyncClient(
            base_url=config.MOLTBOOK_BASE_URL,
            timeout=config.HTTP_TIMEOUT,
            transport=transport,
            headers={
                "Authorization": f"Bearer {config.MOLTBOOK_API_KEY}",
                "User-Agent": config.USER_AGENT,
                "Accept": "application/json",
            },
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "MoltbookClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def fetch(self, endpoint: str, params: Optional[dict] = None) -> Any:
        """
        GET an endpoint and return the decoded JSON body.

        Args:
            endpoint: Path relative to the API base URL, e.g. ``/posts``
            params: Query parameters (``limit``, ``sort``, page cursors, ...)

        Raises:
            RemoteUnavailable: transport failure or non-2xx status
            RemoteMalformed: the body is not JSON
        """
        logger.debug("GET %s %s", endpoint, params or "")
        try:
            response = await self.client.get(endpoint, params=params)
        except httpx.HTTPError as e:
            raise RemoteUnavailable(f"Moltbook API request to {endpoint} failed: {e}") from e

        if not response.is_success:
            raise RemoteUnavailable(
                f"Moltbook API error: {response.status_code} on {endpoint}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise RemoteMalformed(f"Moltbook API returned non-JSON body for {endpoint}") from e

    # --------------------------
    # Response-shape helpers
    # --------------------------
    @staticmethod
    def _list_from(resp: Any, key: str, endpoint: str) -> list[dict]:
        """Extract the list under ``key``; some endpoints return a bare list."""
        if isinstance(resp, dict):
            resp = resp.get(key)
            if resp is None:
                return []
        if not isinstance(resp, list):
            raise RemoteMalformed(f"Expected a list of {key} from {endpoint}")
        return [item for item in resp if isinstance(item, dict)]

    async def get_stats(self) -> dict:
        """Platform-wide totals as reported by Moltbook."""
        data = await self.fetch("/stats")
        if not isinstance(data, dict):
            raise RemoteMalformed("Expected an object from /stats")
        return data

    async def get_submolts(self, limit: int = 1000) -> list[dict]:
        """List submolts."""
        data = await self.fetch("/submolts", {"limit": limit})
        return self._list_from(data, "submolts", "/submolts")

    async def get_submolt(self, name: str) -> dict:
        """
        Get a submolt with its recent posts.

        Returns ``{"submolt": {...}, "posts": [...]}``.
        """
        endpoint = f"/submolts/{name}"
        data = await self.fetch(endpoint)
        if not isinstance(data, dict):
            raise RemoteMalformed(f"Expected an object from {endpoint}")
        submolt = data.get("submolt") or {}
        if not isinstance(submolt, dict):
            raise RemoteMalformed(f"Unexpected submolt shape from {endpoint}")
        return {"submolt": submolt, "posts": self._list_from(data, "posts", endpoint)}

    async def get_posts(self, sort: str = "new", limit: int = 100) -> list[dict]:
        """
        Fetch posts from Moltbook.

        Args:
            sort: Sort order - 'new', 'hot', 'top'
            limit: Number of posts to fetch
        """
        data = await self.fetch("/posts", {"limit": limit, "sort": sort})
        return self._list_from(data, "posts", "/posts")

    async def get_post_comments(self, post_id: str, limit: int = 500) -> list[dict]:
        """Fetch comments on a post, possibly nested under ``replies``."""
        endpoint = f"/posts/{post_id}/comments"
        data = await self.fetch(endpoint, {"limit": limit})
        return self._list_from(data, "comments", endpoint)
