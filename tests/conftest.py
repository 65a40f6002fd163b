"""Shared fixtures: a throwaway database and a fake Moltbook API."""

from datetime import timedelta
from typing import Optional

import httpx
import pytest

from moltnet.config import Config
from moltnet.database import Database, init_db
from moltnet.timestamps import format_ts, utc_now

BASE_URL = "https://moltbook.test/api/v1"


class FakeMoltbook:
    """Serves canned JSON per endpoint through httpx.MockTransport."""

    def __init__(self):
        self.responses: dict[str, tuple[int, object]] = {}
        self.requests: list[httpx.Request] = []

    def set(self, key: str, body, status: int = 200) -> None:
        """Register a response. Posts are keyed by sort, e.g. ``/posts?sort=new``."""
        self.responses[key] = (status, body)

    def set_posts(self, sort: str, posts: list[dict]) -> None:
        self.set(f"/posts?sort={sort}", {"success": True, "posts": posts})

    def set_comments(self, post_id: str, comments: list[dict], status: int = 200) -> None:
        self.set(f"/posts/{post_id}/comments", {"success": True, "comments": comments}, status)

    def paths(self) -> list[str]:
        return [r.url.path.removeprefix("/api/v1") for r in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = request.url.path.removeprefix("/api/v1")
        if key == "/posts":
            key = f"/posts?sort={request.url.params.get('sort')}"
        if key not in self.responses:
            return httpx.Response(404, json={"success": False, "error": "Not found"})
        status, body = self.responses[key]
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def agent(agent_id: str, name: Optional[str] = None, **extra) -> dict:
    return {"id": agent_id, "name": name or agent_id, **extra}


def make_post(
    post_id: str,
    author: Optional[str] = "alice",
    submolt: Optional[str] = "general",
    upvotes: int = 0,
    downvotes: int = 0,
    comment_count: int = 0,
    age_hours: float = 1,
    **extra,
) -> dict:
    return {
        "id": post_id,
        "title": f"Post {post_id}",
        "content": f"Body of {post_id}",
        "url": None,
        "upvotes": upvotes,
        "downvotes": downvotes,
        "comment_count": comment_count,
        "created_at": format_ts(utc_now() - timedelta(hours=age_hours)),
        "author": agent(author) if author else None,
        "submolt": {"id": f"sub-{submolt}", "name": submolt, "display_name": submolt.title()} if submolt else None,
        **extra,
    }


def make_comment(comment_id: str, author: Optional[str], parent_id: Optional[str] = None, **extra) -> dict:
    return {
        "id": comment_id,
        "content": f"Comment {comment_id}",
        "upvotes": 1,
        "downvotes": 0,
        "created_at": "2026-01-30T12:00:00.000Z",
        "parent_id": parent_id,
        "author": agent(author) if author else None,
        **extra,
    }


@pytest.fixture
def config(tmp_path) -> Config:
    return Config(
        MOLTBOOK_API_KEY="test-key",
        MOLTBOOK_BASE_URL=BASE_URL,
        DATABASE_PATH=tmp_path / "moltnet.db",
        POST_SORT_DELAY=0,
        COMMENT_DELAY=0,
        SUBMOLT_DELAY=0,
        RUN_TIMEOUT=30,
        DISABLE_POLL=True,
    )


@pytest.fixture
async def db(config):
    database = Database(config.DATABASE_PATH)
    await database.connect()
    await init_db(database)
    yield database
    await database.close()


@pytest.fixture
def fake_api() -> FakeMoltbook:
    return FakeMoltbook()


async def count_rows(db: Database, table: str) -> int:
    row = await db.fetch_one(f"SELECT COUNT(*) AS n FROM {table}")
    return row["n"]
