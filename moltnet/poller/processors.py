"""Process API responses into database records.

Every write is an idempotent merge keyed by the platform id: first-seen and
remote creation timestamps are set once, everything else is refreshed.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from moltnet.database.connection import Database
from moltnet.poller.graph import derive_interactions, flatten_comments, record_interaction
from moltnet.poller.history import post_counts, record_score_change
from moltnet.timestamps import normalize_ts, now_iso

logger = logging.getLogger(__name__)


@dataclass
class PostBatchResult:
    processed: int = 0
    history_rows: int = 0


@dataclass
class CommentBatchResult:
    processed: int = 0
    interactions: int = 0


def _optional_int(value) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def author_of(record: dict) -> Optional[dict]:
    """Return the embedded author object if it carries an id.

    The API uses "author" but older payloads say "agent"; a bare name string
    cannot be keyed and is treated as unknown.
    """
    author = record.get("author") or record.get("agent")
    if isinstance(author, dict) and author.get("id"):
        return author
    return None


def submolt_of(record: dict) -> Optional[dict]:
    submolt = record.get("submolt")
    if isinstance(submolt, dict) and submolt.get("id"):
        return submolt
    return None


async def upsert_agent(db: Database, agent: dict, observed_at: Optional[str] = None) -> bool:
    """Insert or refresh an agent. Counters missing from the payload keep their stored values."""
    agent_id = agent.get("id")
    if not agent_id:
        logger.debug("Skipping agent without id: %r", agent.get("name"))
        return False

    await db.execute("""
        INSERT INTO agents (
            id, name, description, karma, post_count, comment_count,
            follower_count, following_count, created_at, first_seen_at, last_updated_at
        )
        VALUES (
            :id, COALESCE(:name, :id), :description,
            COALESCE(:karma, 0), COALESCE(:post_count, 0), COALESCE(:comment_count, 0),
            COALESCE(:follower_count, 0), COALESCE(:following_count, 0),
            :created_at, :now, :now
        )
        ON CONFLICT (id) DO UPDATE SET
            name = COALESCE(:name, agents.name),
            description = COALESCE(:description, agents.description),
            karma = COALESCE(:karma, agents.karma),
            post_count = COALESCE(:post_count, agents.post_count),
            comment_count = COALESCE(:comment_count, agents.comment_count),
            follower_count = COALESCE(:follower_count, agents.follower_count),
            following_count = COALESCE(:following_count, agents.following_count),
            created_at = COALESCE(agents.created_at, excluded.created_at),
            last_updated_at = excluded.last_updated_at
    """, {
        "id": agent_id,
        "name": agent.get("name"),
        "description": agent.get("description"),
        "karma": _optional_int(agent.get("karma")),
        "post_count": _optional_int(agent.get("post_count")),
        "comment_count": _optional_int(agent.get("comment_count")),
        "follower_count": _optional_int(agent.get("follower_count")),
        "following_count": _optional_int(agent.get("following_count")),
        "created_at": normalize_ts(agent.get("created_at")),
        "now": observed_at or now_iso(),
    })
    return True


async def upsert_submolt(db: Database, submolt: dict, observed_at: Optional[str] = None) -> bool:
    """Insert or refresh a submolt (full listing entry or the stub embedded in a post)."""
    submolt_id = submolt.get("id")
    if not submolt_id:
        logger.debug("Skipping submolt without id: %r", submolt.get("name"))
        return False

    await db.execute("""
        INSERT INTO submolts (
            id, name, display_name, description, subscriber_count, post_count,
            created_at, first_seen_at, last_updated_at
        )
        VALUES (
            :id, COALESCE(:name, :id), COALESCE(:display_name, :name), :description,
            COALESCE(:subscriber_count, 0), COALESCE(:post_count, 0),
            :created_at, :now, :now
        )
        ON CONFLICT (id) DO UPDATE SET
            name = COALESCE(:name, submolts.name),
            display_name = COALESCE(:display_name, submolts.display_name),
            description = COALESCE(:description, submolts.description),
            subscriber_count = COALESCE(:subscriber_count, submolts.subscriber_count),
            post_count = COALESCE(:post_count, submolts.post_count),
            created_at = COALESCE(submolts.created_at, excluded.created_at),
            last_updated_at = excluded.last_updated_at
    """, {
        "id": submolt_id,
        "name": submolt.get("name"),
        "display_name": submolt.get("display_name"),
        "description": submolt.get("description"),
        "subscriber_count": _optional_int(submolt.get("subscriber_count")),
        "post_count": _optional_int(submolt.get("post_count")),
        "created_at": normalize_ts(submolt.get("created_at")),
        "now": observed_at or now_iso(),
    })
    return True


async def upsert_post(db: Database, post: dict, observed_at: Optional[str] = None) -> bool:
    """
    Insert or refresh a post.

    Only the vote and comment counters change on re-observation. A missing
    author or submolt is filled in once a later crawl supplies it.
    """
    post_id = post.get("id")
    if not post_id:
        return False

    author = author_of(post)
    submolt = submolt_of(post)
    upvotes, downvotes, comment_count = post_counts(post)

    await db.execute("""
        INSERT INTO posts (
            id, title, content, url, author_id, submolt_id,
            upvotes, downvotes, comment_count, created_at, first_seen_at, last_updated_at
        )
        VALUES (
            :id, :title, :content, :url, :author_id, :submolt_id,
            :upvotes, :downvotes, :comment_count, :created_at, :now, :now
        )
        ON CONFLICT (id) DO UPDATE SET
            upvotes = excluded.upvotes,
            downvotes = excluded.downvotes,
            comment_count = excluded.comment_count,
            author_id = COALESCE(posts.author_id, excluded.author_id),
            submolt_id = COALESCE(posts.submolt_id, excluded.submolt_id),
            created_at = COALESCE(posts.created_at, excluded.created_at),
            last_updated_at = excluded.last_updated_at
    """, {
        "id": post_id,
        "title": post.get("title") or "",
        "content": post.get("content"),
        "url": post.get("url"),
        "author_id": author["id"] if author else None,
        "submolt_id": submolt["id"] if submolt else None,
        "upvotes": upvotes,
        "downvotes": downvotes,
        "comment_count": comment_count,
        "created_at": normalize_ts(post.get("created_at")),
        "now": observed_at or now_iso(),
    })
    return True


async def upsert_comment(
    db: Database,
    post_id: str,
    comment: dict,
    parent_id: Optional[str] = None,
    observed_at: Optional[str] = None,
) -> bool:
    """Insert or refresh a comment; votes are the only fields refreshed."""
    comment_id = comment.get("id")
    if not comment_id:
        return False

    author = author_of(comment)

    await db.execute("""
        INSERT INTO comments (
            id, post_id, parent_comment_id, author_id, content,
            upvotes, downvotes, created_at, first_seen_at, last_updated_at
        )
        VALUES (
            :id, :post_id, :parent_id, :author_id, :content,
            :upvotes, :downvotes, :created_at, :now, :now
        )
        ON CONFLICT (id) DO UPDATE SET
            upvotes = excluded.upvotes,
            downvotes = excluded.downvotes,
            author_id = COALESCE(comments.author_id, excluded.author_id),
            parent_comment_id = COALESCE(comments.parent_comment_id, excluded.parent_comment_id),
            created_at = COALESCE(comments.created_at, excluded.created_at),
            last_updated_at = excluded.last_updated_at
    """, {
        "id": comment_id,
        "post_id": post_id,
        "parent_id": parent_id or comment.get("parent_id"),
        "author_id": author["id"] if author else None,
        "content": comment.get("content"),
        "upvotes": _optional_int(comment.get("upvotes")) or 0,
        "downvotes": _optional_int(comment.get("downvotes")) or 0,
        "created_at": normalize_ts(comment.get("created_at")),
        "now": observed_at or now_iso(),
    })
    return True


async def process_submolts(db: Database, submolts: list[dict]) -> int:
    """
    Store a page of submolts.

    Returns number of submolts processed.
    """
    now = now_iso()
    count = 0
    for submolt in submolts:
        if await upsert_submolt(db, submolt, observed_at=now):
            count += 1

    await db.commit()
    return count


async def process_posts(db: Database, posts: list[dict]) -> PostBatchResult:
    """
    Store a page of posts with their authors and submolts.

    Score history is recorded before each post is upserted, since the
    comparison needs the previously stored counters.
    """
    result = PostBatchResult()
    now = now_iso()

    for post in posts:
        if not post.get("id"):
            continue

        # Referenced rows first, so readers never see a post ahead of its author
        author = author_of(post)
        if author:
            await upsert_agent(db, author, observed_at=now)
        submolt = submolt_of(post)
        if submolt:
            await upsert_submolt(db, submolt, observed_at=now)

        if await record_score_change(db, post, captured_at=now):
            result.history_rows += 1

        await upsert_post(db, post, observed_at=now)
        result.processed += 1

    await db.commit()
    return result


async def process_comments(db: Database, post_id: str, comments: list[dict]) -> CommentBatchResult:
    """
    Store the comments of one post and fold them into the interaction graph.

    Nested ``replies`` are flattened parent-first so a reply can resolve its
    parent's author from this batch before falling back to the database.
    Nothing is committed if any comment fails.
    """
    result = CommentBatchResult()
    now = now_iso()

    post = await db.fetch_one("SELECT author_id FROM posts WHERE id = ?", (post_id,))
    post_author_id = post["author_id"] if post else None

    # comment id -> author id, for comments seen in this batch
    authors: dict[str, Optional[str]] = {}

    for comment, parent_id in flatten_comments(comments):
        comment_id = comment.get("id")
        if not comment_id:
            continue

        author = author_of(comment)
        if author:
            await upsert_agent(db, author, observed_at=now)
        await upsert_comment(db, post_id, comment, parent_id=parent_id, observed_at=now)
        result.processed += 1

        commenter_id = author["id"] if author else None
        authors[comment_id] = commenter_id
        if not commenter_id:
            continue

        parent_author_id = None
        if parent_id:
            if parent_id in authors:
                parent_author_id = authors[parent_id]
            else:
                parent = await db.fetch_one(
                    "SELECT author_id FROM comments WHERE id = ?", (parent_id,)
                )
                parent_author_id = parent["author_id"] if parent else None

        for interaction in derive_interactions(
            post_id, comment_id, commenter_id, post_author_id, parent_id, parent_author_id
        ):
            if await record_interaction(db, interaction, observed_at=now):
                result.interactions += 1

    await db.commit()
    return result
