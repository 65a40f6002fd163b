"""Post score history: an audit row whenever a re-observed post's counters move."""

import logging
from typing import Optional

from moltnet.database.connection import Database
from moltnet.errors import RemoteMalformed
from moltnet.timestamps import now_iso

logger = logging.getLogger(__name__)


def post_counts(post: dict) -> tuple[int, int, int]:
    """(upvotes, downvotes, comment_count) of a post payload, missing values as 0.

    Raises RemoteMalformed if a counter is present but not numeric.
    """
    try:
        return (
            int(post.get("upvotes") or 0),
            int(post.get("downvotes") or 0),
            int(post.get("comment_count") or 0),
        )
    except (TypeError, ValueError) as e:
        raise RemoteMalformed(f"Non-numeric counters on post {post.get('id')}") from e


async def record_score_change(db: Database, post: dict, captured_at: Optional[str] = None) -> bool:
    """
    Append a history row if the stored counters differ from this observation.

    Must run before the post is upserted; afterwards the stored values already
    equal the new ones. A post we have never stored has nothing to diff
    against and records nothing.

    Returns True if a row was written.
    """
    post_id = post.get("id")
    if not post_id:
        return False

    existing = await db.fetch_one(
        "SELECT upvotes, downvotes, comment_count FROM posts WHERE id = ?",
        (post_id,),
    )
    if existing is None:
        return False

    upvotes, downvotes, comment_count = post_counts(post)
    if (existing["upvotes"], existing["downvotes"], existing["comment_count"]) == (
        upvotes, downvotes, comment_count
    ):
        return False

    await db.execute("""
        INSERT INTO post_score_history (post_id, upvotes, downvotes, comment_count, captured_at)
        VALUES (?, ?, ?, ?, ?)
    """, (post_id, upvotes, downvotes, comment_count, captured_at or now_iso()))
    logger.debug(
        "Post %s moved from %s/%s/%s to %s/%s/%s",
        post_id, existing["upvotes"], existing["downvotes"], existing["comment_count"],
        upvotes, downvotes, comment_count,
    )
    return True
