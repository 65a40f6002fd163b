"""Daily leaderboard of the last day's posts."""

import logging
from datetime import datetime, timedelta
from typing import Optional

from moltnet.database.connection import Database
from moltnet.timestamps import format_ts, utc_now

logger = logging.getLogger(__name__)

DAILY_TOP_LIMIT = 100


def post_score(upvotes: int, comment_count: int) -> int:
    """Leaderboard score: a comment counts twice as much as an upvote."""
    return (upvotes or 0) + 2 * (comment_count or 0)


async def update_daily_top_posts(
    db: Database,
    now: Optional[datetime] = None,
    limit: int = DAILY_TOP_LIMIT,
) -> list[dict]:
    """
    Rank posts created in the last 24 hours and store today's leaderboard.

    Ties on score are broken by post id so reruns rank identically. Rerunning
    on the same day replaces that day's leaderboard: posts that have since
    left the window or the top ``limit`` are dropped, the rest are upserted
    with their new rank and score.

    Returns the ranked rows that were written.
    """
    now = now or utc_now()
    today = now.date().isoformat()
    since = format_ts(now - timedelta(hours=24))

    posts = await db.execute_query("""
        SELECT id, upvotes, comment_count,
               upvotes + 2 * comment_count AS score
        FROM posts
        WHERE created_at > ?
        ORDER BY score DESC, id ASC
        LIMIT ?
    """, (since, limit))

    # Today's leaderboard is rebuilt from this ranking alone
    await db.execute("DELETE FROM daily_top_posts WHERE date = ?", (today,))

    ranked = []
    for rank, post in enumerate(posts, start=1):
        row = {
            "date": today,
            "post_id": post["id"],
            "rank": rank,
            "upvotes": post["upvotes"],
            "comment_count": post["comment_count"],
            "score": post_score(post["upvotes"], post["comment_count"]),
        }
        await db.execute("""
            INSERT INTO daily_top_posts (date, post_id, rank, upvotes, comment_count, score)
            VALUES (:date, :post_id, :rank, :upvotes, :comment_count, :score)
            ON CONFLICT (date, post_id) DO UPDATE SET
                rank = excluded.rank,
                upvotes = excluded.upvotes,
                comment_count = excluded.comment_count,
                score = excluded.score
        """, row)
        ranked.append(row)

    await db.commit()
    logger.info("Ranked %d posts for %s", len(ranked), today)
    return ranked
