"""Aggregate statistics and snapshots."""

import logging
from typing import Optional

from moltnet.database.connection import Database
from moltnet.timestamps import now_iso

logger = logging.getLogger(__name__)


async def get_stats(db: Database) -> dict:
    """Get current platform totals from what we have stored."""
    agents = await db.fetch_one("SELECT COUNT(*) AS count FROM agents")
    posts = await db.fetch_one("""
        SELECT COUNT(*) AS count,
               COALESCE(SUM(upvotes), 0) AS upvotes,
               COALESCE(SUM(downvotes), 0) AS downvotes
        FROM posts
    """)
    comments = await db.fetch_one("SELECT COUNT(*) AS count FROM comments")
    submolts = await db.fetch_one("SELECT COUNT(*) AS count FROM submolts")

    return {
        "total_agents": agents["count"],
        "total_posts": posts["count"],
        "total_comments": comments["count"],
        "total_submolts": submolts["count"],
        "total_upvotes": posts["upvotes"],
        "total_downvotes": posts["downvotes"],
    }


async def take_stats_snapshot(db: Database, captured_at: Optional[str] = None) -> dict:
    """
    Append one snapshot of the global totals.

    Nothing is deduplicated: each call writes a row, whether or not the totals
    moved since the last one.
    """
    stats = await get_stats(db)

    await db.execute("""
        INSERT INTO stats_snapshots (
            captured_at, total_agents, total_posts, total_comments,
            total_submolts, total_upvotes, total_downvotes
        )
        VALUES (?, ?, ?, ?, ?, ?, ?)
    """, (
        captured_at or now_iso(),
        stats["total_agents"],
        stats["total_posts"],
        stats["total_comments"],
        stats["total_submolts"],
        stats["total_upvotes"],
        stats["total_downvotes"],
    ))

    await db.commit()
    logger.info(
        "Stats snapshot: %d agents, %d posts, %d comments, %d submolts",
        stats["total_agents"], stats["total_posts"],
        stats["total_comments"], stats["total_submolts"],
    )
    return stats


async def prune_empty_snapshots(db: Database) -> int:
    """Delete snapshots taken against an empty store. Returns rows deleted."""
    deleted = await db.execute(
        "DELETE FROM stats_snapshots WHERE total_agents = 0 OR total_agents IS NULL"
    )
    await db.commit()
    if deleted:
        logger.info("Pruned %d empty stats snapshots", deleted)
    return deleted
