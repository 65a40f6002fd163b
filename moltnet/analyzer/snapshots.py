"""Per-submolt and top-post time series."""

from typing import Optional

from moltnet.database.connection import Database
from moltnet.timestamps import now_iso

TITLE_MAX_LENGTH = 500


async def take_submolt_snapshot(
    db: Database,
    submolt: dict,
    posts: list[dict],
    captured_at: Optional[str] = None,
) -> dict:
    """
    Append one snapshot row for a submolt from its detail page.

    Post, vote and comment totals are summed over the posts on that page.
    """
    row = {
        "captured_at": captured_at or now_iso(),
        "submolt_id": submolt.get("id") or submolt.get("name"),
        "submolt_name": submolt.get("name"),
        "display_name": submolt.get("display_name"),
        "subscriber_count": int(submolt.get("subscriber_count") or 0),
        "post_count": len(posts),
        "total_upvotes": sum(int(p.get("upvotes") or 0) for p in posts),
        "total_downvotes": sum(int(p.get("downvotes") or 0) for p in posts),
        "total_comments": sum(int(p.get("comment_count") or 0) for p in posts),
    }

    await db.execute("""
        INSERT INTO submolt_snapshots (
            captured_at, submolt_id, submolt_name, display_name, subscriber_count,
            post_count, total_upvotes, total_downvotes, total_comments
        )
        VALUES (
            :captured_at, :submolt_id, :submolt_name, :display_name, :subscriber_count,
            :post_count, :total_upvotes, :total_downvotes, :total_comments
        )
    """, row)
    await db.commit()
    return row


async def take_top_posts_snapshot(
    db: Database,
    posts: list[dict],
    captured_at: Optional[str] = None,
) -> int:
    """Append one row per post, ranked by its position in ``posts``.

    Posts without an id are skipped and do not take up a rank. Returns rows written.
    """
    captured_at = captured_at or now_iso()
    count = 0

    for post in posts:
        if not post.get("id"):
            continue
        submolt = post.get("submolt")
        submolt_name = submolt.get("name") if isinstance(submolt, dict) else submolt
        await db.execute("""
            INSERT INTO top_posts_snapshots (
                captured_at, post_id, title, submolt_name,
                upvotes, downvotes, comment_count, rank
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            captured_at,
            post["id"],
            (post.get("title") or "")[:TITLE_MAX_LENGTH],
            submolt_name,
            int(post.get("upvotes") or 0),
            int(post.get("downvotes") or 0),
            int(post.get("comment_count") or 0),
            count + 1,
        ))
        count += 1

    await db.commit()
    return count
