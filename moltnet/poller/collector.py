"""Collection runs: the pipeline that crawls Moltbook into the database.

A run is a straight line of stages, each depending on rows the previous one
wrote. Overlapping runs need no locking because every write is either an
upsert by id or an insert guarded by a unique key.
"""

import asyncio
import logging
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Optional

import httpx

from moltnet.analyzer.rankings import update_daily_top_posts
from moltnet.analyzer.snapshots import take_submolt_snapshot, take_top_posts_snapshot
from moltnet.analyzer.stats import prune_empty_snapshots, take_stats_snapshot
from moltnet.config import Config
from moltnet.database import Database, init_db
from moltnet.errors import StoreUnavailable
from moltnet.poller.client import MoltbookClient
from moltnet.poller.history import post_counts
from moltnet.poller.processors import process_comments, process_posts, process_submolts

logger = logging.getLogger(__name__)

POST_SORTS = ("new", "hot", "top")


class Stage(str, Enum):
    IDLE = "idle"
    COLLECTING_SUBMOLTS = "collecting_submolts"
    COLLECTING_POSTS = "collecting_posts"
    COLLECTING_COMMENTS = "collecting_comments"
    TAKING_SNAPSHOT = "taking_snapshot"
    UPDATING_RANKINGS = "updating_rankings"
    DONE = "done"
    FAILED = "failed"


@dataclass
class RunSummary:
    """What one collection run did, returned to whoever triggered it."""
    duration: float = 0.0
    submolts_collected: int = 0
    posts_by_sort: dict = field(default_factory=dict)
    posts_collected: int = 0
    unique_posts: int = 0
    history_rows: int = 0
    comment_posts: int = 0
    comment_failures: int = 0
    comments_collected: int = 0
    interactions_recorded: int = 0
    ranked_posts: int = 0
    stats: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


class Collector:
    """
    One full crawl: submolts, posts (new, hot, top), comments for a bounded
    subset of those posts, then a stats snapshot and the daily ranking.

    Only the comment stage isolates failures per post. Any other failure ends
    the run and propagates; the next scheduled run starts over.
    """

    def __init__(self, config: Config, client: MoltbookClient, db: Database):
        self.config = config
        self.client = client
        self.db = db
        self.stage = Stage.IDLE

    def _enter(self, stage: Stage) -> None:
        self.stage = stage
        logger.info("Collection stage: %s", stage.value)

    async def run(self) -> RunSummary:
        start = time.monotonic()
        summary = RunSummary()

        try:
            self._enter(Stage.COLLECTING_SUBMOLTS)
            summary.submolts_collected = await self.collect_submolts()

            self._enter(Stage.COLLECTING_POSTS)
            posts = await self.collect_posts(summary)

            self._enter(Stage.COLLECTING_COMMENTS)
            await self.collect_comments(posts, summary)

            self._enter(Stage.TAKING_SNAPSHOT)
            summary.stats = await take_stats_snapshot(self.db)

            self._enter(Stage.UPDATING_RANKINGS)
            ranked = await update_daily_top_posts(self.db)
            summary.ranked_posts = len(ranked)
        except Exception:
            logger.error("Collection failed during %s", self.stage.value)
            self.stage = Stage.FAILED
            raise

        summary.duration = round(time.monotonic() - start, 3)
        self._enter(Stage.DONE)
        logger.info(
            "Collection complete in %.1fs: %d posts, %d comments, %d new interactions",
            summary.duration, summary.unique_posts,
            summary.comments_collected, summary.interactions_recorded,
        )
        return summary

    async def collect_submolts(self) -> int:
        submolts = await self.client.get_submolts(limit=self.config.SUBMOLTS_LIMIT)
        count = await process_submolts(self.db, submolts)
        logger.info("Collected %d submolts", count)
        return count

    async def collect_posts(self, summary: RunSummary) -> list[dict]:
        """Fetch each sort order in turn. Returns the posts de-duplicated, in fetch order."""
        all_posts: list[dict] = []

        for sort in POST_SORTS:
            posts = await self.client.get_posts(sort=sort, limit=self.config.POSTS_LIMIT)
            result = await process_posts(self.db, posts)
            summary.posts_by_sort[sort] = result.processed
            summary.posts_collected += result.processed
            summary.history_rows += result.history_rows
            all_posts.extend(posts)
            logger.info("Collected %d %s posts", result.processed, sort)
            await asyncio.sleep(self.config.POST_SORT_DELAY)

        seen = set()
        unique = []
        for post in all_posts:
            post_id = post.get("id")
            if post_id and post_id not in seen:
                seen.add(post_id)
                unique.append(post)
        summary.unique_posts = len(unique)
        return unique

    async def collect_comments(self, posts: list[dict], summary: RunSummary) -> None:
        """
        Crawl comments for the first COMMENT_POST_LIMIT posts that have any.

        A failure on one post rolls back that post's writes and moves on.
        """
        for post in posts[:self.config.COMMENT_POST_LIMIT]:
            post_id = post["id"]
            try:
                if post_counts(post)[2] <= 0:
                    continue
                summary.comment_posts += 1
                comments = await self.client.get_post_comments(
                    post_id, limit=self.config.COMMENTS_LIMIT
                )
                result = await process_comments(self.db, post_id, comments)
                summary.comments_collected += result.processed
                summary.interactions_recorded += result.interactions
            except StoreUnavailable:
                raise
            except Exception as e:
                summary.comment_failures += 1
                await self.db.rollback()
                logger.warning("Error collecting comments for post %s: %s", post_id, e)

            await asyncio.sleep(self.config.COMMENT_DELAY)


class SnapshotCollector:
    """
    Time-series pass over the busiest submolts and the globally top posts.

    Runs on its own cadence, separate from the full crawl.
    """

    def __init__(self, config: Config, client: MoltbookClient, db: Database):
        self.config = config
        self.client = client
        self.db = db

    async def run(self) -> dict:
        start = time.monotonic()

        remote_stats = await self.client.get_stats()

        submolts = await self.client.get_submolts(limit=self.config.SUBMOLTS_LIMIT)
        busiest = sorted(
            submolts, key=lambda s: int(s.get("subscriber_count") or 0), reverse=True
        )[:self.config.SNAPSHOT_SUBMOLT_LIMIT]

        snapshots = []
        for submolt in busiest:
            name = submolt.get("name")
            if not name:
                continue
            try:
                detail = await self.client.get_submolt(name)
                merged = {**submolt, **{k: v for k, v in detail["submolt"].items() if v is not None}}
                snapshots.append(await take_submolt_snapshot(self.db, merged, detail["posts"]))
            except StoreUnavailable:
                raise
            except Exception as e:
                logger.warning("Error fetching submolt %s: %s", name, e)
            await asyncio.sleep(self.config.SUBMOLT_DELAY)

        top_posts = await self.client.get_posts(sort="top", limit=self.config.TOP_POSTS_LIMIT)
        top_count = await take_top_posts_snapshot(self.db, top_posts)

        duration = round(time.monotonic() - start, 3)
        logger.info(
            "Snapshot pass complete in %.1fs: %d submolts, %d top posts",
            duration, len(snapshots), top_count,
        )
        return {
            "duration": duration,
            "global_stats": {
                "agents": remote_stats.get("agents"),
                "submolts": remote_stats.get("submolts"),
                "posts": remote_stats.get("posts"),
                "comments": remote_stats.get("comments"),
            },
            "submolts_collected": len(snapshots),
            "top_posts_collected": top_count,
            "top_submolts": [
                {
                    "name": s["submolt_name"],
                    "subscribers": s["subscriber_count"],
                    "posts": s["post_count"],
                    "upvotes": s["total_upvotes"],
                }
                for s in sorted(snapshots, key=lambda s: s["subscriber_count"], reverse=True)[:5]
            ],
        }


async def _run(config: Config, runner, transport: Optional[httpx.AsyncBaseTransport]) -> dict:
    try:
        async with MoltbookClient(config, transport=transport) as client, \
                Database(config.DATABASE_PATH) as db:
            await init_db(db)
            result = await asyncio.wait_for(
                runner(config, client, db).run(), timeout=config.RUN_TIMEOUT
            )
    except asyncio.TimeoutError:
        logger.error("Run timed out after %ss", config.RUN_TIMEOUT)
        return {"success": False, "error": f"Run timed out after {config.RUN_TIMEOUT}s"}
    except Exception as e:
        logger.exception("Run failed")
        return {"success": False, "error": str(e) or e.__class__.__name__}

    if isinstance(result, RunSummary):
        result = result.to_dict()
    return {"success": True, **result}


async def run_collection_cycle(
    config: Config,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> dict:
    """Run one full collection. Never raises; failures come back as ``success: False``."""
    return await _run(config, Collector, transport)


async def run_snapshot_cycle(
    config: Config,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> dict:
    """Run one submolt / top-post snapshot pass. Never raises."""
    return await _run(config, SnapshotCollector, transport)


async def run_cleanup(config: Config) -> dict:
    """Remove stats snapshots recorded against an empty database."""
    try:
        async with Database(config.DATABASE_PATH) as db:
            await init_db(db)
            deleted = await prune_empty_snapshots(db)
    except Exception as e:
        logger.exception("Cleanup failed")
        return {"success": False, "error": str(e) or e.__class__.__name__}
    return {"success": True, "deleted": deleted}
