"""Background scheduler for collection runs."""

import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from moltnet.config import Config
from moltnet.poller.collector import run_collection_cycle, run_snapshot_cycle

logger = logging.getLogger(__name__)


async def collect(config: Config) -> None:
    """Scheduled full crawl."""
    result = await run_collection_cycle(config)
    if result["success"]:
        logger.info("Scheduled collection finished in %.1fs", result["duration"])
    else:
        logger.error("Scheduled collection failed: %s", result["error"])


async def snapshot(config: Config) -> None:
    """Scheduled submolt and top-post snapshot pass."""
    result = await run_snapshot_cycle(config)
    if result["success"]:
        logger.info("Scheduled snapshot recorded %d submolts", result["submolts_collected"])
    else:
        logger.error("Scheduled snapshot failed: %s", result["error"])


def setup_scheduler(config: Config) -> AsyncIOScheduler:
    """Set up and return the background scheduler."""
    scheduler = AsyncIOScheduler()

    # Full crawl every 15 minutes; a run still going when the next is due is not doubled up
    scheduler.add_job(
        collect,
        IntervalTrigger(seconds=config.COLLECT_INTERVAL),
        args=[config],
        id="collect",
        name="Full collection run",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    # Submolt and top-post snapshots every hour
    scheduler.add_job(
        snapshot,
        IntervalTrigger(seconds=config.SNAPSHOT_INTERVAL),
        args=[config],
        id="snapshot",
        name="Submolt and top-post snapshots",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    return scheduler
