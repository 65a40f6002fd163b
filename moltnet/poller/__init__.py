"""Poller module - crawls the Moltbook API into the database."""

from moltnet.poller.client import MoltbookClient
from moltnet.poller.collector import (
    Collector,
    RunSummary,
    SnapshotCollector,
    Stage,
    run_cleanup,
    run_collection_cycle,
    run_snapshot_cycle,
)
from moltnet.poller.scheduler import setup_scheduler

__all__ = [
    "MoltbookClient",
    "Collector",
    "RunSummary",
    "SnapshotCollector",
    "Stage",
    "run_cleanup",
    "run_collection_cycle",
    "run_snapshot_cycle",
    "setup_scheduler",
]
