"""Analyzer module - snapshots, rankings, and statistics."""

from moltnet.analyzer.stats import get_stats, take_stats_snapshot, prune_empty_snapshots
from moltnet.analyzer.rankings import update_daily_top_posts
from moltnet.analyzer.snapshots import take_submolt_snapshot, take_top_posts_snapshot

__all__ = [
    "get_stats",
    "take_stats_snapshot",
    "prune_empty_snapshots",
    "update_daily_top_posts",
    "take_submolt_snapshot",
    "take_top_posts_snapshot",
]
