"""Database schema and migrations."""

import logging

from moltnet.database.connection import Database

logger = logging.getLogger(__name__)

# References between tables are deliberately not enforced foreign keys: a post
# may arrive before its author or submolt, and the gap is filled by a later crawl.
SCHEMA = """
-- All agents we've ever seen
CREATE TABLE IF NOT EXISTS agents (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT,
    karma INTEGER DEFAULT 0,
    post_count INTEGER DEFAULT 0,
    comment_count INTEGER DEFAULT 0,
    follower_count INTEGER DEFAULT 0,
    following_count INTEGER DEFAULT 0,
    created_at TIMESTAMP,
    first_seen_at TIMESTAMP NOT NULL,
    last_updated_at TIMESTAMP NOT NULL
);

-- All submolts (communities)
CREATE TABLE IF NOT EXISTS submolts (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    display_name TEXT,
    description TEXT,
    subscriber_count INTEGER DEFAULT 0,
    post_count INTEGER DEFAULT 0,
    created_at TIMESTAMP,
    first_seen_at TIMESTAMP NOT NULL,
    last_updated_at TIMESTAMP NOT NULL
);

-- All posts
CREATE TABLE IF NOT EXISTS posts (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL DEFAULT '',
    content TEXT,
    url TEXT,
    author_id TEXT,
    submolt_id TEXT,
    upvotes INTEGER DEFAULT 0,
    downvotes INTEGER DEFAULT 0,
    comment_count INTEGER DEFAULT 0,
    created_at TIMESTAMP,
    first_seen_at TIMESTAMP NOT NULL,
    last_updated_at TIMESTAMP NOT NULL
);

-- All comments
CREATE TABLE IF NOT EXISTS comments (
    id TEXT PRIMARY KEY,
    post_id TEXT NOT NULL,
    parent_comment_id TEXT,
    author_id TEXT,
    content TEXT,
    upvotes INTEGER DEFAULT 0,
    downvotes INTEGER DEFAULT 0,
    created_at TIMESTAMP,
    first_seen_at TIMESTAMP NOT NULL,
    last_updated_at TIMESTAMP NOT NULL
);

-- Who commented on / replied to whom, one row per comment and kind
CREATE TABLE IF NOT EXISTS agent_interactions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    from_agent_id TEXT NOT NULL,
    to_agent_id TEXT NOT NULL,
    interaction_type TEXT NOT NULL,
    post_id TEXT NOT NULL,
    comment_id TEXT NOT NULL,
    created_at TIMESTAMP NOT NULL,
    UNIQUE (from_agent_id, to_agent_id, interaction_type, post_id, comment_id)
);

-- Weighted directed graph; edge_weight counts agent_interactions per pair
CREATE TABLE IF NOT EXISTS network_edges (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    from_agent_id TEXT NOT NULL,
    to_agent_id TEXT NOT NULL,
    edge_weight INTEGER NOT NULL DEFAULT 1,
    last_interaction_at TIMESTAMP,
    UNIQUE (from_agent_id, to_agent_id)
);

-- Written only when a re-observed post's votes or comment count changed
CREATE TABLE IF NOT EXISTS post_score_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    post_id TEXT NOT NULL,
    upvotes INTEGER NOT NULL,
    downvotes INTEGER NOT NULL,
    comment_count INTEGER NOT NULL,
    captured_at TIMESTAMP NOT NULL
);

-- One row per collection run
CREATE TABLE IF NOT EXISTS stats_snapshots (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    captured_at TIMESTAMP NOT NULL,
    total_agents INTEGER NOT NULL,
    total_posts INTEGER NOT NULL,
    total_comments INTEGER NOT NULL,
    total_submolts INTEGER NOT NULL,
    total_upvotes INTEGER,
    total_downvotes INTEGER
);

-- Per-submolt stats over time
CREATE TABLE IF NOT EXISTS submolt_snapshots (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    captured_at TIMESTAMP NOT NULL,
    submolt_id TEXT NOT NULL,
    submolt_name TEXT,
    display_name TEXT,
    subscriber_count INTEGER DEFAULT 0,
    post_count INTEGER DEFAULT 0,
    total_upvotes INTEGER DEFAULT 0,
    total_downvotes INTEGER DEFAULT 0,
    total_comments INTEGER DEFAULT 0
);

-- Globally top-ranked posts over time
CREATE TABLE IF NOT EXISTS top_posts_snapshots (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    captured_at TIMESTAMP NOT NULL,
    post_id TEXT NOT NULL,
    title TEXT,
    submolt_name TEXT,
    upvotes INTEGER DEFAULT 0,
    downvotes INTEGER DEFAULT 0,
    comment_count INTEGER DEFAULT 0,
    rank INTEGER
);

-- Daily leaderboard, rewritten in place when re-ranked on the same day
CREATE TABLE IF NOT EXISTS daily_top_posts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    date TEXT NOT NULL,
    post_id TEXT NOT NULL,
    rank INTEGER NOT NULL,
    upvotes INTEGER,
    comment_count INTEGER,
    score REAL,
    UNIQUE (date, post_id)
);

-- Create indexes for common queries
CREATE INDEX IF NOT EXISTS idx_posts_author ON posts(author_id);
CREATE INDEX IF NOT EXISTS idx_posts_created ON posts(created_at);
CREATE INDEX IF NOT EXISTS idx_comments_post ON comments(post_id);
CREATE INDEX IF NOT EXISTS idx_comments_author ON comments(author_id);
CREATE INDEX IF NOT EXISTS idx_score_history_post ON post_score_history(post_id);
CREATE INDEX IF NOT EXISTS idx_stats_time ON stats_snapshots(captured_at);
CREATE INDEX IF NOT EXISTS idx_submolt_snapshots_time ON submolt_snapshots(captured_at);
CREATE INDEX IF NOT EXISTS idx_submolt_snapshots_submolt ON submolt_snapshots(submolt_id);
CREATE INDEX IF NOT EXISTS idx_top_posts_snapshots_time ON top_posts_snapshots(captured_at);
CREATE INDEX IF NOT EXISTS idx_network_from ON network_edges(from_agent_id);
CREATE INDEX IF NOT EXISTS idx_network_to ON network_edges(to_agent_id);
"""


async def init_db(db: Database) -> None:
    """Initialize the database schema."""
    await db.executescript(SCHEMA)
    logger.info("Database schema ready at %s", db.path)
