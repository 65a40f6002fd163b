"""Configuration loaded from environment variables."""

import os
from dataclasses import dataclass
from pathlib import Path
from dotenv import load_dotenv


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass(frozen=True)
class Config:
    """Application configuration.

    Built once at process start with ``Config.from_env()`` and handed to each
    component explicitly.
    """

    # Moltbook API
    MOLTBOOK_API_KEY: str = ""
    MOLTBOOK_BASE_URL: str = "https://www.moltbook.com/api/v1"
    USER_AGENT: str = "MoltnetCollector/1.0"
    HTTP_TIMEOUT: float = 30.0

    # Database
    DATABASE_PATH: Path = Path("./data/moltnet.db")

    # Page sizes
    SUBMOLTS_LIMIT: int = 1000
    POSTS_LIMIT: int = 100
    COMMENTS_LIMIT: int = 500
    COMMENT_POST_LIMIT: int = 50
    TOP_POSTS_LIMIT: int = 20
    SNAPSHOT_SUBMOLT_LIMIT: int = 20

    # Pacing between remote calls (in seconds)
    POST_SORT_DELAY: float = 1.0
    COMMENT_DELAY: float = 0.5
    SUBMOLT_DELAY: float = 0.2

    # Whole-run wall clock budget (in seconds)
    RUN_TIMEOUT: float = 300.0

    # Scheduler intervals (in seconds)
    COLLECT_INTERVAL: int = 900
    SNAPSHOT_INTERVAL: int = 3600

    # App settings
    CRON_SECRET: str = ""
    DEBUG: bool = False
    DISABLE_POLL: bool = False

    @classmethod
    def from_env(cls) -> "Config":
        """Read configuration from the environment (and a .env file if present)."""
        load_dotenv()
        return cls(
            MOLTBOOK_API_KEY=os.getenv("MOLTBOOK_API_KEY", ""),
            MOLTBOOK_BASE_URL=os.getenv("MOLTBOOK_BASE_URL", cls.MOLTBOOK_BASE_URL).rstrip("/"),
            USER_AGENT=os.getenv("USER_AGENT", cls.USER_AGENT),
            HTTP_TIMEOUT=float(os.getenv("HTTP_TIMEOUT", "30")),
            DATABASE_PATH=Path(os.getenv("DATABASE_PATH", "./data/moltnet.db")),
            SUBMOLTS_LIMIT=int(os.getenv("SUBMOLTS_LIMIT", "1000")),
            POSTS_LIMIT=int(os.getenv("POSTS_LIMIT", "100")),
            COMMENTS_LIMIT=int(os.getenv("COMMENTS_LIMIT", "500")),
            COMMENT_POST_LIMIT=int(os.getenv("COMMENT_POST_LIMIT", "50")),
            TOP_POSTS_LIMIT=int(os.getenv("TOP_POSTS_LIMIT", "20")),
            SNAPSHOT_SUBMOLT_LIMIT=int(os.getenv("SNAPSHOT_SUBMOLT_LIMIT", "20")),
            POST_SORT_DELAY=float(os.getenv("POST_SORT_DELAY", "1.0")),
            COMMENT_DELAY=float(os.getenv("COMMENT_DELAY", "0.5")),
            SUBMOLT_DELAY=float(os.getenv("SUBMOLT_DELAY", "0.2")),
            RUN_TIMEOUT=float(os.getenv("RUN_TIMEOUT", "300")),
            COLLECT_INTERVAL=int(os.getenv("COLLECT_INTERVAL", "900")),
            SNAPSHOT_INTERVAL=int(os.getenv("SNAPSHOT_INTERVAL", "3600")),
            CRON_SECRET=os.getenv("CRON_SECRET", ""),
            DEBUG=_env_bool("DEBUG"),
            DISABLE_POLL=_env_bool("DISABLE_POLL"),
        )

    def validate(self) -> None:
        """Validate required configuration."""
        if not self.MOLTBOOK_API_KEY:
            raise ValueError("MOLTBOOK_API_KEY environment variable is required")
