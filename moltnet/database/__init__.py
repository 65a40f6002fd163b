"""Database module."""

from moltnet.database.connection import Database
from moltnet.database.migrations import init_db

__all__ = ["Database", "init_db"]
