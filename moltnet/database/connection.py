"""Database connection handling."""

import logging
import sqlite3
from pathlib import Path
from typing import Optional, Union

import aiosqlite

from moltnet.errors import StoreUnavailable

logger = logging.getLogger(__name__)

# Seconds a writer waits on another run's lock before giving up
BUSY_TIMEOUT = 30.0


class Database:
    """A single aiosqlite connection owned by one collection run or app process."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._db: Optional[aiosqlite.Connection] = None

    async def connect(self) -> "Database":
        """Open the connection, creating the parent directory if necessary."""
        if self._db is not None:
            return self
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._db = await aiosqlite.connect(self.path, timeout=BUSY_TIMEOUT)
        except sqlite3.Error as e:
            raise StoreUnavailable(f"Cannot open database {self.path}: {e}") from e
        self._db.row_factory = aiosqlite.Row
        logger.debug("Opened database %s", self.path)
        return self

    async def close(self) -> None:
        """Close the database connection."""
        if self._db is not None:
            await self._db.close()
            self._db = None

    async def __aenter__(self) -> "Database":
        return await self.connect()

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @property
    def conn(self) -> aiosqlite.Connection:
        if self._db is None:
            raise StoreUnavailable("Database is not connected")
        return self._db

    async def execute(self, query: str, params=()) -> int:
        """Execute a write statement and return the number of affected rows."""
        try:
            async with self.conn.execute(query, params) as cursor:
                return cursor.rowcount
        except sqlite3.OperationalError as e:
            raise StoreUnavailable(str(e)) from e

    async def execute_query(self, query: str, params=()) -> list[dict]:
        """Execute a query and return results as list of dicts."""
        try:
            async with self.conn.execute(query, params) as cursor:
                rows = await cursor.fetchall()
                return [dict(row) for row in rows]
        except sqlite3.OperationalError as e:
            raise StoreUnavailable(str(e)) from e

    async def fetch_one(self, query: str, params=()) -> Optional[dict]:
        """Execute a query and return the first row as a dict, or None."""
        try:
            async with self.conn.execute(query, params) as cursor:
                row = await cursor.fetchone()
                return dict(row) if row is not None else None
        except sqlite3.OperationalError as e:
            raise StoreUnavailable(str(e)) from e

    async def executescript(self, script: str) -> None:
        try:
            await self.conn.executescript(script)
            await self.conn.commit()
        except sqlite3.OperationalError as e:
            raise StoreUnavailable(str(e)) from e

    async def commit(self) -> None:
        try:
            await self.conn.commit()
        except sqlite3.OperationalError as e:
            raise StoreUnavailable(str(e)) from e

    async def rollback(self) -> None:
        """Discard uncommitted writes."""
        await self.conn.rollback()
