#!/usr/bin/env python3
"""Initialize the database."""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from moltnet.config import Config
from moltnet.database import Database, init_db


async def main():
    config = Config.from_env()
    print(f"Initializing database at {config.DATABASE_PATH}...")
    async with Database(config.DATABASE_PATH) as db:
        await init_db(db)
    print("Done!")


if __name__ == "__main__":
    asyncio.run(main())
