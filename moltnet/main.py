"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI

from moltnet.config import Config
from moltnet.database import Database, init_db
from moltnet.poller.scheduler import setup_scheduler
from moltnet.web.routes import router

logger = logging.getLogger(__name__)


def configure_logging(config: Config) -> None:
    logging.basicConfig(
        level=logging.DEBUG if config.DEBUG else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(config: Optional[Config] = None) -> FastAPI:
    """Build the app around one configuration, read from the environment by default."""
    config = config or Config.from_env()
    configure_logging(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info("Starting Moltbook collector...")
        config.validate()

        # Create the schema up front so the first run and readers find the tables
        async with Database(config.DATABASE_PATH) as db:
            await init_db(db)

        scheduler = None
        if not config.DISABLE_POLL:
            scheduler = setup_scheduler(config)
            scheduler.start()
            logger.info("Background scheduler started")

        yield

        logger.info("Shutting down...")
        if scheduler is not None:
            scheduler.shutdown()

    app = FastAPI(
        title="Moltbook Collector",
        description="Crawls Moltbook into a time-series store and agent interaction graph",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.include_router(router)
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
