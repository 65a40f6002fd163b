"""FastAPI routes for triggering collection runs."""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from moltnet.config import Config
from moltnet.poller.collector import run_cleanup, run_collection_cycle, run_snapshot_cycle

logger = logging.getLogger(__name__)

router = APIRouter()


def get_config(request: Request) -> Config:
    return request.app.state.config


def require_cron_secret(request: Request, config: Config = Depends(get_config)) -> None:
    """If CRON_SECRET is set, triggers must present it as a bearer token."""
    if not config.CRON_SECRET:
        return
    if request.headers.get("authorization") != f"Bearer {config.CRON_SECRET}":
        logger.warning("Rejected trigger call to %s without valid secret", request.url.path)
        raise HTTPException(status_code=401, detail="Invalid cron secret")


def _respond(result: dict) -> JSONResponse:
    return JSONResponse(result, status_code=200 if result.get("success") else 500)


@router.get("/health")
async def health():
    return {"status": "ok"}


# ============ TRIGGER ROUTES ============

@router.api_route("/api/collect", methods=["GET", "POST"], dependencies=[Depends(require_cron_secret)])
async def api_collect(config: Config = Depends(get_config)):
    """Run a full collection cycle and return its summary."""
    return _respond(await run_collection_cycle(config))


@router.api_route("/api/cron-full", methods=["GET", "POST"], dependencies=[Depends(require_cron_secret)])
async def api_cron_full(config: Config = Depends(get_config)):
    """Record submolt and top-post snapshots."""
    return _respond(await run_snapshot_cycle(config))


@router.api_route("/api/cleanup", methods=["GET", "POST"], dependencies=[Depends(require_cron_secret)])
async def api_cleanup(config: Config = Depends(get_config)):
    """Delete stats snapshots taken against an empty database."""
    return _respond(await run_cleanup(config))
