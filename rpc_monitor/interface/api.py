"""
Status API - Read-only HTTP view of the endpoint history.

Routes (under /api/rpc):
    GET /status?count=K   chain -> node name -> [{ts, status}, ...]
    GET /health           liveness probe
    GET /interval         sweep cadence in minutes, or null
"""

import logging
from typing import Optional

from fastapi import APIRouter, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware

from rpc_monitor import __version__
from rpc_monitor.core.entities import Registry
from rpc_monitor.health.config import Settings
from rpc_monitor.health.store import HistoryStore

logger = logging.getLogger(__name__)

API_PREFIX = "/api/rpc"


def create_app(store: HistoryStore, registry: Registry, settings: Settings) -> FastAPI:
    """
    Build the API application.

    Args:
        store: History store shared with the sweep
        registry: Endpoints to report, in order
        settings: Process settings (history length, cadence)

    Returns:
        FastAPI application
    """
    app = FastAPI(title="rpc-monitor", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.include_router(build_router(store, registry, settings), prefix=API_PREFIX)
    return app


def build_router(
    store: HistoryStore, registry: Registry, settings: Settings
) -> APIRouter:
    """
    Build the router with the health, status and interval routes.

    Args:
        store: History store shared with the sweep
        registry: Configured endpoints, used to project the status snapshot
        settings: Process settings (history length, cadence)

    Returns:
        APIRouter to mount under API_PREFIX
    """
    router = APIRouter()

    @router.get("/health")
    def health():
        return {"status": "ok"}

    @router.get("/status")
    def status(count: Optional[str] = Query(default=None)):
        limit = parse_count(count, settings.max_entries)
        return store.snapshot(registry=registry, limit=limit)

    @router.get("/interval")
    def interval():
        return {"minutes": settings.interval_minutes}

    return router


def parse_count(raw: Optional[str], max_entries: int) -> Optional[int]:
    """
    Parse the count query parameter.

    Args:
        raw: Raw query value
        max_entries: History length of the store

    Returns:
        The count when it is an integer in 1..max_entries, None (whole
        history) otherwise
    """
    if raw is None:
        return None
    try:
        count = int(raw)
    except ValueError:
        logger.debug("Ignoring non-integer count: %r", raw)
        return None
    if 0 < count <= max_entries:
        return count
    return None
