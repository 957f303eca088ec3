"""Health check and metrics endpoints."""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from api.deps import get_store
from core import __version__
from core.observability.logging import get_logger
from core.observability.metrics import get_metrics
from storage.farm_store import SQLiteFarmStore


logger = get_logger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: str
    version: str
    services: Dict[str, str]


def _storage_status(store: SQLiteFarmStore) -> str:
    try:
        store.get_max_backdate_days("__health__")
    except Exception as e:
        logger.warning(f"Storage health check failed: {e}")
        return "down"
    return "up"


@router.get("/health", response_model=HealthResponse)
async def health_check(store: SQLiteFarmStore = Depends(get_store)) -> HealthResponse:
    """Health check endpoint."""
    storage = await asyncio.to_thread(_storage_status, store)
    return HealthResponse(
        status="healthy" if storage == "up" else "degraded",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=__version__,
        services={"api": "up", "storage": storage},
    )


@router.get("/ready")
async def readiness_check(response: Response, store: SQLiteFarmStore = Depends(get_store)) -> Dict[str, str]:
    """Readiness probe for Kubernetes."""
    if await asyncio.to_thread(_storage_status, store) != "up":
        response.status_code = 503
        return {"status": "not_ready"}
    return {"status": "ready"}


@router.get("/live")
async def liveness_check() -> Dict[str, str]:
    """Liveness probe for Kubernetes."""
    return {"status": "alive"}


@router.get("/metrics")
async def metrics() -> Dict[str, Any]:
    """In-process submission, approval and timing metrics."""
    return get_metrics().get_summary()
