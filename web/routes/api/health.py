"""Health check and metrics endpoints."""
import time

from fastapi import APIRouter, Depends, Request

from core.config import VERSION
from core.exceptions import StoreError
from core.observability import get_correlation_id, metrics, Timer
from core.store import AggregateStore
from web.schemas import HealthResponse, MetricsResponse
from ._deps import limiter, provide_store, get_logger, START_TIME

router = APIRouter()
logger = get_logger(__name__)


@router.get("/health", response_model=HealthResponse)
@limiter.limit("60/minute")
async def health_check(request: Request, store: AggregateStore = Depends(provide_store)):
    """Health check endpoint for Docker/load balancer monitoring."""
    uptime_seconds = int(time.time() - START_TIME)

    healthy = False
    try:
        with Timer("health_check_store") as timer:
            healthy = await store.ping()
        store_stats = {
            "status": "connected" if healthy else "error",
            "latency_ms": round(timer.elapsed_ms, 2),
        }
    except StoreError as e:
        logger.warning(f"Store health check failed: {e}")
        store_stats = {"status": f"error: {e}"}

    info = getattr(store, "get_connection_info", None)
    if info is not None:
        store_stats["total_queries"] = info().get("total_queries")

    return {
        "status": "healthy" if healthy else "degraded",
        "version": VERSION,
        "uptime_seconds": uptime_seconds,
        "correlation_id": get_correlation_id(),
        "store": store_stats,
    }


@router.get("/metrics", response_model=MetricsResponse)
@limiter.limit("30/minute")
async def get_metrics(request: Request):
    """Request counts, error counts and timing percentiles since startup."""
    return metrics.get_stats()
