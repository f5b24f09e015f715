"""
Request middleware for the dashboard API.

RequestLoggingMiddleware tags each request with a correlation ID and
counts it under a dashboard operation name ("dashboard.stats") rather
than the raw path, so unknown or mistyped URLs cannot grow the metrics
table. RequestTimeoutMiddleware turns a slow report into a 504.
"""
import asyncio
import time
from typing import Callable
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response, JSONResponse

from core.config import config
from core.observability import (
    get_logger,
    generate_correlation_id,
    set_correlation_id,
    get_correlation_id,
    metrics,
)

logger = get_logger(__name__)

# Metric names per (method, path); anything else counts as OTHER_OPERATION
OPERATIONS = {
    ("GET", "/api/dashboard/stats"): "dashboard.stats",
    ("GET", "/api/dashboard/sales-chart"): "dashboard.sales_chart",
    ("GET", "/api/analytics/top-products"): "analytics.top_products",
    ("GET", "/api/health"): "health",
    ("GET", "/api/metrics"): "metrics",
}
OTHER_OPERATION = "other"

# Health probes from the load balancer are neither logged nor timed out
UNLOGGED_OPERATIONS = {"health"}


def operation_name(method: str, path: str) -> str:
    """Metric name of a request; trailing slashes are ignored."""
    normalized = path.rstrip("/") or "/"
    return OPERATIONS.get((method.upper(), normalized), OTHER_OPERATION)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Correlation ID, per-operation request log lines, counts and timings."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get("X-Request-ID") or generate_correlation_id()
        set_correlation_id(correlation_id)

        operation = operation_name(request.method, request.url.path)
        log_fields = {
            "operation": operation,
            "method": request.method,
            "path": request.url.path,
        }
        logged = operation not in UNLOGGED_OPERATIONS

        if logged:
            logger.info(
                f"{operation} started",
                extra={**log_fields, "client_ip": request.client.host if request.client else "unknown"},
            )

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"{operation} failed",
                extra={**log_fields, "duration_ms": round((time.perf_counter() - started) * 1000, 2), "error": str(e)},
            )
            metrics.record_error(type(e).__name__)
            raise
        duration_ms = (time.perf_counter() - started) * 1000

        response.headers["X-Request-ID"] = correlation_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

        if logged:
            log = logger.info if response.status_code < 400 else logger.warning
            log(
                f"{operation} completed",
                extra={**log_fields, "status_code": response.status_code, "duration_ms": round(duration_ms, 2)},
            )

        metrics.record_request(operation)
        metrics.record_timing(f"http.{operation}", duration_ms)
        if response.status_code >= 400:
            metrics.record_error(f"{operation}.HTTP_{response.status_code}")

        return response


class RequestTimeoutMiddleware(BaseHTTPMiddleware):
    """
    Abandon a report that runs past the request timeout.

    Cancelling the handler also cancels its in-flight store queries; the
    client gets 504 with the correlation ID for log lookup.
    """

    def __init__(self, app, timeout: float = config.web.request_timeout):
        super().__init__(app)
        self.timeout = timeout

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        operation = operation_name(request.method, request.url.path)
        if operation in UNLOGGED_OPERATIONS:
            return await call_next(request)

        try:
            return await asyncio.wait_for(call_next(request), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"{operation} timed out",
                extra={"operation": operation, "path": request.url.path, "timeout": self.timeout},
            )
            metrics.record_error(f"{operation}.TIMEOUT")
            return JSONResponse(
                status_code=504,
                content={
                    "error": "Request Timeout",
                    "detail": f"Report exceeded {self.timeout}s timeout",
                    "correlation_id": get_correlation_id(),
                }
            )
