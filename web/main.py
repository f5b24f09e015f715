"""
FastAPI web application for the seller dashboard reporting API.
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse, JSONResponse
from starlette.middleware.gzip import GZipMiddleware

from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from core.config import config, validate_config, ConfigurationError, VERSION
from core.duckdb_store import get_store, close_store
from core.exceptions import StoreError, ValidationError
from core.observability import setup_logging, get_logger, get_correlation_id, metrics
from web.middleware import RequestLoggingMiddleware, RequestTimeoutMiddleware
from web.routes import api
from web.routes.api._deps import limiter

# Configure structured logging
# Use JSON format in production (LOG_FORMAT=json), human-readable otherwise
setup_logging(level=config.logging.level, json_format=config.logging.json_format)
logger = get_logger(__name__)

app = FastAPI(
    title="Seller Dashboard",
    description="Time-series reporting API for the seller back office",
    version=VERSION,
    default_response_class=ORJSONResponse
)

# Add rate limiter to app state
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit exceeded for {get_remote_address(request)}")
    return JSONResponse(
        status_code=429,
        content={
            "error": "Rate limit exceeded",
            "detail": "Too many requests. Please try again later.",
            "retry_after": exc.detail
        }
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    # Client input problem, not a service fault
    logger.info(
        f"Rejected request: {exc}",
        extra={"path": request.url.path, "field": exc.field}
    )
    return JSONResponse(
        status_code=400,
        content={
            "error": str(exc),
            "field": exc.field,
            "correlation_id": get_correlation_id(),
        }
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    field = str(errors[0]["loc"][-1]) if errors else None
    logger.info(
        "Rejected request: invalid query parameters",
        extra={"path": request.url.path, "field": field}
    )
    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid query parameters: " + "; ".join(e["msg"] for e in errors),
            "field": field,
            "correlation_id": get_correlation_id(),
        }
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error(
        f"Store failure: {exc}",
        extra={"path": request.url.path, "error_type": type(exc).__name__}
    )
    metrics.record_error(type(exc).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Failed to retrieve dashboard data",
            "correlation_id": get_correlation_id(),
        }
    )


# Add request timeout middleware (prevents long-running requests)
app.add_middleware(RequestTimeoutMiddleware)

# Add request logging middleware (adds correlation IDs and timing)
# Added after timeout so it wraps it and correlation_id is set when timeout fires
app.add_middleware(RequestLoggingMiddleware)

# Add Gzip compression (min 500 bytes to compress)
app.add_middleware(GZipMiddleware, minimum_size=500)

app.include_router(api.router, prefix="/api")


@app.on_event("startup")
async def startup_event():
    logger.info("Seller Dashboard starting...")

    # Validate configuration early - fail fast with clear errors
    try:
        validate_config()
        logger.info("Configuration validated")
    except ConfigurationError as e:
        logger.critical(f"Configuration error: {e}")
        raise SystemExit(1)

    try:
        store = await get_store()
        logger.info("Aggregate store ready", extra=store.get_connection_info())
    except Exception as e:
        logger.error(f"DuckDB initialization failed: {e}", exc_info=True)
        raise  # Fail fast - the store is required


@app.on_event("shutdown")
async def shutdown_event():
    await close_store()
    logger.info("Seller Dashboard stopped")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("web.main:app", host=config.web.host, port=config.web.port)
