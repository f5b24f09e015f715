"""Shared dependencies for API route modules."""
import logging
import time
from datetime import datetime, timezone

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.duckdb_store import get_store
from core.store import AggregateStore

# Shared limiter instance
limiter = Limiter(key_func=get_remote_address)

# Track startup time for uptime calculation
START_TIME = time.time()


# Shared logger factory
def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


async def provide_store() -> AggregateStore:
    """FastAPI dependency resolving the Aggregate Store (overridden in tests)."""
    return await get_store()


def get_now() -> datetime:
    """FastAPI dependency for the request's reference instant."""
    return datetime.now(timezone.utc)
