"""Shared constants and helpers for DuckDB store and repository mixins."""
from datetime import datetime, timezone
from pathlib import Path

from core.config import config

# Database configuration
DB_PATH = config.store.db_path
IN_MEMORY = ":memory:"

# Query timeout settings
DEFAULT_QUERY_TIMEOUT = config.store.query_timeout  # seconds

# Order statuses stored in orders.status
STATUS_ORDERED = "ordered"
STATUS_RETURNED = "returned"
ORDER_STATUSES = (STATUS_ORDERED, STATUS_RETURNED)


def db_dir(db_path: str) -> Path:
    """Directory that must exist before connecting to `db_path`."""
    return Path(db_path).resolve().parent


def to_store_timestamp(moment: datetime) -> datetime:
    """Timestamps are stored as naive UTC; convert an instant for query params."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def from_store_timestamp(value) -> datetime:
    """Convert a TIMESTAMP/DATE value read from DuckDB into an aware UTC datetime."""
    if not isinstance(value, datetime):
        # DATE columns come back as datetime.date
        value = datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
