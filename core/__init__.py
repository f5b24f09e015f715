"""
Core reporting library for the seller dashboard.

This package contains the reporting engine and its storage:
- periods: Period, chart window and granularity resolution
- series: Gap-filling series builders
- comparison: Period-over-period metrics
- summary: Series totals and best/worst buckets
- reporting: Stats and chart response assembly
- duckdb_store: Aggregate Store backed by DuckDB
"""

# Import in dependency order
from core.exceptions import (
    StoreError,
    StoreQueryError,
    QueryTimeoutError,
    ValidationError,
)

from core.config import config

from core.reporting import (
    build_stats_response,
    build_chart_response,
)

__all__ = [
    # Exceptions
    "StoreError",
    "StoreQueryError",
    "QueryTimeoutError",
    "ValidationError",
    # Config
    "config",
    # Reporting
    "build_stats_response",
    "build_chart_response",
]
