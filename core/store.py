"""
Aggregate Store interface consumed by the reporting engine.

Any object with these coroutines can back the engine: the DuckDB store in
production, recording fakes in tests. Every fetch takes an optional
timeout in seconds; asyncio cancellation of the awaiting task abandons the
query. Failures surface as `core.exceptions.StoreError`.
"""
from datetime import datetime
from typing import List, Optional, Protocol

from core.models import (
    Granularity,
    HourlySale,
    PeriodTotals,
    ProductRanking,
    ProductSales,
    RawAggregate,
    TopCategory,
)


class AggregateStore(Protocol):

    async def fetch_period_totals(
        self, start: datetime, end: datetime, timeout: Optional[float] = None
    ) -> PeriodTotals:
        """Revenue, order, item and return totals within [start, end]."""
        ...

    async def fetch_top_categories(
        self, start: datetime, end: datetime, limit: int, timeout: Optional[float] = None
    ) -> List[TopCategory]:
        """Categories ordered by revenue (descending), at most `limit`."""
        ...

    async def fetch_hourly_sales(
        self, start: datetime, end: datetime, timeout: Optional[float] = None
    ) -> List[HourlySale]:
        """Sparse per-hour-of-day sales (hours without orders are absent)."""
        ...

    async def fetch_chart_series(
        self,
        start: datetime,
        end: datetime,
        granularity: Granularity,
        timeout: Optional[float] = None,
    ) -> List[RawAggregate]:
        """Sparse per-bucket aggregates, bucket truncated to `granularity`."""
        ...

    async def fetch_top_products(
        self,
        start: datetime,
        end: datetime,
        limit: int,
        ranking: ProductRanking,
        category: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> ProductSales:
        """
        At most `limit` products ordered by `ranking` (descending), with
        revenue and quantity totals over every product matching `category`.
        """
        ...

    async def ping(self, timeout: float = 5.0) -> bool:
        """True when the store answers a trivial query."""
        ...
