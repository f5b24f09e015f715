"""
Pytest configuration and shared fixtures.
"""
import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio

from core.duckdb_constants import IN_MEMORY, STATUS_ORDERED, STATUS_RETURNED
from core.duckdb_store import DuckDBStore
from core.models import PeriodTotals, ProductSales


class RecordingStore:
    """
    In-memory Aggregate Store that records every fetch.

    Args:
        totals: PeriodTotals keyed by window start; other windows get `default_totals`
        top_categories: Rows returned by fetch_top_categories
        hourly: Rows returned by fetch_hourly_sales
        series: Rows returned by fetch_chart_series
        top_products: ProductSales returned by fetch_top_products (products cut to `limit`)
        fail: Exception to raise, keyed by operation name
        delay: Seconds to sleep before answering, keyed by operation name
    """

    def __init__(
        self,
        totals: Optional[Dict[datetime, PeriodTotals]] = None,
        default_totals: Optional[PeriodTotals] = None,
        top_categories: Optional[List[Any]] = None,
        hourly: Optional[List[Any]] = None,
        series: Optional[List[Any]] = None,
        top_products: Optional[ProductSales] = None,
        fail: Optional[Dict[str, Exception]] = None,
        delay: Optional[Dict[str, float]] = None,
    ):
        self.totals = totals or {}
        self.default_totals = default_totals or PeriodTotals()
        self.top_categories = top_categories or []
        self.hourly = hourly or []
        self.series = series or []
        self.top_products = top_products or ProductSales()
        self.fail = fail or {}
        self.delay = delay or {}
        self.calls: List[tuple] = []
        self.cancelled: List[str] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def operations(self) -> List[str]:
        return [call[0] for call in self.calls]

    async def _record(self, operation: str, *args) -> None:
        self.calls.append((operation, *args))
        try:
            if self.delay.get(operation):
                await asyncio.sleep(self.delay[operation])
        except asyncio.CancelledError:
            self.cancelled.append(operation)
            raise
        if operation in self.fail:
            raise self.fail[operation]

    async def fetch_period_totals(self, start, end, timeout=None):
        await self._record("fetch_period_totals", start, end, timeout)
        return self.totals.get(start, self.default_totals)

    async def fetch_top_categories(self, start, end, limit, timeout=None):
        await self._record("fetch_top_categories", start, end, limit, timeout)
        return list(self.top_categories[:limit])

    async def fetch_hourly_sales(self, start, end, timeout=None):
        await self._record("fetch_hourly_sales", start, end, timeout)
        return list(self.hourly)

    async def fetch_chart_series(self, start, end, granularity, timeout=None):
        await self._record("fetch_chart_series", start, end, granularity, timeout)
        return list(self.series)

    async def fetch_top_products(self, start, end, limit, ranking, category=None, timeout=None):
        await self._record("fetch_top_products", start, end, limit, ranking, category, timeout)
        return ProductSales(
            products=list(self.top_products.products[:limit]),
            total_revenue=self.top_products.total_revenue,
            total_sales=self.top_products.total_sales,
        )

    async def ping(self, timeout=5.0):
        await self._record("ping", timeout)
        return True


@pytest.fixture
def fixed_now() -> datetime:
    """Wednesday afternoon, mid-March (UTC)."""
    return datetime(2026, 3, 18, 15, 30, 12, tzinfo=timezone.utc)


@pytest.fixture
def make_store():
    """Factory for recording fake stores."""
    return RecordingStore


@pytest.fixture
def recording_store() -> RecordingStore:
    """Recording fake store answering with empty aggregates."""
    return RecordingStore()


@pytest.fixture
def sample_orders() -> List[Dict[str, Any]]:
    """Orders around the fixed `now`: two sales and a return today, one sale on Monday."""
    return [
        {
            "id": "1001",
            "status": STATUS_ORDERED,
            "total": 100.00,
            "created_at": datetime(2026, 3, 18, 9, 15, tzinfo=timezone.utc),
            "items": [
                {"product_id": "p-dress", "quantity": 2, "price": 30.00},
                {"product_id": "p-shoes", "quantity": 1, "price": 40.00},
            ],
        },
        {
            "id": "1002",
            "status": STATUS_ORDERED,
            "total": 50.00,
            "created_at": datetime(2026, 3, 18, 14, 5, tzinfo=timezone.utc),
            "items": [{"product_id": "p-boots", "quantity": 1, "price": 50.00}],
        },
        # Return (excluded from revenue)
        {
            "id": "1003",
            "status": STATUS_RETURNED,
            "total": 20.00,
            "created_at": datetime(2026, 3, 18, 10, 0, tzinfo=timezone.utc),
            "items": [{"product_id": "p-dress", "quantity": 1, "price": 20.00}],
        },
        {
            "id": "1004",
            "status": STATUS_ORDERED,
            "total": 70.00,
            "created_at": datetime(2026, 3, 16, 12, 0, tzinfo=timezone.utc),
            "items": [{"product_id": "p-dress", "quantity": 1, "price": 70.00}],
        },
    ]


@pytest.fixture
def sample_catalog():
    """(categories, products) for the sample orders."""
    categories = [("dresses", "Dresses"), ("shoes", "Shoes")]
    products = [
        ("p-dress", "Linen Dress", "dresses"),
        ("p-shoes", "Canvas Sneakers", "shoes"),
        ("p-boots", "Chelsea Boots", "shoes"),
    ]
    return categories, products


@pytest_asyncio.fixture
async def duckdb_store():
    """Empty in-memory DuckDB store."""
    store = DuckDBStore(IN_MEMORY)
    await store.connect()
    yield store
    await store.close()


@pytest_asyncio.fixture
async def seeded_store(duckdb_store, sample_catalog, sample_orders):
    """In-memory DuckDB store loaded with the sample catalog and orders."""
    categories, products = sample_catalog
    await duckdb_store.upsert_catalog(categories, products)
    await duckdb_store.upsert_orders(sample_orders)
    return duckdb_store
