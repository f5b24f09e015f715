"""DuckDBStore aggregate queries backing the dashboard reports."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from core.duckdb_constants import (
    STATUS_ORDERED,
    STATUS_RETURNED,
    from_store_timestamp,
    to_store_timestamp,
)
from core.models import Granularity, HourlySale, PeriodTotals, RawAggregate, TopCategory
from core.observability import timed


class DashboardMixin:
    """
    Aggregate queries over orders within a closed [start, end] window.

    Revenue counts `ordered` orders only; returns are tracked separately
    from `returned` orders. Purchases are orders net of returns.
    """

    @timed("store.fetch_period_totals")
    async def fetch_period_totals(
        self, start: datetime, end: datetime, timeout: Optional[float] = None
    ) -> PeriodTotals:
        """Get revenue, order, item and return totals for a window."""
        params = [STATUS_ORDERED, STATUS_ORDERED, STATUS_RETURNED, STATUS_RETURNED,
                  to_store_timestamp(start), to_store_timestamp(end)]
        row = await self._fetch_one("""
            SELECT
                COALESCE(SUM(CASE WHEN status = ? THEN total ELSE 0 END), 0) AS revenue,
                COUNT(DISTINCT CASE WHEN status = ? THEN id END) AS orders_count,
                COUNT(DISTINCT CASE WHEN status = ? THEN id END) AS returns_count,
                COALESCE(SUM(CASE WHEN status = ? THEN total ELSE 0 END), 0) AS returns_sum
            FROM orders
            WHERE created_at BETWEEN ? AND ?
        """, params, timeout=timeout, operation="fetch_period_totals")

        items = await self._fetch_one("""
            SELECT COALESCE(SUM(oi.quantity), 0)
            FROM order_items oi
            JOIN orders o ON o.id = oi.order_id
            WHERE o.status = ? AND o.created_at BETWEEN ? AND ?
        """, [STATUS_ORDERED, to_store_timestamp(start), to_store_timestamp(end)],
            timeout=timeout, operation="fetch_period_totals")

        return PeriodTotals(
            revenue=float(row[0] or 0),
            orders_count=int(row[1] or 0),
            items_sold_count=int(items[0] or 0),
            returns_count=int(row[2] or 0),
            returns_sum=float(row[3] or 0),
        )

    @timed("store.fetch_top_categories")
    async def fetch_top_categories(
        self, start: datetime, end: datetime, limit: int, timeout: Optional[float] = None
    ) -> List[TopCategory]:
        """Get top categories by item revenue for a window (ties broken by id)."""
        rows = await self._fetch_all("""
            SELECT
                p.category_id,
                COALESCE(c.name, p.category_id) AS name,
                SUM(oi.price * oi.quantity) AS revenue,
                COUNT(DISTINCT o.id) AS orders,
                SUM(oi.quantity) AS items
            FROM orders o
            JOIN order_items oi ON oi.order_id = o.id
            JOIN products p ON p.id = oi.product_id
            LEFT JOIN categories c ON c.id = p.category_id
            WHERE o.status = ? AND o.created_at BETWEEN ? AND ?
              AND p.category_id IS NOT NULL
            GROUP BY p.category_id, c.name
            ORDER BY revenue DESC, p.category_id ASC
            LIMIT ?
        """, [STATUS_ORDERED, to_store_timestamp(start), to_store_timestamp(end), limit],
            timeout=timeout, operation="fetch_top_categories")

        return [
            TopCategory(
                category_id=row[0],
                name=row[1],
                revenue=round(float(row[2] or 0), 2),
                orders=int(row[3] or 0),
                items=int(row[4] or 0),
            )
            for row in rows
        ]

    @timed("store.fetch_hourly_sales")
    async def fetch_hourly_sales(
        self, start: datetime, end: datetime, timeout: Optional[float] = None
    ) -> List[HourlySale]:
        """Get sales per hour of day (UTC); hours without orders are absent."""
        rows = await self._fetch_all("""
            SELECT
                EXTRACT(HOUR FROM created_at) AS hour,
                COALESCE(SUM(total), 0) AS revenue,
                COUNT(*) AS orders
            FROM orders
            WHERE status = ? AND created_at BETWEEN ? AND ?
            GROUP BY hour
            ORDER BY hour ASC
        """, [STATUS_ORDERED, to_store_timestamp(start), to_store_timestamp(end)],
            timeout=timeout, operation="fetch_hourly_sales")

        return [
            HourlySale(hour=int(row[0]), revenue=float(row[1] or 0), orders=int(row[2] or 0))
            for row in rows
        ]

    @timed("store.fetch_chart_series")
    async def fetch_chart_series(
        self,
        start: datetime,
        end: datetime,
        granularity: Granularity,
        timeout: Optional[float] = None,
    ) -> List[RawAggregate]:
        """Get per-bucket order, purchase and return aggregates for a window."""
        # Enum value, never user text
        bucket_sql = f"date_trunc('{Granularity(granularity).value}', created_at)"
        params = [
            STATUS_ORDERED,                   # orders_revenue
            STATUS_ORDERED, STATUS_RETURNED,  # purchases_revenue
            STATUS_ORDERED,                   # orders_count
            STATUS_ORDERED, STATUS_RETURNED,  # purchases_count
            STATUS_RETURNED,                  # return_count
            STATUS_RETURNED,                  # return_revenue
            to_store_timestamp(start), to_store_timestamp(end),
        ]
        rows = await self._fetch_all(f"""
            SELECT
                {bucket_sql} AS bucket,
                COALESCE(SUM(CASE WHEN status = ? THEN total ELSE 0 END), 0) AS orders_revenue,
                COALESCE(SUM(CASE WHEN status = ? THEN total ELSE 0 END), 0)
                    - COALESCE(SUM(CASE WHEN status = ? THEN total ELSE 0 END), 0) AS purchases_revenue,
                COUNT(DISTINCT CASE WHEN status = ? THEN id END) AS orders_count,
                COUNT(DISTINCT CASE WHEN status = ? THEN id END)
                    - COUNT(DISTINCT CASE WHEN status = ? THEN id END) AS purchases_count,
                COUNT(DISTINCT CASE WHEN status = ? THEN id END) AS return_count,
                COALESCE(SUM(CASE WHEN status = ? THEN total ELSE 0 END), 0) AS return_revenue
            FROM orders
            WHERE created_at BETWEEN ? AND ?
            GROUP BY bucket
            ORDER BY bucket ASC
        """, params, timeout=timeout, operation="fetch_chart_series")

        return [
            RawAggregate(
                bucket=from_store_timestamp(row[0]),
                orders_revenue=float(row[1] or 0),
                purchases_revenue=float(row[2] or 0),
                orders_count=int(row[3] or 0),
                purchases_count=int(row[4] or 0),
                return_count=int(row[5] or 0),
                return_revenue=float(row[6] or 0),
            )
            for row in rows
        ]
