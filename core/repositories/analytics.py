"""DuckDBStore product analytics queries."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from core.duckdb_constants import STATUS_ORDERED, to_store_timestamp
from core.models import ProductRanking, ProductSale, ProductSales
from core.observability import timed

# Whitelisted ORDER BY clauses; ties fall back to product id
RANKING_ORDER = {
    ProductRanking.REVENUE: "revenue DESC, p.id ASC",
    ProductRanking.QUANTITY: "sales_count DESC, revenue DESC, p.id ASC",
}


class AnalyticsMixin:
    """Per-product sales rankings over ordered orders."""

    @timed("store.fetch_top_products")
    async def fetch_top_products(
        self,
        start: datetime,
        end: datetime,
        limit: int,
        ranking: ProductRanking = ProductRanking.REVENUE,
        category: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> ProductSales:
        """Get the best-selling products of a window, optionally within one category."""
        params = [STATUS_ORDERED, to_store_timestamp(start), to_store_timestamp(end)]
        where_clauses = ["o.status = ?", "o.created_at BETWEEN ? AND ?"]

        if category:
            where_clauses.append("p.category_id = ?")
            params.append(category)

        params.append(limit)
        where_sql = " AND ".join(where_clauses)
        order_sql = RANKING_ORDER[ProductRanking(ranking)]

        # Window totals are computed before LIMIT, so they cover every product
        rows = await self._fetch_all(f"""
            SELECT
                p.id,
                p.name,
                p.category_id,
                c.name AS category_name,
                SUM(oi.quantity) AS sales_count,
                COUNT(DISTINCT o.id) AS orders,
                SUM(oi.price * oi.quantity) AS revenue,
                SUM(SUM(oi.price * oi.quantity)) OVER () AS total_revenue,
                SUM(SUM(oi.quantity)) OVER () AS total_sales
            FROM orders o
            JOIN order_items oi ON oi.order_id = o.id
            JOIN products p ON p.id = oi.product_id
            LEFT JOIN categories c ON c.id = p.category_id
            WHERE {where_sql}
            GROUP BY p.id, p.name, p.category_id, c.name
            ORDER BY {order_sql}
            LIMIT ?
        """, params, timeout=timeout, operation="fetch_top_products")

        if not rows:
            return ProductSales()

        return ProductSales(
            products=[
                ProductSale(
                    product_id=row[0],
                    name=row[1],
                    category_id=row[2],
                    category_name=row[3],
                    sales_count=int(row[4] or 0),
                    orders=int(row[5] or 0),
                    revenue=round(float(row[6] or 0), 2),
                )
                for row in rows
            ],
            total_revenue=round(float(rows[0][7] or 0), 2),
            total_sales=int(rows[0][8] or 0),
        )
