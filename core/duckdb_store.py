"""
DuckDB analytics store for the seller dashboard.

Provides persistent storage for orders, order items, products and
categories, and answers the reporting engine's aggregate queries.

Domain-specific query methods are organized into repository mixins:
- DashboardMixin: period totals, top categories, hourly sales, chart series
- AnalyticsMixin: top products
"""
import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from typing import Optional, List, Dict, Any, Tuple

import duckdb
import pandas as pd

from core.duckdb_constants import (
    DB_PATH, IN_MEMORY, DEFAULT_QUERY_TIMEOUT,
    ORDER_STATUSES, db_dir, to_store_timestamp,
)
from core.exceptions import QueryTimeoutError, StoreQueryError
from core.repositories import AnalyticsMixin, DashboardMixin

logger = logging.getLogger(__name__)


class DuckDBStore(DashboardMixin, AnalyticsMixin):
    """
    Async-compatible DuckDB store for analytics data.

    Features:
    - Persistent storage (survives restarts), or in-memory for tests
    - Aggregate queries with per-call timeouts
    - Thread offloading to avoid blocking asyncio event loop
    - Abandoned queries (timeout or cancellation) are interrupted
    """

    def __init__(self, db_path: str = DB_PATH):
        self.db_path = db_path
        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        self._lock = asyncio.Lock()  # Serializes all database access

        # Thread pool for offloading blocking DB operations
        self._executor: Optional[ThreadPoolExecutor] = None

        # Stats for monitoring
        self._total_queries = 0

    async def connect(self) -> None:
        """Initialize database connection, schema, and thread pool."""
        if self.db_path != IN_MEMORY:
            db_dir(self.db_path).mkdir(parents=True, exist_ok=True)

        async with self._lock:
            if self._connection is None:
                self._connection = duckdb.connect(str(self.db_path))
                self._init_schema()

                self._executor = ThreadPoolExecutor(
                    max_workers=1,  # Single worker - DuckDB requires serialized access
                    thread_name_prefix="duckdb"
                )

                logger.info(f"DuckDB connected: {self.db_path}")

    async def close(self) -> None:
        """Close database connection and thread pool."""
        async with self._lock:
            # Shutdown thread pool (waits for in-flight queries to finish)
            if self._executor:
                self._executor.shutdown(wait=True)
                self._executor = None

            if self._connection:
                self._connection.close()
                self._connection = None
                logger.info("DuckDB connection closed")

    def get_connection_info(self) -> Dict[str, Any]:
        """Get connection info for monitoring."""
        return {
            "status": "active" if self._connection else "not_initialized",
            "total_queries": self._total_queries,
            "db_path": str(self.db_path),
        }

    @asynccontextmanager
    async def connection(self):
        """Get database connection with automatic reconnection.

        Acquires lock to ensure single-threaded DuckDB access.
        DuckDB connections are NOT thread-safe - only one thread can use
        a connection at a time.
        """
        if self._connection is None:
            await self.connect()
        async with self._lock:
            yield self._connection

    # ─── Query Execution with Timeout ────────────────────────────────────────

    async def _run_query(
        self,
        query: str,
        params: Optional[list],
        timeout: Optional[float],
        fetch: str,
        operation: str,
    ):
        async with self.connection() as conn:
            self._total_queries += 1
            loop = asyncio.get_running_loop()

            def _run():
                result = conn.execute(query, params or [])
                return result.fetchone() if fetch == "one" else result.fetchall()

            future = loop.run_in_executor(self._executor, _run)
            try:
                return await asyncio.wait_for(future, timeout=timeout or DEFAULT_QUERY_TIMEOUT)
            except asyncio.TimeoutError:
                conn.interrupt()
                raise QueryTimeoutError(query, timeout or DEFAULT_QUERY_TIMEOUT, operation)
            except asyncio.CancelledError:
                # Client went away: stop the query instead of letting it run on
                conn.interrupt()
                raise
            except duckdb.Error as e:
                raise StoreQueryError("Aggregate query failed", str(e), operation=operation)

    async def _fetch_one(
        self,
        query: str,
        params: list = None,
        timeout: float = None,
        operation: str = "fetch_one",
    ) -> Optional[tuple]:
        """
        Execute query and fetch one result with timeout.

        Raises:
            QueryTimeoutError: If query exceeds timeout
            StoreQueryError: If DuckDB rejects the query
        """
        return await self._run_query(query, params, timeout, "one", operation)

    async def _fetch_all(
        self,
        query: str,
        params: list = None,
        timeout: float = None,
        operation: str = "fetch_all",
    ) -> List[tuple]:
        """
        Execute query and fetch all results with timeout.

        Raises:
            QueryTimeoutError: If query exceeds timeout
            StoreQueryError: If DuckDB rejects the query
        """
        return await self._run_query(query, params, timeout, "all", operation)

    async def ping(self, timeout: float = 5.0) -> bool:
        """Cheap liveness query for health checks."""
        row = await self._fetch_one("SELECT 1", timeout=timeout, operation="ping")
        return row is not None and row[0] == 1

    def _init_schema(self) -> None:
        """Create database schema if not exists."""
        schema_sql = """
        -- Categories
        CREATE TABLE IF NOT EXISTS categories (
            id VARCHAR PRIMARY KEY,
            name VARCHAR NOT NULL
        );

        -- Products catalog
        CREATE TABLE IF NOT EXISTS products (
            id VARCHAR PRIMARY KEY,
            name VARCHAR NOT NULL,
            category_id VARCHAR
        );

        -- Orders (created_at is naive UTC)
        CREATE TABLE IF NOT EXISTS orders (
            id VARCHAR PRIMARY KEY,
            status VARCHAR NOT NULL,
            total DECIMAL(12, 2) NOT NULL,
            created_at TIMESTAMP NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_orders_created_at ON orders(created_at);
        CREATE INDEX IF NOT EXISTS idx_orders_status ON orders(status);

        -- Order items (line items)
        CREATE TABLE IF NOT EXISTS order_items (
            id VARCHAR PRIMARY KEY,
            order_id VARCHAR NOT NULL,
            product_id VARCHAR,
            quantity INTEGER NOT NULL,
            price DECIMAL(12, 2) NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_order_items_order ON order_items(order_id);
        CREATE INDEX IF NOT EXISTS idx_order_items_product ON order_items(product_id);
        """
        self._connection.execute(schema_sql)

    # ─── Loading ─────────────────────────────────────────────────────────────

    async def upsert_catalog(
        self,
        categories: List[Tuple[str, str]],
        products: List[Tuple[str, str, Optional[str]]],
    ) -> None:
        """
        Insert or replace categories and products.

        Args:
            categories: (id, name) pairs
            products: (id, name, category_id) triples
        """
        async with self.connection() as conn:
            conn.execute("BEGIN TRANSACTION")
            try:
                if categories:
                    conn.executemany(
                        "INSERT OR REPLACE INTO categories (id, name) VALUES (?, ?)",
                        categories,
                    )
                if products:
                    conn.executemany(
                        "INSERT OR REPLACE INTO products (id, name, category_id) VALUES (?, ?, ?)",
                        products,
                    )
                conn.execute("COMMIT")
            except Exception:
                conn.execute("ROLLBACK")
                raise

        logger.info(f"Catalog loaded: {len(categories)} categories, {len(products)} products")

    async def upsert_orders(self, orders: List[Dict[str, Any]]) -> int:
        """
        Insert or replace orders with their items.

        Each order dict carries `id`, `status` (ordered | returned), `total`,
        `created_at` (datetime) and optional `items`, a list of dicts with
        `product_id`, `quantity` and `price`. Existing items of a replaced
        order are removed first.

        Returns:
            Number of orders written
        """
        if not orders:
            return 0

        order_rows = []
        item_rows = []
        for order in orders:
            if order["status"] not in ORDER_STATUSES:
                raise ValueError(f"Unknown order status: {order['status']!r}")

            order_rows.append({
                "id": str(order["id"]),
                "status": order["status"],
                "total": float(order["total"]),
                "created_at": to_store_timestamp(order["created_at"]),
            })
            for i, item in enumerate(order.get("items") or []):
                item_rows.append((
                    f"{order['id']}:{i}",
                    str(order["id"]),
                    item.get("product_id"),
                    int(item["quantity"]),
                    float(item["price"]),
                ))

        orders_df = pd.DataFrame(order_rows)
        orders_df["created_at"] = pd.to_datetime(orders_df["created_at"])
        order_ids = orders_df["id"].tolist()

        async with self.connection() as conn:
            conn.execute("BEGIN TRANSACTION")
            try:
                conn.register("stg_orders", orders_df)

                placeholders = ",".join("?" * len(order_ids))
                conn.execute(f"DELETE FROM order_items WHERE order_id IN ({placeholders})", order_ids)
                conn.execute(f"DELETE FROM orders WHERE id IN ({placeholders})", order_ids)

                conn.execute("""
                    INSERT INTO orders (id, status, total, created_at)
                    SELECT id, status, total, created_at FROM stg_orders
                """)

                if item_rows:
                    conn.executemany("""
                        INSERT OR REPLACE INTO order_items (id, order_id, product_id, quantity, price)
                        VALUES (?, ?, ?, ?, ?)
                    """, item_rows)

                conn.unregister("stg_orders")
                conn.execute("COMMIT")
            except Exception:
                conn.execute("ROLLBACK")
                raise

        count = len(order_rows)
        logger.info(f"Upserted {count} orders to DuckDB (DataFrame bulk insert)")
        return count


# ═══════════════════════════════════════════════════════════════════════════════
# SINGLETON
# ═══════════════════════════════════════════════════════════════════════════════

_store_instance: Optional[DuckDBStore] = None
_store_lock = asyncio.Lock()


async def get_store() -> DuckDBStore:
    """Get singleton DuckDB store instance (coroutine-safe)."""
    global _store_instance
    async with _store_lock:
        if _store_instance is None:
            _store_instance = DuckDBStore()
            await _store_instance.connect()
    return _store_instance


async def close_store() -> None:
    """Close singleton store instance."""
    global _store_instance
    if _store_instance:
        await _store_instance.close()
        _store_instance = None
