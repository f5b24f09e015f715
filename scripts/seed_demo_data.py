#!/usr/bin/env python3
"""
Fill a DuckDB database with synthetic orders for local dashboards.

Usage:
    python scripts/seed_demo_data.py                    # 120 days into the default db
    python scripts/seed_demo_data.py --days 400 --db data/demo.duckdb
    python scripts/seed_demo_data.py --seed 7 --orders-per-day 40
"""
import argparse
import asyncio
import random
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import config
from core.duckdb_constants import STATUS_ORDERED, STATUS_RETURNED
from core.duckdb_store import DuckDBStore
from core.observability import setup_logging

CATEGORIES = [
    ("dresses", "Dresses"),
    ("shoes", "Shoes"),
    ("bags", "Bags"),
    ("outerwear", "Outerwear"),
    ("accessories", "Accessories"),
    ("knitwear", "Knitwear"),
]

RETURN_RATE = 0.08


def build_catalog(rng: random.Random, products_per_category: int):
    products = []
    for category_id, name in CATEGORIES:
        for i in range(products_per_category):
            products.append((f"{category_id}-{i}", f"{name} #{i + 1}", category_id))
    prices = {product[0]: round(rng.uniform(15, 250), 2) for product in products}
    return products, prices


def build_orders(rng: random.Random, days: int, orders_per_day: int, products, prices):
    now = datetime.now(timezone.utc)
    start = (now - timedelta(days=days)).replace(hour=0, minute=0, second=0, microsecond=0)

    orders = []
    for day in range(days + 1):
        day_start = start + timedelta(days=day)
        # Weekends sell a bit more
        volume = int(orders_per_day * (1.3 if day_start.weekday() >= 5 else 1.0))
        for n in range(rng.randint(volume // 2, volume)):
            created_at = day_start + timedelta(seconds=rng.randint(0, 86399))
            if created_at > now:
                continue
            items = []
            for _ in range(rng.randint(1, 3)):
                product_id = rng.choice(products)[0]
                items.append({
                    "product_id": product_id,
                    "quantity": rng.randint(1, 2),
                    "price": prices[product_id],
                })
            orders.append({
                "id": f"{day_start:%Y%m%d}-{n}",
                "status": STATUS_RETURNED if rng.random() < RETURN_RATE else STATUS_ORDERED,
                "total": round(sum(i["price"] * i["quantity"] for i in items), 2),
                "created_at": created_at,
                "items": items,
            })
    return orders


async def seed(db_path: str, days: int, orders_per_day: int, seed_value: int) -> int:
    rng = random.Random(seed_value)
    products, prices = build_catalog(rng, products_per_category=8)
    orders = build_orders(rng, days, orders_per_day, products, prices)

    store = DuckDBStore(db_path)
    try:
        await store.connect()
        await store.upsert_catalog(CATEGORIES, products)
        return await store.upsert_orders(orders)
    finally:
        await store.close()


def main():
    parser = argparse.ArgumentParser(description="Seed the dashboard DuckDB with synthetic orders")
    parser.add_argument("--db", type=str, default=config.store.db_path, help="Path to DuckDB database file")
    parser.add_argument("--days", type=int, default=120, help="Days of history to generate")
    parser.add_argument("--orders-per-day", type=int, default=25, help="Upper bound of weekday orders")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    args = parser.parse_args()

    setup_logging(level="INFO")
    count = asyncio.run(seed(args.db, args.days, args.orders_per_day, args.seed))
    print(f"Seeded {count} orders into {args.db}")


if __name__ == "__main__":
    main()
