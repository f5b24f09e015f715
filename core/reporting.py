"""
Dashboard report assembly.

Composes window resolution, store fetches, gap-filling, comparison and
summarization into the dashboard responses:

    stats = await build_stats_response(StatsParams(period="week"), now, store)
    chart = await build_chart_response(ChartParams(period="30d"), now, store)
    top = await build_top_products_response(TopProductsParams(metric="quantity"), now, store)

All request validation happens before the first store call. Store errors
propagate unchanged; nothing here retries.
"""
import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Awaitable, List, Optional

from core.comparison import compare, safe_divide
from core.config import config
from core.models import (
    ChartParams,
    ChartResponse,
    PeriodTotals,
    StatsParams,
    StatsResponse,
    TopProduct,
    TopProductsParams,
    TopProductsResponse,
    TopProductsSummary,
)
from core.periods import as_utc, resolve_chart, resolve_chart_window, resolve_period
from core.series import build_chart_series, build_hourly_series, count_buckets
from core.store import AggregateStore
from core.summary import summarize_series
from core.validators import (
    validate_chart_metric,
    validate_granularity,
    validate_limit,
    validate_product_ranking,
)

logger = logging.getLogger(__name__)

HOURLY_WINDOW = timedelta(hours=config.reporting.hourly_window_hours)


async def gather_or_cancel(*aws: Awaitable) -> List[Any]:
    """
    Run awaitables concurrently and return their results in order.

    The first failure cancels every sibling still running and is re-raised.
    Cancelling the caller cancels all of them.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    if not tasks:
        return []

    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        raise

    failed = [t for t in tasks if t.done() and not t.cancelled() and t.exception() is not None]
    if failed:
        pending = [t for t in tasks if not t.done()]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        raise failed[0].exception()

    return [task.result() for task in tasks]


async def _none() -> None:
    return None


async def build_stats_response(
    params: StatsParams,
    now: datetime,
    store: AggregateStore,
    timeout: Optional[float] = None,
    top_categories_limit: int = config.reporting.top_categories_limit,
) -> StatsResponse:
    """
    Build the stats snapshot for a period.

    Raises:
        ValidationError: Bad period name or custom date (before any store call)
        StoreError: Any store fetch failed
    """
    period = resolve_period(params, as_utc(now))
    limit = validate_limit(top_categories_limit, "top_categories_limit")

    start, end = period.date_from, period.date_to
    wants_hourly = period.duration < HOURLY_WINDOW

    logger.info(
        "Building stats",
        extra={
            "period": period.type,
            "date_from": start.isoformat(),
            "date_to": end.isoformat(),
            "compare": period.previous is not None,
        },
    )

    current, previous, top_categories, hourly_rows = await gather_or_cancel(
        store.fetch_period_totals(start, end, timeout=timeout),
        store.fetch_period_totals(period.previous.date_from, period.previous.date_to, timeout=timeout)
        if period.previous else _none(),
        store.fetch_top_categories(start, end, limit, timeout=timeout),
        store.fetch_hourly_sales(start, end, timeout=timeout) if wants_hourly else _none(),
    )
    previous = previous or PeriodTotals()

    return StatsResponse(
        period=period,
        revenue=compare(current.revenue, previous.revenue),
        orders=compare(current.orders_count, previous.orders_count),
        items_sold=compare(current.items_sold_count, previous.items_sold_count),
        avg_order_value=compare(
            safe_divide(current.revenue, current.orders_count),
            safe_divide(previous.revenue, previous.orders_count),
        ),
        # No sessions source yet: reported as a neutral metric
        conversion_rate=compare(0, 0),
        return_rate=compare(
            safe_divide(current.returns_count * 100, current.orders_count),
            safe_divide(previous.returns_count * 100, previous.orders_count),
        ),
        top_categories=top_categories,
        hourly_sales=build_hourly_series(hourly_rows) if wants_hourly else [],
    )


async def build_chart_response(
    params: ChartParams,
    now: datetime,
    store: AggregateStore,
    timeout: Optional[float] = None,
) -> ChartResponse:
    """
    Build the dense sales chart with its summary.

    Raises:
        ValidationError: Bad chart code, metric or granularity (before any store call)
        StoreError: The series fetch failed
    """
    metric = validate_chart_metric(params.metric)
    override = validate_granularity(params.granularity)
    window = resolve_chart(params.period, as_utc(now), override)

    logger.info(
        "Building sales chart",
        extra={
            "period": params.period,
            "granularity": window.granularity.value,
            "start": window.start.isoformat(),
            "end": window.end.isoformat(),
            "points": count_buckets(window.start, window.end, window.granularity),
        },
    )

    rows = await store.fetch_chart_series(window.start, window.end, window.granularity, timeout=timeout)
    points = build_chart_series(rows, window)

    return ChartResponse(
        period=params.period.strip().lower(),
        metric=metric.value,
        granularity=window.granularity,
        data=points,
        summary=summarize_series(points),
    )


async def build_top_products_response(
    params: TopProductsParams,
    now: datetime,
    store: AggregateStore,
    timeout: Optional[float] = None,
) -> TopProductsResponse:
    """
    Rank the best-selling products of a chart window.

    Defaults: period 30d, ordered by revenue, 10 products. Each product's
    `revenue_share` is its percent of the revenue of every matching
    product, listed or not.

    Raises:
        ValidationError: Bad chart code, metric or limit (before any store call)
        StoreError: The product fetch failed
    """
    period = params.period or config.reporting.top_products_period
    ranking = validate_product_ranking(params.metric)
    limit = validate_limit(
        config.reporting.top_products_limit if params.limit is None else params.limit
    )
    category = (params.category or "").strip() or None
    start, end = resolve_chart_window(period, as_utc(now))

    logger.info(
        "Building top products",
        extra={
            "period": period,
            "metric": ranking.value,
            "category": category,
            "limit": limit,
        },
    )

    sales = await store.fetch_top_products(start, end, limit, ranking, category, timeout=timeout)

    products = [
        TopProduct(
            rank=rank,
            product_id=sale.product_id,
            name=sale.name,
            category_id=sale.category_id,
            category_name=sale.category_name,
            sales_count=sale.sales_count,
            orders=sale.orders,
            revenue=sale.revenue,
            revenue_share=round(safe_divide(sale.revenue * 100, sales.total_revenue), 2),
        )
        for rank, sale in enumerate(sales.products, start=1)
    ]

    return TopProductsResponse(
        period=period.strip().lower(),
        metric=ranking.value,
        category=category,
        date_from=start,
        date_to=end,
        products=products,
        summary=TopProductsSummary(total_revenue=sales.total_revenue, total_sales=sales.total_sales),
    )
