"""Dashboard stats and sales chart endpoints."""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from core.config import config
from core.models import ChartParams, StatsParams
from core.reporting import build_chart_response, build_stats_response
from core.store import AggregateStore
from web.schemas import ChartResponseModel, StatsResponseModel
from ._deps import limiter, provide_store, get_now, get_logger

router = APIRouter(prefix="/dashboard")
logger = get_logger(__name__)


@router.get("/stats", response_model=StatsResponseModel, response_model_exclude_none=True)
@limiter.limit(config.web.stats_rate_limit)
async def get_dashboard_stats(
    request: Request,
    period: Optional[str] = Query(None, description="today, yesterday, week, month, quarter, year"),
    date_from: Optional[str] = Query(None, description="Custom start date (YYYY-MM-DD)"),
    date_to: Optional[str] = Query(None, description="Custom end date (YYYY-MM-DD)"),
    compare_with_previous: bool = Query(False, description="Compare with the preceding period"),
    store: AggregateStore = Depends(provide_store),
    now: datetime = Depends(get_now),
):
    """
    Stats snapshot for a period: revenue, orders, items, AOV and return rate
    metrics, top categories, and hourly sales for single-day periods.

    ValidationError and StoreError are mapped to 400/500 by the app's
    exception handlers.
    """
    params = StatsParams(
        period=period,
        date_from=date_from,
        date_to=date_to,
        compare_with_previous=compare_with_previous,
    )
    result = await build_stats_response(params, now, store, timeout=config.store.query_timeout)
    return result.to_dict()


@router.get("/sales-chart", response_model=ChartResponseModel)
@limiter.limit(config.web.chart_rate_limit)
async def get_sales_chart(
    request: Request,
    period: str = Query(..., description="Chart window: 7d, 30d, 90d, 1y"),
    metric: Optional[str] = Query(None, description="revenue, orders or items"),
    granularity: Optional[str] = Query(None, description="Override: hour, day, week, month"),
    store: AggregateStore = Depends(provide_store),
    now: datetime = Depends(get_now),
):
    """Dense sales series for a chart window, with totals and best/worst buckets."""
    params = ChartParams(period=period, metric=metric, granularity=granularity)
    result = await build_chart_response(params, now, store, timeout=config.store.query_timeout)
    return result.to_dict()
