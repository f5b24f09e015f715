"""Product analytics endpoints."""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from core.config import config
from core.models import TopProductsParams
from core.reporting import build_top_products_response
from core.store import AggregateStore
from web.schemas import TopProductsResponseModel
from ._deps import limiter, provide_store, get_now, get_logger

router = APIRouter(prefix="/analytics")
logger = get_logger(__name__)


@router.get("/top-products", response_model=TopProductsResponseModel)
@limiter.limit(config.web.top_products_rate_limit)
async def get_top_products(
    request: Request,
    period: Optional[str] = Query(None, description="Window: 7d, 30d (default), 90d, 1y"),
    metric: Optional[str] = Query(None, description="Order by revenue (default) or quantity"),
    category: Optional[str] = Query(None, description="Category ID filter"),
    limit: Optional[int] = Query(None, description="Products to return (1-100, default 10)"),
    store: AggregateStore = Depends(provide_store),
    now: datetime = Depends(get_now),
):
    """Best-selling products with their share of product revenue."""
    params = TopProductsParams(period=period, metric=metric, category=category, limit=limit)
    result = await build_top_products_response(params, now, store, timeout=config.store.query_timeout)
    return result.to_dict()
