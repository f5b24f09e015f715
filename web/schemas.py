"""
Pydantic response models for API endpoints.

Provides type-safe response models with automatic validation and documentation.
Field names are the wire names existing dashboard clients read.
"""
from typing import Optional, List, Dict, Any, Union
from pydantic import BaseModel, Field


# ═══════════════════════════════════════════════════════════════════════════════
# COMMON MODELS
# ═══════════════════════════════════════════════════════════════════════════════

class ErrorResponse(BaseModel):
    """Error body for 4xx/5xx responses."""
    error: str
    field: Optional[str] = None
    correlation_id: Optional[str] = None


class MetricModel(BaseModel):
    """Scalar compared with the previous period."""
    current: Union[int, float]
    previous: Union[int, float]
    change_absolute: Union[int, float]
    change_percent: float
    trend: str = Field(description="up, down or stable")


# ═══════════════════════════════════════════════════════════════════════════════
# HEALTH CHECK
# ═══════════════════════════════════════════════════════════════════════════════

class StoreStats(BaseModel):
    """Aggregate Store status."""
    status: str
    latency_ms: Optional[float] = None
    total_queries: Optional[int] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(description="Service status: healthy or degraded")
    version: str = Field(description="Application version")
    uptime_seconds: int = Field(description="Uptime in seconds")
    correlation_id: Optional[str] = Field(None, description="Request correlation ID")
    store: StoreStats


class MetricsResponse(BaseModel):
    """In-memory request and query metrics."""
    requests: Dict[str, int]
    errors: Dict[str, int]
    timing: Dict[str, Dict[str, Any]]


# ═══════════════════════════════════════════════════════════════════════════════
# STATS
# ═══════════════════════════════════════════════════════════════════════════════

class PreviousPeriodModel(BaseModel):
    """Comparison window."""
    date_from: str
    date_to: str


class PeriodModel(BaseModel):
    """Resolved reporting window (ISO 8601, UTC)."""
    type: str = Field(description="today, yesterday, week, month, quarter, year or custom")
    date_from: str
    date_to: str
    previous_period: Optional[PreviousPeriodModel] = None


class TopCategoryModel(BaseModel):
    """Category ranked by revenue."""
    category_id: str
    name: str
    revenue: float
    orders: int
    items: int


class HourlySaleModel(BaseModel):
    """Sales within one hour of the day (UTC)."""
    hour: int = Field(ge=0, le=23)
    revenue: float
    orders: int


class StatsResponseModel(BaseModel):
    """Stats snapshot for a period."""
    period: PeriodModel
    revenue: MetricModel
    orders: MetricModel
    items_sold: MetricModel
    avg_order_value: MetricModel
    conversion_rate: MetricModel
    return_rate: MetricModel
    top_categories: List[TopCategoryModel]
    hourly_sales: List[HourlySaleModel] = Field(
        description="24 points for single-day periods, empty otherwise"
    )


# ═══════════════════════════════════════════════════════════════════════════════
# SALES CHART
# ═══════════════════════════════════════════════════════════════════════════════

class SeriesPointModel(BaseModel):
    """One bucket of the dense sales series."""
    bucket: str = Field(description="Bucket start (ISO 8601, UTC)")
    label: str = Field(description="YYYY-MM-DD, or YYYY-MM-DD HH:00 for hourly buckets")
    orders_revenue: float
    purchases_revenue: float
    orders_count: int
    purchases_count: int
    return_count: int
    return_revenue: float


class BestWorstDayModel(BaseModel):
    label: str
    revenue: float


class SeriesSummaryModel(BaseModel):
    """Totals and extremes of the series."""
    totals: Dict[str, Union[int, float]]
    avg_daily_revenue: float
    best_day: BestWorstDayModel
    worst_day: BestWorstDayModel


class ChartResponseModel(BaseModel):
    """Sales chart with summary."""
    period: str
    metric: str
    granularity: str
    data: List[SeriesPointModel]
    summary: SeriesSummaryModel


# ═══════════════════════════════════════════════════════════════════════════════
# TOP PRODUCTS
# ═══════════════════════════════════════════════════════════════════════════════

class TopProductModel(BaseModel):
    """Product ranked by revenue or quantity."""
    rank: int = Field(ge=1)
    id: str
    name: str
    category: Optional[str] = None
    category_name: Optional[str] = None
    sales_count: int = Field(description="Units sold")
    orders: int
    revenue: float
    revenue_share: float = Field(description="Percent of revenue over every matching product")


class TopProductsSummaryModel(BaseModel):
    total_revenue: float
    total_sales: int


class TopProductsResponseModel(BaseModel):
    """Best-selling products of a chart window."""
    period: str
    metric: str = Field(description="revenue or quantity")
    category: Optional[str] = None
    date_from: str
    date_to: str
    products: List[TopProductModel]
    summary: TopProductsSummaryModel
