"""
Domain models for the reporting engine.

Provides type-safe dataclasses for periods, chart windows, series points,
metrics and summaries. All of them are request-scoped value objects; the
`to_dict()` methods produce the wire field names used by API clients.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, List, Dict, Any, Union

from dateutil.relativedelta import relativedelta


# ═══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ═══════════════════════════════════════════════════════════════════════════════

class PeriodType(str, Enum):
    """Named reporting periods plus the custom date range."""
    TODAY = "today"
    YESTERDAY = "yesterday"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"
    CUSTOM = "custom"

    @classmethod
    def named(cls) -> List["PeriodType"]:
        """Periods that can be requested by name."""
        return [p for p in cls if p is not cls.CUSTOM]


class ChartPeriod(str, Enum):
    """Rolling chart windows anchored at the end of today."""
    DAYS_7 = "7d"
    DAYS_30 = "30d"
    DAYS_90 = "90d"
    YEAR = "1y"

    @property
    def days(self) -> Optional[int]:
        """Window length in days; None for the calendar-year window."""
        return {
            ChartPeriod.DAYS_7: 7,
            ChartPeriod.DAYS_30: 30,
            ChartPeriod.DAYS_90: 90,
        }.get(self)


class Granularity(str, Enum):
    """Bucket size for chart series."""
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    @property
    def label_format(self) -> str:
        return "%Y-%m-%d %H:00" if self is Granularity.HOUR else "%Y-%m-%d"

    def truncate(self, moment: datetime) -> datetime:
        """Truncate an instant to the start of its bucket (weeks start on Monday)."""
        if self is Granularity.HOUR:
            return moment.replace(minute=0, second=0, microsecond=0)
        midnight = moment.replace(hour=0, minute=0, second=0, microsecond=0)
        if self is Granularity.DAY:
            return midnight
        if self is Granularity.WEEK:
            return midnight - timedelta(days=midnight.weekday())
        return midnight.replace(day=1)

    def advance(self, bucket: datetime) -> datetime:
        """Start of the bucket following `bucket`."""
        if self is Granularity.HOUR:
            return bucket + timedelta(hours=1)
        if self is Granularity.DAY:
            return bucket + timedelta(days=1)
        if self is Granularity.WEEK:
            return bucket + timedelta(weeks=1)
        return bucket + relativedelta(months=1)

    def label(self, bucket: datetime) -> str:
        return bucket.strftime(self.label_format)


class Trend(str, Enum):
    """Direction of a metric versus its comparison period."""
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class ChartMetric(str, Enum):
    """Metric a sales chart is drawn for (echoed back to the client)."""
    REVENUE = "revenue"
    ORDERS = "orders"
    ITEMS = "items"


class ProductRanking(str, Enum):
    """Order of the top products list."""
    REVENUE = "revenue"
    QUANTITY = "quantity"


def _iso(moment: datetime) -> str:
    return moment.isoformat().replace("+00:00", "Z")


# ═══════════════════════════════════════════════════════════════════════════════
# REQUEST PARAMETERS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StatsParams:
    """Parameters of a stats snapshot request."""
    period: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    compare_with_previous: bool = False


@dataclass(frozen=True)
class ChartParams:
    """Parameters of a sales chart request."""
    period: str
    metric: Optional[str] = None
    granularity: Optional[str] = None


@dataclass(frozen=True)
class TopProductsParams:
    """Parameters of a top products request (defaults applied by the engine)."""
    period: Optional[str] = None
    metric: Optional[str] = None
    category: Optional[str] = None
    limit: Optional[int] = None


# ═══════════════════════════════════════════════════════════════════════════════
# WINDOWS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Period:
    """
    Resolved reporting window.

    `previous`, when set, is the adjacent window of identical duration
    ending one resolution step before `date_from`.
    """
    type: str
    date_from: datetime
    date_to: datetime
    previous: Optional["Period"] = None

    @property
    def duration(self) -> timedelta:
        return self.date_to - self.date_from

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "type": self.type,
            "date_from": _iso(self.date_from),
            "date_to": _iso(self.date_to),
        }
        if self.previous is not None:
            result["previous_period"] = {
                "date_from": _iso(self.previous.date_from),
                "date_to": _iso(self.previous.date_to),
            }
        return result


@dataclass(frozen=True)
class ChartWindow:
    """Chart time window with its bucket size."""
    start: datetime
    end: datetime
    granularity: Granularity


# ═══════════════════════════════════════════════════════════════════════════════
# STORE RESULTS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class PeriodTotals:
    """Scalar aggregates for one window."""
    revenue: float = 0.0
    orders_count: int = 0
    items_sold_count: int = 0
    returns_count: int = 0
    returns_sum: float = 0.0


@dataclass
class TopCategory:
    """Revenue leader category within a window."""
    category_id: str
    name: str
    revenue: float = 0.0
    orders: int = 0
    items: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category_id": self.category_id,
            "name": self.name,
            "revenue": self.revenue,
            "orders": self.orders,
            "items": self.items,
        }


@dataclass
class HourlySale:
    """Sales within one hour of the day (0-23, UTC)."""
    hour: int
    revenue: float = 0.0
    orders: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"hour": self.hour, "revenue": self.revenue, "orders": self.orders}


@dataclass
class RawAggregate:
    """Per-bucket aggregate as returned by the store (may be sparse)."""
    bucket: datetime
    orders_revenue: float = 0.0
    purchases_revenue: float = 0.0
    orders_count: int = 0
    purchases_count: int = 0
    return_count: int = 0
    return_revenue: float = 0.0


@dataclass
class ProductSale:
    """Sales of one product within a window."""
    product_id: str
    name: str
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    sales_count: int = 0
    orders: int = 0
    revenue: float = 0.0


@dataclass
class ProductSales:
    """
    Leading products of a window plus totals over every matching product.

    The totals are not limited, so shares of the listed products may sum
    to less than 100.
    """
    products: List[ProductSale] = field(default_factory=list)
    total_revenue: float = 0.0
    total_sales: int = 0


# Numeric fields shared by RawAggregate and SeriesPoint, in wire order
SERIES_FIELDS = (
    "orders_revenue",
    "purchases_revenue",
    "orders_count",
    "purchases_count",
    "return_count",
    "return_revenue",
)


@dataclass
class SeriesPoint:
    """One labeled bucket of a dense chart series."""
    bucket: datetime
    label: str
    orders_revenue: float = 0.0
    purchases_revenue: float = 0.0
    orders_count: int = 0
    purchases_count: int = 0
    return_count: int = 0
    return_revenue: float = 0.0

    @classmethod
    def from_aggregate(cls, bucket: datetime, label: str, aggregate: Optional[RawAggregate]) -> "SeriesPoint":
        """Build a point from a store row, or an all-zero point when absent."""
        if aggregate is None:
            return cls(bucket=bucket, label=label)
        return cls(
            bucket=bucket,
            label=label,
            **{name: getattr(aggregate, name) for name in SERIES_FIELDS},
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {"bucket": _iso(self.bucket), "label": self.label}
        for name in SERIES_FIELDS:
            result[name] = getattr(self, name)
        return result


# ═══════════════════════════════════════════════════════════════════════════════
# DERIVED RESULTS
# ═══════════════════════════════════════════════════════════════════════════════

Number = Union[int, float]


@dataclass(frozen=True)
class Metric:
    """Scalar compared with its previous-period value."""
    current: Number = 0
    previous: Number = 0
    change_absolute: Number = 0
    change_percent: float = 0.0
    trend: Trend = Trend.STABLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": self.current,
            "previous": self.previous,
            "change_absolute": self.change_absolute,
            "change_percent": self.change_percent,
            "trend": self.trend.value,
        }


@dataclass(frozen=True)
class BestWorstDay:
    """Bucket label and its orders revenue."""
    label: str = ""
    revenue: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "revenue": self.revenue}


@dataclass(frozen=True)
class SeriesSummary:
    """Totals, average and extremes of a dense series."""
    totals: Dict[str, Number] = field(default_factory=dict)
    avg_daily_revenue: float = 0.0
    best_day: BestWorstDay = field(default_factory=BestWorstDay)
    worst_day: BestWorstDay = field(default_factory=BestWorstDay)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totals": dict(self.totals),
            "avg_daily_revenue": self.avg_daily_revenue,
            "best_day": self.best_day.to_dict(),
            "worst_day": self.worst_day.to_dict(),
        }


# ═══════════════════════════════════════════════════════════════════════════════
# RESPONSES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StatsResponse:
    """Stats snapshot for a period."""
    period: Period
    revenue: Metric
    orders: Metric
    items_sold: Metric
    avg_order_value: Metric
    conversion_rate: Metric
    return_rate: Metric
    top_categories: List[TopCategory]
    hourly_sales: List[HourlySale]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period": self.period.to_dict(),
            "revenue": self.revenue.to_dict(),
            "orders": self.orders.to_dict(),
            "items_sold": self.items_sold.to_dict(),
            "avg_order_value": self.avg_order_value.to_dict(),
            "conversion_rate": self.conversion_rate.to_dict(),
            "return_rate": self.return_rate.to_dict(),
            "top_categories": [c.to_dict() for c in self.top_categories],
            "hourly_sales": [h.to_dict() for h in self.hourly_sales],
        }


@dataclass(frozen=True)
class ChartResponse:
    """Dense sales series with its summary."""
    period: str
    metric: str
    granularity: Granularity
    data: List[SeriesPoint]
    summary: SeriesSummary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period": self.period,
            "metric": self.metric,
            "granularity": self.granularity.value,
            "data": [p.to_dict() for p in self.data],
            "summary": self.summary.to_dict(),
        }


@dataclass(frozen=True)
class TopProduct:
    """Ranked product with its share of the window's product revenue."""
    rank: int
    product_id: str
    name: str
    category_id: Optional[str]
    category_name: Optional[str]
    sales_count: int
    orders: int
    revenue: float
    revenue_share: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rank": self.rank,
            "id": self.product_id,
            "name": self.name,
            "category": self.category_id,
            "category_name": self.category_name,
            "sales_count": self.sales_count,
            "orders": self.orders,
            "revenue": self.revenue,
            "revenue_share": self.revenue_share,
        }


@dataclass(frozen=True)
class TopProductsSummary:
    total_revenue: float = 0.0
    total_sales: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"total_revenue": self.total_revenue, "total_sales": self.total_sales}


@dataclass(frozen=True)
class TopProductsResponse:
    """Best-selling products of a chart window."""
    period: str
    metric: str
    category: Optional[str]
    date_from: datetime
    date_to: datetime
    products: List[TopProduct]
    summary: TopProductsSummary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period": self.period,
            "metric": self.metric,
            "category": self.category,
            "date_from": _iso(self.date_from),
            "date_to": _iso(self.date_to),
            "products": [p.to_dict() for p in self.products],
            "summary": self.summary.to_dict(),
        }
