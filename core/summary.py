"""
Series summarizer.

Folds a dense chart series into totals per numeric field, the average
orders revenue per bucket, and the best and worst buckets by orders revenue.
"""
from typing import Dict, Optional, Sequence

from core.models import SERIES_FIELDS, BestWorstDay, Number, SeriesPoint, SeriesSummary


def summarize_series(points: Sequence[SeriesPoint]) -> SeriesSummary:
    """
    Summarize a dense, ordered series.

    Best and worst are found with strict comparisons while scanning in
    series order, so the first of several equal extremes wins. The worst
    tracker starts at +inf and is only reported once a real point replaced
    it; an empty series yields an empty label with 0 revenue for both.
    """
    totals: Dict[str, Number] = {name: 0 for name in SERIES_FIELDS}
    totals["orders_revenue"] = 0.0
    totals["purchases_revenue"] = 0.0
    totals["return_revenue"] = 0.0

    best: Optional[SeriesPoint] = None
    worst: Optional[SeriesPoint] = None
    best_revenue = float("-inf")
    worst_revenue = float("inf")

    for point in points:
        for name in SERIES_FIELDS:
            totals[name] += getattr(point, name)

        if point.orders_revenue > best_revenue:
            best, best_revenue = point, point.orders_revenue
        if point.orders_revenue < worst_revenue:
            worst, worst_revenue = point, point.orders_revenue

    count = len(points)
    avg_daily_revenue = totals["orders_revenue"] / count if count else 0.0

    return SeriesSummary(
        totals=totals,
        avg_daily_revenue=avg_daily_revenue,
        best_day=_extreme(best),
        worst_day=_extreme(worst),
    )


def _extreme(point: Optional[SeriesPoint]) -> BestWorstDay:
    if point is None:
        return BestWorstDay()
    return BestWorstDay(label=point.label, revenue=point.orders_revenue)
