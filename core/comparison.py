"""Period-over-period comparison of scalar metrics."""
from core.config import config
from core.models import Metric, Number, Trend

TREND_EPSILON = config.reporting.trend_epsilon


def safe_divide(numerator: Number, denominator: Number) -> float:
    """Divide, returning 0 when the denominator is 0."""
    if denominator == 0:
        return 0.0
    return numerator / denominator


def classify_trend(change_absolute: Number, epsilon: float = TREND_EPSILON) -> Trend:
    """Up/down beyond +-epsilon (absolute units of the metric), stable otherwise."""
    if change_absolute > epsilon:
        return Trend.UP
    if change_absolute < -epsilon:
        return Trend.DOWN
    return Trend.STABLE


def compare(current: Number, previous: Number, epsilon: float = TREND_EPSILON) -> Metric:
    """
    Compare a current value with its previous-period value.

    - previous != 0: change is current - previous, percent relative to previous
    - previous == 0 and current > 0: change is current, percent is 100
    - otherwise both changes are 0

    Examples:
        >>> compare(50, 100).trend
        <Trend.DOWN: 'down'>
        >>> compare(50, 0).change_percent
        100.0
    """
    if previous != 0:
        change_absolute = current - previous
        change_percent = change_absolute / previous * 100
    elif current > 0:
        change_absolute = current
        change_percent = 100.0
    else:
        change_absolute = 0
        change_percent = 0.0

    return Metric(
        current=current,
        previous=previous,
        change_absolute=change_absolute,
        change_percent=change_percent,
        trend=classify_trend(change_absolute, epsilon),
    )
