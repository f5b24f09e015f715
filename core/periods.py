"""
Time window resolution for reports.

Turns named periods ("today", "quarter"), custom date ranges and chart
codes ("7d", "1y") into concrete UTC windows, and chooses a bucket size
for chart windows. Every function takes `now` explicitly so results are
a pure function of their arguments.

Windows are closed intervals: `date_to` is the last representable instant
of the final day (23:59:59.999999).
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from dateutil.relativedelta import relativedelta

from core.exceptions import ValidationError
from core.models import (
    ChartPeriod,
    ChartWindow,
    Granularity,
    Period,
    PeriodType,
    StatsParams,
)
from core.validators import validate_chart_period, validate_date_string, validate_period

# Smallest step between two instants (datetime resolution)
RESOLUTION = timedelta(microseconds=1)
ONE_DAY = timedelta(days=1)

# Granularity cutoffs in days, inclusive on the finer side
HOURLY_MAX_DAYS = 2
DAILY_MAX_DAYS = 90
WEEKLY_MAX_DAYS = 366 * 2


def as_utc(moment: datetime) -> datetime:
    """Normalize an instant to aware UTC (naive values are taken as UTC)."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def midnight(moment: datetime) -> datetime:
    """Start of the UTC day containing `moment`."""
    return as_utc(moment).replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(moment: datetime) -> datetime:
    """Last instant of the UTC day containing `moment`."""
    return midnight(moment) + ONE_DAY - RESOLUTION


def _named_window(period_type: PeriodType, now: datetime):
    today = midnight(now)

    if period_type is PeriodType.TODAY:
        start = today
        return start, start + ONE_DAY - RESOLUTION

    if period_type is PeriodType.YESTERDAY:
        start = today - ONE_DAY
        return start, start + ONE_DAY - RESOLUTION

    if period_type is PeriodType.WEEK:
        # ISO week: Monday is day 1, Sunday day 7
        start = today - timedelta(days=today.isoweekday() - 1)
        return start, start + timedelta(days=7) - RESOLUTION

    if period_type is PeriodType.MONTH:
        start = today.replace(day=1)
        return start, start + relativedelta(months=1) - RESOLUTION

    if period_type is PeriodType.QUARTER:
        first_month = (today.month - 1) // 3 * 3 + 1
        start = today.replace(month=first_month, day=1)
        return start, start + relativedelta(months=3) - RESOLUTION

    if period_type is PeriodType.YEAR:
        start = today.replace(month=1, day=1)
        return start, start + relativedelta(years=1) - RESOLUTION

    raise ValidationError("period", "Unsupported period", period_type.value)


def _custom_window(date_from: Optional[str], date_to: Optional[str]):
    start_date = validate_date_string(date_from, "date_from")
    end_date = validate_date_string(date_to, "date_to")

    if start_date > end_date:
        raise ValidationError(
            "date_range",
            "date_from must be before or equal to date_to",
            f"{date_from} to {date_to}"
        )

    start = datetime(start_date.year, start_date.month, start_date.day, tzinfo=timezone.utc)
    end = datetime(end_date.year, end_date.month, end_date.day, tzinfo=timezone.utc)
    return start, end + ONE_DAY - RESOLUTION


def previous_window(start: datetime, end: datetime):
    """
    Window of identical duration ending one instant before `start`.

    Returns:
        (previous_start, previous_end)
    """
    duration = end - start
    previous_end = start - RESOLUTION
    return previous_end - duration, previous_end


def resolve_period(params: StatsParams, now: datetime) -> Period:
    """
    Resolve a stats request into a Period.

    A period name takes precedence over custom dates. With neither a
    name nor any custom date the period defaults to today.

    Raises:
        ValidationError: Unknown period name, or unparseable/missing custom date
    """
    period_type = validate_period(params.period)

    if period_type is None and not params.date_from and not params.date_to:
        period_type = PeriodType.TODAY

    if period_type is not None:
        start, end = _named_window(period_type, now)
    else:
        period_type = PeriodType.CUSTOM
        start, end = _custom_window(params.date_from, params.date_to)

    previous = None
    if params.compare_with_previous:
        prev_start, prev_end = previous_window(start, end)
        previous = Period(type=period_type.value, date_from=prev_start, date_to=prev_end)

    return Period(type=period_type.value, date_from=start, date_to=end, previous=previous)


def _one_year_back(moment: datetime) -> datetime:
    shifted = moment - relativedelta(years=1)
    # relativedelta clamps Feb 29 to Feb 28; it rolls forward to Mar 1 instead
    if moment.month == 2 and moment.day == 29:
        return shifted + ONE_DAY
    return shifted


def resolve_chart_window(period: str, now: datetime):
    """
    Resolve a chart code into (start, end).

    `end` is the end of today; `start` is midnight N-1 days earlier, or for
    "1y" the day after the same calendar day one year back.

    Raises:
        ValidationError: Unknown chart code
    """
    chart_period = validate_chart_period(period)
    end = end_of_day(now)

    if chart_period is ChartPeriod.YEAR:
        start = _one_year_back(end) + ONE_DAY
    else:
        start = end - timedelta(days=chart_period.days - 1)

    return midnight(start), end


def select_granularity(
    start: datetime,
    end: datetime,
    override: Optional[Granularity] = None,
) -> Granularity:
    """
    Choose a bucket size for a window.

    An explicit override is returned as is. Otherwise the window length in
    (fractional) days decides: <=2 hour, <=90 day, <=732 week, else month.
    """
    if override is not None:
        return override

    days = (end - start) / ONE_DAY
    if days <= HOURLY_MAX_DAYS:
        return Granularity.HOUR
    if days <= DAILY_MAX_DAYS:
        return Granularity.DAY
    if days <= WEEKLY_MAX_DAYS:
        return Granularity.WEEK
    return Granularity.MONTH


def resolve_chart(period: str, now: datetime, override: Optional[Granularity] = None) -> ChartWindow:
    """Resolve a chart code into a ChartWindow with its granularity."""
    start, end = resolve_chart_window(period, now)
    return ChartWindow(start=start, end=end, granularity=select_granularity(start, end, override))
