"""
Input validation functions for reporting request parameters.

All validators raise ValidationError on invalid input. They run before
any store call is issued, so a bad request never costs a query.
"""

import re
from datetime import date, datetime
from typing import Iterable, Optional

from core.exceptions import ValidationError
from core.models import ChartMetric, ChartPeriod, Granularity, PeriodType, ProductRanking


# Maximum allowed values
MAX_LIMIT = 100

# Zero-padded YYYY-MM-DD; strptime alone also accepts "2024-1-5"
ISO_DATE_FORMAT = "%Y-%m-%d"
ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def validate_date_string(
    value: str,
    field: str = "date",
    format: str = ISO_DATE_FORMAT
) -> date:
    """
    Validate and parse a date string.

    Args:
        value: Date string to validate
        field: Field name for error messages
        format: Expected date format (default: YYYY-MM-DD)

    Returns:
        Parsed date object

    Raises:
        ValidationError: If date is invalid or in wrong format
    """
    if not value:
        raise ValidationError(field, "Date is required", value)

    if not isinstance(value, str):
        raise ValidationError(field, "Must be a string", value)

    if format == ISO_DATE_FORMAT and not ISO_DATE_PATTERN.match(value):
        raise ValidationError(field, "Invalid date format. Expected YYYY-MM-DD", value)

    try:
        return datetime.strptime(value, format).date()
    except ValueError:
        raise ValidationError(
            field,
            f"Invalid date format. Expected {format}",
            value
        )


def _validate_choice(
    value: Optional[str],
    field: str,
    choices: Iterable[str],
    allow_none: bool,
) -> Optional[str]:
    if value is None or value == "":
        if allow_none:
            return None
        raise ValidationError(field, "Value is required")

    if not isinstance(value, str):
        raise ValidationError(field, "Must be a string", value)

    normalized = value.lower().strip()
    valid = list(choices)

    if normalized not in valid:
        raise ValidationError(
            field,
            f"Must be one of: {', '.join(valid)}",
            value
        )

    return normalized


def validate_period(
    value: Optional[str],
    field: str = "period",
    allow_none: bool = True
) -> Optional[PeriodType]:
    """
    Validate a named reporting period (today, yesterday, week, month, quarter, year).

    Returns:
        PeriodType or None when absent and allowed

    Raises:
        ValidationError: If the name is not a known period
    """
    value = _validate_choice(value, field, [p.value for p in PeriodType.named()], allow_none)
    return PeriodType(value) if value else None


def validate_chart_period(
    value: Optional[str],
    field: str = "period",
) -> ChartPeriod:
    """Validate a chart window code (7d, 30d, 90d, 1y). Always required."""
    value = _validate_choice(value, field, [p.value for p in ChartPeriod], allow_none=False)
    return ChartPeriod(value)


def validate_granularity(
    value: Optional[str],
    field: str = "granularity",
) -> Optional[Granularity]:
    """
    Validate an explicit granularity override.

    Only the value itself is checked; whether it suits the window length
    is the caller's decision.
    """
    value = _validate_choice(value, field, [g.value for g in Granularity], allow_none=True)
    return Granularity(value) if value else None


def validate_chart_metric(
    value: Optional[str],
    field: str = "metric",
) -> ChartMetric:
    """Validate the chart metric, defaulting to revenue."""
    value = _validate_choice(value, field, [m.value for m in ChartMetric], allow_none=True)
    return ChartMetric(value) if value else ChartMetric.REVENUE


def validate_product_ranking(
    value: Optional[str],
    field: str = "metric",
) -> ProductRanking:
    """Validate the top products ordering, defaulting to revenue."""
    value = _validate_choice(value, field, [r.value for r in ProductRanking], allow_none=True)
    return ProductRanking(value) if value else ProductRanking.REVENUE


def validate_limit(
    value: int,
    field: str = "limit",
    min_value: int = 1,
    max_value: int = MAX_LIMIT
) -> int:
    """
    Validate a limit/count parameter.

    Raises:
        ValidationError: If limit is out of range
    """
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(field, "Must be an integer", value)

    if value < min_value:
        raise ValidationError(field, f"Must be at least {min_value}", value)

    if value > max_value:
        raise ValidationError(field, f"Cannot exceed {max_value}", value)

    return value
