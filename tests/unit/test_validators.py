"""
Tests for core.validators module.
"""
import pytest
from datetime import date

from core.exceptions import ValidationError
from core.models import ChartMetric, ChartPeriod, Granularity, PeriodType
from core.validators import (
    validate_chart_metric,
    validate_chart_period,
    validate_date_string,
    validate_granularity,
    validate_limit,
    validate_period,
)


class TestValidateDateString:
    """Tests for validate_date_string function."""

    def test_valid_date(self):
        assert validate_date_string("2026-01-15") == date(2026, 1, 15)

    def test_valid_date_custom_format(self):
        assert validate_date_string("15/01/2026", format="%d/%m/%Y") == date(2026, 1, 15)

    def test_invalid_format(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_date_string("15-01-2026")
        assert "Invalid date format" in str(exc_info.value)

    def test_impossible_date(self):
        with pytest.raises(ValidationError):
            validate_date_string("2024-13-40")

    @pytest.mark.parametrize("value", ["2024-1-5", "2024-01-5", "2024-1-05", "24-01-05", "2024-01-05T00:00"])
    def test_requires_zero_padding(self, value):
        with pytest.raises(ValidationError) as exc_info:
            validate_date_string(value, field="date_from")
        assert exc_info.value.field == "date_from"
        assert "YYYY-MM-DD" in str(exc_info.value)

    def test_custom_format_skips_padding_check(self):
        assert validate_date_string("5/1/2026", format="%d/%m/%Y") == date(2026, 1, 5)

    def test_empty_string(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_date_string("", field="date_from")
        assert exc_info.value.field == "date_from"
        assert "required" in str(exc_info.value).lower()

    def test_non_string(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_date_string(12345)
        assert "string" in str(exc_info.value).lower()


class TestValidatePeriod:
    """Tests for validate_period function."""

    @pytest.mark.parametrize("name", ["today", "yesterday", "week", "month", "quarter", "year"])
    def test_valid_periods(self, name):
        assert validate_period(name) is PeriodType(name)

    def test_case_insensitive(self):
        assert validate_period("  MONTH ") is PeriodType.MONTH

    def test_none_allowed(self):
        assert validate_period(None) is None
        assert validate_period("") is None

    def test_none_not_allowed(self):
        with pytest.raises(ValidationError):
            validate_period(None, allow_none=False)

    def test_invalid_period(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_period("bogus")
        assert exc_info.value.field == "period"
        assert "today" in str(exc_info.value)

    def test_custom_rejected(self):
        with pytest.raises(ValidationError):
            validate_period("custom")


class TestValidateChartPeriod:
    """Tests for validate_chart_period function."""

    @pytest.mark.parametrize("code", ["7d", "30d", "90d", "1y"])
    def test_valid_codes(self, code):
        assert validate_chart_period(code) is ChartPeriod(code)

    def test_required(self):
        with pytest.raises(ValidationError):
            validate_chart_period(None)

    def test_invalid_code(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_chart_period("2w")
        assert exc_info.value.value == "2w"


class TestValidateGranularity:
    """Tests for validate_granularity function."""

    def test_absent_means_auto(self):
        assert validate_granularity(None) is None

    def test_valid(self):
        assert validate_granularity("Week") is Granularity.WEEK

    def test_invalid(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_granularity("minute")
        assert exc_info.value.field == "granularity"


class TestValidateChartMetric:
    """Tests for validate_chart_metric function."""

    def test_defaults_to_revenue(self):
        assert validate_chart_metric(None) is ChartMetric.REVENUE

    def test_valid(self):
        assert validate_chart_metric("orders") is ChartMetric.ORDERS

    def test_invalid(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_chart_metric("profit")
        assert exc_info.value.field == "metric"


class TestValidateLimit:
    """Tests for validate_limit function."""

    def test_valid_limit(self):
        assert validate_limit(5) == 5
        assert validate_limit(100) == 100

    def test_zero(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_limit(0)
        assert "at least 1" in str(exc_info.value)

    def test_exceeds_max(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_limit(101)
        assert "exceed" in str(exc_info.value)

    def test_custom_max(self):
        assert validate_limit(500, max_value=1000) == 500

    def test_bool_rejected(self):
        with pytest.raises(ValidationError):
            validate_limit(True)
