"""
Repository mixins for the DuckDB store.

- DashboardMixin: aggregate queries behind the dashboard reports
- AnalyticsMixin: per-product sales rankings
"""
from core.repositories.analytics import AnalyticsMixin
from core.repositories.dashboard import DashboardMixin

__all__ = [
    "AnalyticsMixin",
    "DashboardMixin",
]
