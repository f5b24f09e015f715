"""
Centralized configuration for the seller dashboard service.

This module provides a single source of truth for all configuration values.
Configuration is loaded from environment variables with sensible defaults.

Usage:
    from core.config import config

    db_path = config.store.db_path
    limit = config.reporting.top_categories_limit
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent


@dataclass(frozen=True)
class StoreConfig:
    """Aggregate Store (DuckDB) configuration."""

    db_path: str = field(
        default_factory=lambda: os.getenv(
            "DASHBOARD_DB_PATH", str(BASE_DIR / "data" / "dashboard.duckdb")
        )
    )
    query_timeout: float = field(
        default_factory=lambda: float(os.getenv("DASHBOARD_QUERY_TIMEOUT", "30"))
    )


@dataclass(frozen=True)
class ReportingConfig:
    """Reporting engine tuning."""

    top_categories_limit: int = 5
    top_products_limit: int = 10
    top_products_period: str = "30d"
    # Hourly sales are only fetched for windows shorter than this
    hourly_window_hours: int = 25
    trend_epsilon: float = 0.001


@dataclass(frozen=True)
class WebConfig:
    """HTTP service configuration."""

    host: str = field(default_factory=lambda: os.getenv("WEB_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("WEB_PORT", "8080")))
    request_timeout: float = 30.0

    stats_rate_limit: str = "60/minute"
    chart_rate_limit: str = "30/minute"
    top_products_rate_limit: str = "30/minute"


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    format: str = field(default_factory=lambda: os.getenv("LOG_FORMAT", "text"))

    @property
    def json_format(self) -> bool:
        return self.format == "json"


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""

    version: str = "1.0.0"
    store: StoreConfig = field(default_factory=StoreConfig)
    reporting: ReportingConfig = field(default_factory=ReportingConfig)
    web: WebConfig = field(default_factory=WebConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Global config instance
config = AppConfig()

VERSION = config.version


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def validate_config(app_config: AppConfig = config) -> None:
    """
    Validate configuration values.

    Call this on application startup to fail fast with clear error messages
    instead of cryptic runtime failures.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    errors = []

    if not app_config.store.db_path:
        errors.append("DASHBOARD_DB_PATH must not be empty")

    if app_config.store.query_timeout <= 0:
        errors.append("DASHBOARD_QUERY_TIMEOUT must be positive")

    if app_config.reporting.top_categories_limit < 1:
        errors.append("top_categories_limit must be at least 1")

    if app_config.reporting.top_products_limit < 1:
        errors.append("top_products_limit must be at least 1")

    if app_config.logging.level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        errors.append(f"LOG_LEVEL has unknown value: {app_config.logging.level}")

    if app_config.logging.format not in ("text", "json"):
        errors.append(f"LOG_FORMAT must be 'text' or 'json', got: {app_config.logging.format}")

    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ConfigurationError(error_msg)
