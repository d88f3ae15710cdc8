"""Configuration from environment variables."""

from .settings import (
    IndexingSettings,
    LoggingSettings,
    MongoSearchSettings,
    MongoSettings,
    RetrySettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "IndexingSettings",
    "LoggingSettings",
    "MongoSearchSettings",
    "MongoSettings",
    "RetrySettings",
    "clear_settings_cache",
    "get_settings",
]
