"""Foundation layer: configuration, errors and test doubles."""

from .config import MongoSearchSettings, clear_settings_cache, get_settings
from .errors import ErrorCode, ToolError, ToolException, classify_exception

__all__ = [
    "MongoSearchSettings",
    "clear_settings_cache",
    "get_settings",
    "ErrorCode",
    "ToolError",
    "ToolException",
    "classify_exception",
]
