"""Logging setup for mongosearch.

All modules log through stdlib loggers under the ``mongosearch`` namespace
(``mongosearch.retry``, ``mongosearch.indexer``, ...). This module installs
a single handler on that namespace with either human-readable text output
for development or one JSON object per line for production.

Quick Start:
    >>> from mongosearch.runtime.observability import configure_logging
    >>> configure_logging()                 # level/format from settings
    >>> configure_logging("DEBUG", "json")  # explicit override
"""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime
from typing import Literal, TextIO

import orjson

from mongosearch.foundation.config import get_settings

ROOT_LOGGER = "mongosearch"
_HANDLER_NAME = "mongosearch-handler"

LogFormat = Literal["json", "text"]


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return orjson.dumps(entry, default=str).decode()


_TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(
    level: str | None = None,
    fmt: LogFormat | None = None,
    *,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Install the mongosearch handler. Safe to call repeatedly.

    Args:
        level: Log level name (default: settings.logging.level, or DEBUG
            when MONGOSEARCH_DEBUG is set)
        fmt: "text" or "json" (default: settings.logging.format)
        stream: Output stream (default: stderr)

    Returns:
        The configured ``mongosearch`` logger
    """
    root = get_settings()
    settings = root.logging
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel((level or ("DEBUG" if root.debug else settings.level)).upper())

    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(JsonFormatter() if (fmt or settings.format) == "json" else logging.Formatter(_TEXT_FORMAT))
    logger.addHandler(handler)
    return logger
