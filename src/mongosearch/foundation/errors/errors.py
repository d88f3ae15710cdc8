"""Standardized error handling for MongoDB actions.

Provides error codes and structured error responses for agent feedback.
Driver exceptions are never wrapped by the retry executor or the components;
these types describe failures at the registry and framework boundary.
"""

from __future__ import annotations

import traceback
from enum import StrEnum
from functools import lru_cache
from typing import Self

from pydantic import BaseModel
from pymongo import errors as mongo_errors


class ErrorCode(StrEnum):
    """Standard error codes for action failures."""
    INVALID_PARAMS = "INVALID_PARAMS"
    INVALID_CONFIG = "INVALID_CONFIG"
    NOT_FOUND = "NOT_FOUND"
    DUPLICATE_KEY = "DUPLICATE_KEY"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    UNKNOWN = "UNKNOWN"


# Server error codes for auth failures (Unauthorized, AuthenticationFailed)
_AUTH_CODES = frozenset({13, 18})

# Ordered: subclasses before their bases
_DRIVER_CODES: tuple[tuple[type[BaseException], ErrorCode], ...] = (
    (mongo_errors.DuplicateKeyError, ErrorCode.DUPLICATE_KEY),
    (mongo_errors.ExecutionTimeout, ErrorCode.TIMEOUT),
    (mongo_errors.WTimeoutError, ErrorCode.TIMEOUT),
    (mongo_errors.ServerSelectionTimeoutError, ErrorCode.TIMEOUT),
    (mongo_errors.NetworkTimeout, ErrorCode.TIMEOUT),
    (mongo_errors.ConnectionFailure, ErrorCode.NETWORK_ERROR),
    (mongo_errors.ConfigurationError, ErrorCode.INVALID_CONFIG),
    (mongo_errors.InvalidOperation, ErrorCode.INVALID_PARAMS),
    (mongo_errors.OperationFailure, ErrorCode.EXTERNAL_SERVICE_ERROR),
)

# Flattened pattern -> code mapping for exceptions raised outside the driver
_PATTERN_CODES: dict[str, ErrorCode] = {
    "timeout": ErrorCode.TIMEOUT,
    "connection": ErrorCode.NETWORK_ERROR,
    "network": ErrorCode.NETWORK_ERROR,
    "auth": ErrorCode.PERMISSION_DENIED,
    "permission": ErrorCode.PERMISSION_DENIED,
    "duplicate": ErrorCode.DUPLICATE_KEY,
    "validation": ErrorCode.INVALID_PARAMS,
    "value": ErrorCode.INVALID_PARAMS,
    "notfound": ErrorCode.NOT_FOUND,
    "keyerror": ErrorCode.NOT_FOUND,
}
_PATTERN_KEYS = tuple(_PATTERN_CODES.keys())


@lru_cache(maxsize=256)
def _classify_cached(exc_key: str) -> ErrorCode:
    """Cached classification by exception signature."""
    haystack = exc_key.lower()
    for pattern in _PATTERN_KEYS:
        if pattern in haystack:
            return _PATTERN_CODES[pattern]
    return ErrorCode.EXTERNAL_SERVICE_ERROR


def classify_exception(exc: BaseException) -> ErrorCode:
    """Map exception to error code.

    Driver exceptions are matched by class (and server code for auth
    failures); anything else falls back to pattern matching on name/message.
    """
    if isinstance(exc, mongo_errors.OperationFailure) and exc.code in _AUTH_CODES:
        return ErrorCode.PERMISSION_DENIED
    for exc_type, code in _DRIVER_CODES:
        if isinstance(exc, exc_type):
            return code
    return _classify_cached(f"{type(exc).__name__} {exc}")


class ToolError(BaseModel):
    """Structured error response for action failures."""

    model_config = {"frozen": True}

    tool_name: str
    message: str
    code: ErrorCode = ErrorCode.UNKNOWN
    recoverable: bool = True
    details: str | None = None

    @classmethod
    def create(
        cls,
        tool_name: str,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN,
        *,
        recoverable: bool = True,
        details: str | None = None,
    ) -> Self:
        """Factory method for construction."""
        return cls(tool_name=tool_name, message=message, code=code, recoverable=recoverable, details=details)

    @classmethod
    def from_exception(
        cls,
        tool_name: str,
        exc: BaseException,
        context: str = "",
        *,
        recoverable: bool = True,
        include_trace: bool = False,
    ) -> Self:
        """Create from exception with auto-classification."""
        return cls(
            tool_name=tool_name,
            message=f"{context}: {exc}" if context else str(exc),
            code=classify_exception(exc),
            recoverable=recoverable,
            details=traceback.format_exc() if include_trace else None,
        )

    def render(self) -> str:
        """Format error for LLM consumption."""
        parts = [f"**Tool Error ({self.tool_name}):** {self.message} [{self.code}]"]
        if self.recoverable:
            parts.append("\n_This error may be recoverable - consider retrying or trying an alternative approach._")
        if self.details:
            parts.append(f"\n\nDetails:\n```\n{self.details}\n```")
        return "".join(parts)

    __str__ = render


class ToolException(Exception):
    """Exception wrapping a ToolError for raising."""

    __slots__ = ("error",)

    def __init__(self, error: ToolError) -> None:
        self.error = error
        super().__init__(error.message)

    @property
    def code(self) -> ErrorCode:
        return self.error.code

    @classmethod
    def create(
        cls,
        tool_name: str,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN,
        *,
        recoverable: bool = True,
    ) -> Self:
        """Create tool exception."""
        return cls(ToolError(tool_name=tool_name, message=message, code=code, recoverable=recoverable))
