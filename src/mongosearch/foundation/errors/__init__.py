"""Unified error handling for mongosearch.

- ErrorCode: Standard error codes for action failures
- ToolError/ToolException: Structured errors and exceptions
- classify_exception: Driver-aware exception classification
"""

from .errors import ErrorCode, ToolError, ToolException, classify_exception

__all__ = ["ErrorCode", "ToolError", "ToolException", "classify_exception"]
