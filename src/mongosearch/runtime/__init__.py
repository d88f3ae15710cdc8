"""Runtime layer: retry execution and observability."""

from .observability import configure_logging
from .retry import NO_RETRY, ExponentialBackoff, RetryPolicy, execute_with_retry

__all__ = ["NO_RETRY", "ExponentialBackoff", "RetryPolicy", "configure_logging", "execute_with_retry"]
