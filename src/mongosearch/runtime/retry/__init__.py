"""Retry policies for MongoDB operations.

Provides bounded retry with exponential backoff and jitter around
indexing and retrieval driver calls.

Example:
    >>> from mongosearch.runtime.retry import RetryPolicy, execute_with_retry
    >>>
    >>> policy = RetryPolicy(retryAttempts=3, baseDelay=1000, jitterFactor=0.1)
    >>> docs = await execute_with_retry(
    ...     lambda: collection.find_one({"_id": doc_id}),
    ...     policy,
    ...     name="read",
    ... )
"""

from .backoff import Backoff, ExponentialBackoff, clamp_jitter
from .policy import NO_RETRY, RetryPolicy, execute_with_retry

__all__ = [
    # Backoff
    "Backoff",
    "ExponentialBackoff",
    "clamp_jitter",
    # Policy
    "RetryPolicy",
    "NO_RETRY",
    # Execution
    "execute_with_retry",
]
