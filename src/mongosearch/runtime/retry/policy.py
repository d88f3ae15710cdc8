"""Retry policy configuration and the bounded retry executor.

Wraps indexing and retrieval driver calls. Every failure is retried the
same way up to the configured limit; the final failure is re-raised
unchanged.

Optimizations:
- Frozen for immutability and hashability
- Jitter clamped at validation time, not at each use
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Annotated, Callable, TypeVar

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)

from mongosearch.foundation.errors import classify_exception

from .backoff import ExponentialBackoff, clamp_jitter

if TYPE_CHECKING:
    from collections.abc import Awaitable


logger = logging.getLogger("mongosearch.retry")

T = TypeVar("T")


class RetryPolicy(BaseModel):
    """Attempt count, delay and jitter for one logical operation.

    Accepts both snake_case names and the camelCase option names used in
    component configuration (``retryAttempts``, ``baseDelay``, ``jitterFactor``).

    Attributes:
        retry_attempts: Additional attempts after the first failure (0 = no retries)
        base_delay: Base backoff unit in milliseconds
        jitter_factor: Fraction of each delay randomized, clamped into [0, 1]

    Example:
        >>> policy = RetryPolicy(retryAttempts=3, baseDelay=500)
        >>> policy.max_attempts
        4
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        validate_default=True,
        json_schema_extra={
            "title": "Retry Policy",
            "description": "Bounded retry with exponential backoff and jitter",
            "examples": [{"retryAttempts": 3, "baseDelay": 1000, "jitterFactor": 0.1}],
        },
    )

    retry_attempts: Annotated[
        int, Field(ge=0, validation_alias=AliasChoices("retry_attempts", "retryAttempts"))
    ] = 0
    base_delay: Annotated[
        float, Field(ge=0.0, validation_alias=AliasChoices("base_delay", "baseDelay"))
    ] = 1000.0
    jitter_factor: Annotated[
        float, Field(validation_alias=AliasChoices("jitter_factor", "jitterFactor"))
    ] = 0.1

    @field_validator("jitter_factor", mode="after")
    @classmethod
    def _clamp_jitter(cls, v: float) -> float:
        """Out-of-range jitter is clamped, not rejected."""
        return clamp_jitter(v)

    @computed_field
    @property
    def max_attempts(self) -> int:
        """Total invocations when every attempt fails."""
        return 1 + self.retry_attempts

    @property
    def backoff(self) -> ExponentialBackoff:
        return ExponentialBackoff(base_ms=self.base_delay, jitter_factor=self.jitter_factor)

    def delay_for(self, attempt: int) -> float:
        """Delay in milliseconds before retry ``attempt`` (0-indexed)."""
        return self.backoff.delay(attempt)


# Singleton for no-retry policy
NO_RETRY = RetryPolicy(retry_attempts=0)


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    *,
    name: str = "operation",
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    on_retry: Callable[[int, Exception, float], None] | None = None,
) -> T:
    """Execute async operation with a bounded retry policy.

    The operation is invoked at most ``1 + policy.retry_attempts`` times.
    Between attempts the task suspends for ``policy.delay_for(n)``
    milliseconds. Cancellation is not intercepted, so it propagates both
    from the sleep and from an in-flight operation.

    Args:
        operation: Zero-argument callable returning an awaitable; must be
            safe to invoke again after a failure
        policy: Retry policy (default: no retries)
        name: Operation name for logging
        sleep: Awaitable sleep taking seconds, injectable for tests
        on_retry: Optional callback ``(attempt, exc, delay_ms)`` before each wait

    Returns:
        Result of the first successful attempt

    Raises:
        Exception: The exact exception raised by the last attempt
    """
    policy = policy or NO_RETRY
    attempt = 0

    while True:
        try:
            return await operation()
        except Exception as exc:
            if attempt >= policy.retry_attempts:
                if policy.retry_attempts:
                    logger.warning(
                        f"[{name}] Giving up after {attempt + 1} attempts "
                        f"(code: {classify_exception(exc)})"
                    )
                raise

            delay = policy.delay_for(attempt)
            logger.info(
                f"[{name}] Retry {attempt + 1}/{policy.retry_attempts} "
                f"after {delay:.0f}ms (code: {classify_exception(exc)})"
            )
            if on_retry:
                on_retry(attempt, exc, delay)

        await sleep(delay / 1000.0)
        attempt += 1
