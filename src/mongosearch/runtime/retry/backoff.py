"""Backoff strategies for retry policies.

Provides delay calculation for retry attempts:
- ExponentialBackoff: Exponential growth with multiplicative jitter

Delays are expressed in milliseconds, matching the ``baseDelay`` option
accepted by indexer and retriever configuration.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


def clamp_jitter(value: float) -> float:
    """Clamp a jitter factor into [0, 1]."""
    return min(max(float(value), 0.0), 1.0)


@runtime_checkable
class Backoff(Protocol):
    """Protocol for backoff delay calculation.

    Implementations compute the delay before the next retry attempt.
    Attempt numbers are 0-indexed (first retry = attempt 0).
    """

    def delay(self, attempt: int) -> float:
        """Calculate delay in milliseconds for given attempt number.

        Args:
            attempt: 0-indexed retry attempt number

        Returns:
            Delay in milliseconds before next retry
        """
        ...


@dataclass(frozen=True, slots=True)
class ExponentialBackoff:
    """Exponential backoff with multiplicative jitter.

    Delay = base_ms * (multiplier ^ attempt) * U(1 - jitter, 1 + jitter)

    The jitter factor is clamped into [0, 1] so the result is never negative.
    With ``jitter_factor=0`` delays are deterministic.

    Attributes:
        base_ms: Initial delay in milliseconds (default: 1000)
        jitter_factor: Fraction of the delay randomized (default: 0.1)
        multiplier: Exponential growth factor (default: 2.0)
        rng: Random source, injectable for reproducible tests
    """

    base_ms: float = 1000.0
    jitter_factor: float = 0.1
    multiplier: float = 2.0
    rng: random.Random = field(default_factory=random.Random, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "jitter_factor", clamp_jitter(self.jitter_factor))
        object.__setattr__(self, "base_ms", max(float(self.base_ms), 0.0))

    def base(self, attempt: int) -> float:
        """Un-jittered delay for an attempt; saturates at ``math.inf``."""
        if not self.base_ms:
            return 0.0
        try:
            return self.base_ms * (self.multiplier ** attempt)
        except OverflowError:
            return math.inf

    def bounds(self, attempt: int) -> tuple[float, float]:
        """Inclusive (low, high) range of the delay for an attempt."""
        d = self.base(attempt)
        if math.isinf(d):
            return d, d
        return d * (1.0 - self.jitter_factor), d * (1.0 + self.jitter_factor)

    def delay(self, attempt: int) -> float:
        low, high = self.bounds(attempt)
        if low == high:
            return low
        return max(0.0, self.rng.uniform(low, high))

