"""Rate limiter interfaces.

The API should depend on this abstraction (not the concrete implementation)
so the per-process counter can later be replaced by a shared store
(e.g., an atomic increment against Redis) with minimal changes.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request is admitted.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when rejected).
        reset_time: Epoch milliseconds at which the current window ends.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_time: int

    def retry_after_seconds(self, now_ms: int) -> int:
        """Seconds the client should wait before the window resets.

        Args:
            now_ms: Current time in epoch milliseconds.

        Returns:
            Ceiling of the time-to-reset in seconds, never negative.
        """
        return max(0, math.ceil((self.reset_time - now_ms) / 1000))


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    limit: int

    @abstractmethod
    def check_limit(self, key: str) -> RateLimitDecision:
        """Record a request for ``key`` and decide whether it may proceed.

        Args:
            key: Client identifier (e.g., derived client IP).

        Returns:
            RateLimitDecision describing whether it was admitted.
        """
        raise NotImplementedError

    @abstractmethod
    def now_ms(self) -> int:
        """Current time in epoch milliseconds according to the limiter clock."""
        raise NotImplementedError
