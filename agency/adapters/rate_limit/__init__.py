"""Rate limiting adapters.

This package provides a small abstraction layer so the site can run with an
in-memory limiter and later migrate to Redis or another shared store without
changing the API layer.
"""

from agency.adapters.rate_limit.base import AbstractRateLimiter, RateLimitDecision
from agency.adapters.rate_limit.in_memory import (
    RATE_LIMIT,
    WINDOW_MS,
    InMemoryFixedWindowRateLimiter,
)

__all__ = [
    "AbstractRateLimiter",
    "InMemoryFixedWindowRateLimiter",
    "RATE_LIMIT",
    "RateLimitDecision",
    "WINDOW_MS",
]
