"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- Expired entries are swept opportunistically so the map does not grow
  for the lifetime of the process.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from agency.adapters.rate_limit.base import AbstractRateLimiter, RateLimitDecision

logger = logging.getLogger(__name__)

# Requests admitted per client per window.
RATE_LIMIT = 60
# Window length in milliseconds.
WINDOW_MS = 60 * 1000


def epoch_ms() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass
class RateLimitEntry:
    count: int
    reset_time: int


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed time window per key.

    A window starts with the first request from a key and lasts
    ``window_ms``. Its ``reset_time`` never slides with later requests in the
    same window; the first request at or after ``reset_time`` starts a new one.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        limit: int = RATE_LIMIT,
        window_ms: int = WINDOW_MS,
        sweep_interval_ms: int | None = None,
        clock: Callable[[], int] = epoch_ms,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of requests admitted per window.
            window_ms: Length of the fixed window in milliseconds.
            sweep_interval_ms: Minimum time between sweeps of expired entries.
                Defaults to one window length.
            clock: Time source returning epoch milliseconds.

        Raises:
            ValueError: If limit, window_ms or sweep_interval_ms are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_ms < 1:
            raise ValueError("window_ms must be >= 1")
        if sweep_interval_ms is not None and sweep_interval_ms < 1:
            raise ValueError("sweep_interval_ms must be >= 1")

        self.limit = limit
        self._window_ms = window_ms
        self._sweep_interval_ms = sweep_interval_ms or window_ms
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, RateLimitEntry] = {}
        self._last_sweep = clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def window_ms(self) -> int:
        return self._window_ms

    def now_ms(self) -> int:
        return self._clock()

    def check_limit(self, key: str) -> RateLimitDecision:
        """Record a request for ``key`` and decide whether it may proceed.

        Any string is accepted as a key; this method never raises.

        Args:
            key: Client identifier.

        Returns:
            RateLimitDecision with the admission decision, remaining quota and
            the reset time of the window the request was counted in.
        """
        now = self._clock()

        with self._lock:
            self._maybe_sweep_locked(now)

            entry = self._entries.get(key)
            if entry is None or now >= entry.reset_time:
                entry = RateLimitEntry(count=1, reset_time=now + self._window_ms)
                self._entries[key] = entry
                return RateLimitDecision(
                    allowed=True,
                    limit=self.limit,
                    remaining=self.limit - 1,
                    reset_time=entry.reset_time,
                )

            if entry.count >= self.limit:
                return RateLimitDecision(
                    allowed=False,
                    limit=self.limit,
                    remaining=0,
                    reset_time=entry.reset_time,
                )

            entry.count += 1
            return RateLimitDecision(
                allowed=True,
                limit=self.limit,
                remaining=self.limit - entry.count,
                reset_time=entry.reset_time,
            )

    def sweep_expired(self, now: int | None = None) -> int:
        """Drop every entry whose window has ended.

        Args:
            now: Reference time in epoch milliseconds (defaults to the clock).

        Returns:
            Number of entries removed.
        """
        if now is None:
            now = self._clock()
        with self._lock:
            return self._sweep_locked(now)

    def _maybe_sweep_locked(self, now: int) -> None:
        if now - self._last_sweep < self._sweep_interval_ms:
            return
        self._sweep_locked(now)

    def _sweep_locked(self, now: int) -> int:
        expired = [key for key, entry in self._entries.items() if now >= entry.reset_time]
        for key in expired:
            del self._entries[key]
        self._last_sweep = now
        if expired:
            logger.debug(
                "rate_limit.swept",
                extra={"removed": len(expired), "entries": len(self._entries)},
            )
        return len(expired)
