"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Minimal coupling: API routes depend on a dependency function only.
- Swap-friendly: storage backend can be replaced (e.g., Redis) behind an
  abstract interface.
- Explicit ownership: the limiter lives on ``app.state`` and is built once by
  the application factory, so each worker process visibly owns its own counters.

Rate limiting strategy:
- Fixed window per client key (60 requests per 60 seconds by default).
- The client key comes from proxy headers, falling back to loopback.
"""

from __future__ import annotations

import logging
from typing import Mapping

from fastapi import Request, Response

from agency.adapters.rate_limit.base import AbstractRateLimiter, RateLimitDecision
from agency.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from agency.core.config import AppSettings, settings
from agency.core.errors import RateLimitExceededError
from agency.core.logging import hash_identifier

logger = logging.getLogger(__name__)

FALLBACK_CLIENT_KEY = "127.0.0.1"

# Highest precedence first
_CLIENT_KEY_HEADERS = ("x-forwarded-for", "x-real-ip", "cf-connecting-ip")


def derive_client_key(headers: Mapping[str, str]) -> str:
    """Derive the rate limit key for a request from its headers.

    Precedence: first entry of ``X-Forwarded-For`` (trimmed), then
    ``X-Real-IP``, then ``CF-Connecting-IP``, then the loopback address.
    Values are not validated; the headers are client-controlled, so this
    only suits low-value endpoints, never an authentication boundary.

    Args:
        headers: Request headers. Starlette's ``Headers`` is case-insensitive;
            plain dicts are matched case-insensitively too.

    Returns:
        Client key string.

    Examples:
        >>> derive_client_key({"x-forwarded-for": " 1.2.3.4, 5.6.7.8", "x-real-ip": "9.9.9.9"})
        '1.2.3.4'
        >>> derive_client_key({})
        '127.0.0.1'
    """
    # Repeated headers resolve to their first occurrence, as Headers.get does.
    lowered: dict[str, str] = {}
    for name, value in headers.items():
        lowered.setdefault(name.lower(), value)

    forwarded = lowered.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()

    for header in _CLIENT_KEY_HEADERS[1:]:
        value = lowered.get(header)
        if value:
            return value

    return FALLBACK_CLIENT_KEY


def build_rate_limiter(app_settings: AppSettings | None = None) -> AbstractRateLimiter:
    """Build the process-wide limiter from configuration.

    Called once by the application factory; the instance is then reached
    through ``request.app.state.rate_limiter``.
    """
    cfg = app_settings or settings.app
    return InMemoryFixedWindowRateLimiter(
        limit=cfg.rate_limit_requests,
        window_ms=cfg.rate_limit_window_ms,
        sweep_interval_ms=cfg.rate_limit_sweep_interval_ms,
    )


def get_rate_limiter(request: Request) -> AbstractRateLimiter:
    """Return the limiter owned by the running application."""
    return request.app.state.rate_limiter


def rate_limit_headers(decision: RateLimitDecision) -> dict[str, str]:
    """Headers describing the caller's quota after ``decision``."""
    return {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(decision.reset_time),
    }


async def enforce_rate_limit(request: Request, response: Response) -> RateLimitDecision | None:
    """FastAPI dependency enforcing the per-client rate limit.

    On admission the quota headers are added to the route's response and the
    decision is kept on ``request.state.rate_limit_decision``, so an error
    response for the same request carries them too. On rejection a
    RateLimitExceededError is raised and rendered as HTTP 429.

    Args:
        request: FastAPI request.
        response: Response whose headers FastAPI merges into the route result.

    Returns:
        The decision, or None when rate limiting is disabled.

    Raises:
        RateLimitExceededError: When the client exhausted its window quota.
    """
    app_settings: AppSettings = request.app.state.settings.app
    if not app_settings.rate_limit_enabled:
        return None

    limiter = get_rate_limiter(request)
    key = derive_client_key(request.headers)
    key_hash = hash_identifier(key)

    decision = limiter.check_limit(key)
    if decision.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={
                "key_hash": key_hash,
                "limit": decision.limit,
                "remaining": decision.remaining,
                "route": request.url.path,
            },
        )
        response.headers.update(rate_limit_headers(decision))
        # Error responses are built by the exception handlers, which re-add the headers from here.
        request.state.rate_limit_decision = decision
        return decision

    retry_after = decision.retry_after_seconds(limiter.now_ms())
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": key_hash,
            "limit": decision.limit,
            "reset_time": decision.reset_time,
            "retry_after_s": retry_after,
            "route": request.url.path,
        },
    )

    raise RateLimitExceededError(
        code="rate_limit_exceeded",
        message=f"Too many requests. Try again in {retry_after} seconds.",
        details={
            "retry_after": retry_after,
            "limit": decision.limit,
            "reset_time": decision.reset_time,
        },
    )
