"""Rate limiting dependencies for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Minimal coupling: API routes depend on a dependency function only.
- One limiter per app: the instance lives on ``app.state`` and is injected,
  so tests get a fresh bucket table per app.
- Per-route budgets: each route picks a :class:`RateLimits` preset.

Identifier strategy:
- Per-scope fixed window per caller (``X-User-Id``).
- Anonymous requests fall back to the client IP.
"""

from __future__ import annotations

import logging
import math
from typing import Awaitable, Callable

from fastapi import Request, Response

from firepit.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitConfig,
    RateLimitResult,
)
from firepit.core.config import settings
from firepit.core.errors import RateLimitedAppError
from firepit.core.identity import get_caller_id
from firepit.core.logging import fingerprint

logger = logging.getLogger(__name__)


def get_rate_limiter(request: Request) -> AbstractRateLimiter:
    """Return the limiter created by the app factory."""
    return request.app.state.rate_limiter


def build_rate_limit_key(request: Request, scope: str) -> str:
    """Build the limiter identifier for the current request.

    Args:
        request: FastAPI request.
        scope: Name of the action being limited (e.g. ``"roles"``).

    Returns:
        str: Namespaced identifier such as ``"roles:user:42"``.
    """
    caller_id = get_caller_id(request)
    if caller_id:
        return f"{scope}:user:{caller_id}"

    client_host = request.client.host if request.client else "unknown"
    return f"{scope}:ip:{client_host}"


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Build the ``X-RateLimit-*`` headers (plus ``Retry-After`` when blocked)."""
    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        # Clients expect the reset as epoch seconds
        "X-RateLimit-Reset": str(math.ceil(result.reset_at / 1000)),
    }
    if not result.allowed:
        headers["Retry-After"] = str(result.retry_after or 0)
    return headers


def rate_limit(
    config: RateLimitConfig, *, scope: str
) -> Callable[[Request, Response], Awaitable[None]]:
    """Create a dependency charging one request against ``config``.

    Usage:
        @router.post("/servers", dependencies=[Depends(rate_limit(RateLimits.SERVER_CREATION, scope="servers"))])

    Args:
        config: Budget to enforce.
        scope: Namespace so different routes do not share a bucket.

    Returns:
        An async FastAPI dependency raising :class:`RateLimitedAppError`
        (HTTP 429, ``retry_after`` in the body) when the caller is over budget.
    """

    async def enforce_rate_limit(request: Request, response: Response) -> None:
        if not settings.app.rate_limit_enabled:
            return

        limiter = get_rate_limiter(request)
        key = build_rate_limit_key(request, scope)
        key_hash = fingerprint(key)

        result = limiter.check_rate_limit(key, config)
        headers = rate_limit_headers(result) if settings.app.rate_limit_include_headers else {}

        if result.allowed:
            logger.debug(
                "rate_limit.allowed",
                extra={
                    "scope": scope,
                    "key_hash": key_hash,
                    "limit": result.limit,
                    "remaining": result.remaining,
                },
            )
            response.headers.update(headers)
            return

        logger.warning(
            "rate_limit.exceeded",
            extra={
                "scope": scope,
                "key_hash": key_hash,
                "limit": result.limit,
                "window_ms": config.window_ms,
                "retry_after_s": result.retry_after,
            },
        )
        raise RateLimitedAppError(
            code="rate_limit_exceeded",
            message="Too many requests, please try again later",
            details={"retry_after": result.retry_after or 0},
            headers=headers,
        )

    return enforce_rate_limit
