"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: bucket reads and writes happen under one lock.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from firepit.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitConfig,
    RateLimitResult,
)


@dataclass
class _Bucket:
    count: int
    reset_at: int


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting requests per identifier in a fixed window.

    A window opens on the first request seen for an identifier and lasts
    ``config.window_ms``. Every checked request is counted, including the
    ones that get rejected, so a caller hammering the limit stays at zero
    remaining until the window expires.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            clock: Time source function returning UNIX time in seconds.
        """
        self._clock = clock
        self._lock = threading.Lock()
        self._buckets: dict[str, _Bucket] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    @staticmethod
    def _retry_after(reset_at: int, now: int) -> int:
        return max(1, math.ceil((reset_at - now) / 1000))

    def _live_bucket(self, identifier: str, now: int) -> _Bucket | None:
        bucket = self._buckets.get(identifier)
        if bucket is None or now >= bucket.reset_at:
            return None
        return bucket

    def check_rate_limit(self, identifier: str, config: RateLimitConfig) -> RateLimitResult:
        """Charge one request to ``identifier``.

        Args:
            identifier: Unique identifier (e.g., user id, client IP).
            config: Budget to enforce.

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If identifier is empty.
        """
        if not identifier:
            raise ValueError("identifier must be a non-empty string")

        now = self._now_ms()
        with self._lock:
            bucket = self._live_bucket(identifier, now)
            if bucket is None:
                bucket = _Bucket(count=0, reset_at=now + config.window_ms)
                self._buckets[identifier] = bucket

            bucket.count += 1
            count, reset_at = bucket.count, bucket.reset_at

        allowed = count <= config.max_requests
        return RateLimitResult(
            allowed=allowed,
            limit=config.max_requests,
            remaining=max(0, config.max_requests - count),
            reset_at=reset_at,
            retry_after=None if allowed else self._retry_after(reset_at, now),
        )

    def get_rate_limit_status(
        self, identifier: str, config: RateLimitConfig
    ) -> RateLimitResult:
        """Report the budget left for ``identifier`` without consuming it.

        ``allowed`` tells whether the next :meth:`check_rate_limit` call would
        pass. An identifier without a live window reports the full budget.
        """
        now = self._now_ms()
        with self._lock:
            bucket = self._live_bucket(identifier, now)
            if bucket is None:
                return RateLimitResult(
                    allowed=True,
                    limit=config.max_requests,
                    remaining=config.max_requests,
                    reset_at=now + config.window_ms,
                )
            count, reset_at = bucket.count, bucket.reset_at

        remaining = max(0, config.max_requests - count)
        allowed = remaining > 0
        return RateLimitResult(
            allowed=allowed,
            limit=config.max_requests,
            remaining=remaining,
            reset_at=reset_at,
            retry_after=None if allowed else self._retry_after(reset_at, now),
        )

    def reset_rate_limit(self, identifier: str) -> None:
        with self._lock:
            self._buckets.pop(identifier, None)
