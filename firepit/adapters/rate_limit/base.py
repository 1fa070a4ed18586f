"""Rate limiter interfaces.

Routes depend on this abstraction (not the concrete implementation) so the
bucket table can move to a shared store later with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitConfig:
    """Budget for one kind of action.

    Attributes:
        max_requests: Requests allowed per window.
        window_ms: Window length in milliseconds, counted from the first
            request of the window.

    Raises:
        ValueError: If either value is not positive.
    """

    max_requests: int
    window_ms: int

    def __post_init__(self) -> None:
        if self.max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if self.window_ms < 1:
            raise ValueError("window_ms must be >= 1")


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check or status lookup.

    Attributes:
        allowed: Whether the request is (or the next request would be) allowed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch milliseconds when the current window resets.
        retry_after: Seconds to wait before retrying when blocked, else None.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after: int | None = None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def check_rate_limit(self, identifier: str, config: RateLimitConfig) -> RateLimitResult:
        """Charge one request to ``identifier`` and report the outcome."""
        raise NotImplementedError

    @abstractmethod
    def get_rate_limit_status(
        self, identifier: str, config: RateLimitConfig
    ) -> RateLimitResult:
        """Report the current budget for ``identifier`` without charging it."""
        raise NotImplementedError

    @abstractmethod
    def reset_rate_limit(self, identifier: str) -> None:
        """Forget any usage recorded for ``identifier``."""
        raise NotImplementedError


class RateLimits:
    """Predefined budgets used by the API routes."""

    # Sensitive operations
    STRICT = RateLimitConfig(max_requests=5, window_ms=60 * 1000)
    # Regular API endpoints
    STANDARD = RateLimitConfig(max_requests=30, window_ms=60 * 1000)
    # Read-heavy endpoints
    MODERATE = RateLimitConfig(max_requests=60, window_ms=60 * 1000)
    # High-frequency operations
    RELAXED = RateLimitConfig(max_requests=100, window_ms=60 * 1000)
    MESSAGES = RateLimitConfig(max_requests=10, window_ms=10 * 1000)
    TYPING = RateLimitConfig(max_requests=5, window_ms=5 * 1000)
    SEARCH = RateLimitConfig(max_requests=10, window_ms=60 * 1000)
    FILE_UPLOAD = RateLimitConfig(max_requests=5, window_ms=60 * 1000)
    INVITE_GENERATION = RateLimitConfig(max_requests=10, window_ms=60 * 60 * 1000)
    SERVER_CREATION = RateLimitConfig(max_requests=3, window_ms=60 * 60 * 1000)
