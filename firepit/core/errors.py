"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    http_status: int
    retry_after: int
    server_id: str
    channel_id: str
    role_id: str
    permission: str
    upstream_status: int
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input validation fails."""


class AuthenticationAppError(AppError):
    """Raised when the caller could not be identified."""


class PermissionDeniedAppError(AppError):
    """Raised when the caller lacks a required permission."""


class NotFoundAppError(AppError):
    """Raised when a server, role or channel does not exist."""


class UpstreamAppError(AppError):
    """Raised when a third-party API call fails."""


@dataclass
class RateLimitedAppError(AppError):
    """Raised when a caller is over its rate-limit budget.

    ``details["retry_after"]`` always carries the wait in seconds; ``headers``
    holds the ``X-RateLimit-*`` set when header reporting is enabled.
    """

    headers: dict[str, str] = field(default_factory=dict)
