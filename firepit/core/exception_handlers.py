"""Exception handlers turning domain errors into the JSON error envelope.

Every error body has the shape::

    {"error": {"code": ..., "message": ..., "request_id": ..., "details": {...}}}

``details`` is omitted when the error carries none. Rate-limit rejections
(429) use the same envelope with ``details.retry_after`` in seconds.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from firepit.core.errors import (
    AppError,
    AuthenticationAppError,
    NotFoundAppError,
    PermissionDeniedAppError,
    RateLimitedAppError,
    UpstreamAppError,
)
from firepit.core.logging import get_request_id

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[AppError], int], ...] = (
    (AuthenticationAppError, 401),
    (PermissionDeniedAppError, 403),
    (NotFoundAppError, 404),
    (RateLimitedAppError, 429),
    (UpstreamAppError, 502),
)


def status_code_for(exc: AppError) -> int:
    """Return the HTTP status for a domain error (400 when unmapped)."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


def _error_body(code: str, message: str, details: dict | None = None) -> dict:
    body = {"code": code, "message": message, "request_id": get_request_id()}
    if details:
        body["details"] = details
    return {"error": body}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    status_code = status_code_for(exc)
    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
        },
    )
    headers = exc.headers if isinstance(exc, RateLimitedAppError) else None
    return JSONResponse(
        status_code=status_code,
        content=_error_body(exc.code, exc.message, exc.details),
        headers=headers or None,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: log the failure, answer a generic 500.

    The exception text stays in the logs; the client only sees a fixed
    message so store or upstream internals never leak.
    """
    logger.error(
        "unhandled_exception",
        exc_info=exc,
        extra={
            "error_type": type(exc).__name__,
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )
    return JSONResponse(
        status_code=500,
        content=_error_body(
            "internal_server_error",
            "An unexpected error occurred. Please try again later.",
        ),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
