"""Caller identity for route handlers.

Sessions are validated by the web tier in front of this service, which
forwards the authenticated user id in a header (``APP_USER_ID_HEADER``,
default ``X-User-Id``). This module only reads it.
"""

from __future__ import annotations

import logging

from fastapi import Request

from firepit.core.config import settings
from firepit.core.errors import AuthenticationAppError

logger = logging.getLogger(__name__)


def get_caller_id(request: Request) -> str | None:
    """Return the forwarded user id, or None when the request is anonymous."""
    value = request.headers.get(settings.app.user_id_header, "").strip()
    return value or None


async def require_caller_id(request: Request) -> str:
    """FastAPI dependency returning the caller's user id.

    Raises:
        AuthenticationAppError: If the identity header is missing (401).
    """
    caller_id = get_caller_id(request)
    if caller_id is None:
        logger.warning(
            "auth.missing_identity",
            extra={"header": settings.app.user_id_header, "request_path": request.url.path},
        )
        raise AuthenticationAppError(
            code="authentication_required",
            message="Authentication required",
            details={"hint": f"Provide the {settings.app.user_id_header} header"},
        )
    return caller_id
