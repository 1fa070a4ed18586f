from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from firepit.adapters.rate_limit.base import AbstractRateLimiter, RateLimits
from firepit.core.errors import ValidationAppError
from firepit.core.rate_limit import build_rate_limit_key, get_rate_limiter
from firepit.schemas.requests import RateLimitStatusResponse

router = APIRouter(tags=["Rate Limits"])

# Route scope -> preset, mirrors the rate_limit() dependencies on the routers
_SCOPES = {
    "servers.create": RateLimits.SERVER_CREATION,
    "servers.join": RateLimits.MODERATE,
    "servers.members": RateLimits.RELAXED,
    "servers.permissions": RateLimits.MODERATE,
    "roles": RateLimits.STANDARD,
}


@router.get("/rate-limit", response_model=RateLimitStatusResponse)
async def get_rate_limit_status(
    request: Request,
    limiter: Annotated[AbstractRateLimiter, Depends(get_rate_limiter)],
    scope: Annotated[str, Query(description="Route scope to inspect")] = "roles",
) -> RateLimitStatusResponse:
    """Report the caller's remaining budget for a scope without consuming it."""
    config = _SCOPES.get(scope)
    if config is None:
        raise ValidationAppError(
            code="unknown_rate_limit_scope",
            message=f"Unknown rate limit scope: '{scope}'",
            details={"hint": "Valid scopes: " + ", ".join(sorted(_SCOPES))},
        )

    result = limiter.get_rate_limit_status(build_rate_limit_key(request, scope), config)
    return RateLimitStatusResponse(
        scope=scope,
        allowed=result.allowed,
        limit=result.limit,
        remaining=result.remaining,
        reset_at=result.reset_at,
        retry_after=result.retry_after,
    )
