"""Application factory for the FastAPI app.

Centralizes app construction (state, middleware, handlers, routers) so each
app instance owns its own rate limiter, cache and role store. Tests build a
fresh app per case instead of sharing module-level state.
"""

from __future__ import annotations

from fastapi import FastAPI

from firepit.adapters.rate_limit.base import AbstractRateLimiter
from firepit.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from firepit.adapters.releases.base import AbstractReleaseClient
from firepit.adapters.releases.factory import create_release_client
from firepit.adapters.roles.base import AbstractRoleStore
from firepit.adapters.roles.in_memory import InMemoryRoleStore
from firepit.api.routes import (
    health_router,
    rate_limits_router,
    roles_router,
    servers_router,
    version_router,
)
from firepit.core.config import settings
from firepit.core.exception_handlers import setup_exception_handlers
from firepit.core.logging import configure_logging
from firepit.core.middleware import request_id_middleware
from firepit.services.role_service import RoleService
from firepit.services.version_service import VersionService
from firepit.utils.request_cache import RequestCache


def create_app(
    *,
    rate_limiter: AbstractRateLimiter | None = None,
    cache: RequestCache | None = None,
    role_store: AbstractRoleStore | None = None,
    release_client: AbstractReleaseClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        rate_limiter: Limiter to use; a new in-memory limiter by default.
        cache: Request cache to use; a new one by default.
        role_store: Role storage; a new in-memory store by default.
        release_client: Release feed client; built from settings by default.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Firepit Access API",
        description=(
            "Role-based permission resolution, per-caller rate limiting and "
            "request-coalescing cache for the Firepit chat application."
        ),
        version=settings.app.current_version,
        debug=settings.app.debug,
    )

    if cache is None:
        cache = RequestCache()
    if rate_limiter is None:
        rate_limiter = InMemoryFixedWindowRateLimiter()
    if role_store is None:
        role_store = InMemoryRoleStore()
    if release_client is None:
        release_client = create_release_client()

    app.state.rate_limiter = rate_limiter
    app.state.cache = cache
    app.state.role_service = RoleService(role_store, cache)
    app.state.version_service = VersionService(
        release_client,
        cache,
        current_version=settings.app.current_version,
        ttl_ms=settings.releases.cache_ttl_ms,
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(servers_router, prefix="/v1")
    app.include_router(roles_router, prefix="/v1")
    app.include_router(rate_limits_router, prefix="/v1")
    app.include_router(version_router, prefix="/v1")
    app.include_router(health_router)

    return app
