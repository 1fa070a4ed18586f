from __future__ import annotations

from firepit.api.routes.health import router as health_router
from firepit.api.routes.rate_limits import router as rate_limits_router
from firepit.api.routes.roles import router as roles_router
from firepit.api.routes.servers import router as servers_router
from firepit.api.routes.version import router as version_router

__all__ = [
    "health_router",
    "rate_limits_router",
    "roles_router",
    "servers_router",
    "version_router",
]
