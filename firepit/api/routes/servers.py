from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, status

from firepit.adapters.rate_limit.base import RateLimits
from firepit.api.dependencies import get_role_service
from firepit.core.identity import require_caller_id
from firepit.core.rate_limit import rate_limit
from firepit.schemas.permissions import EffectivePermissions, RoleAssignment, Server
from firepit.schemas.requests import CreateServerRequest
from firepit.services.role_service import RoleService

router = APIRouter(tags=["Servers"])

Caller = Annotated[str, Depends(require_caller_id)]
Roles = Annotated[RoleService, Depends(get_role_service)]


@router.post(
    "/servers",
    response_model=Server,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit(RateLimits.SERVER_CREATION, scope="servers.create"))],
)
async def create_server(body: CreateServerRequest, caller_id: Caller, roles: Roles) -> Server:
    """Create a server owned by the caller."""
    return await roles.create_server(body.name, caller_id)


@router.post(
    "/servers/{server_id}/members",
    response_model=RoleAssignment,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit(RateLimits.MODERATE, scope="servers.join"))],
)
async def join_server(server_id: str, caller_id: Caller, roles: Roles) -> RoleAssignment:
    """Join a server as the caller and receive its default role, if any."""
    return await roles.join_server(server_id, caller_id)


@router.get(
    "/servers/{server_id}/members",
    response_model=List[RoleAssignment],
    dependencies=[Depends(rate_limit(RateLimits.RELAXED, scope="servers.members"))],
)
async def list_members(server_id: str, roles: Roles) -> List[RoleAssignment]:
    """List members of a server with their role ids."""
    return await roles.list_members(server_id)


@router.get(
    "/servers/{server_id}/permissions",
    response_model=EffectivePermissions,
    dependencies=[Depends(rate_limit(RateLimits.MODERATE, scope="servers.permissions"))],
)
async def get_permissions(
    server_id: str,
    roles: Roles,
    user_id: Annotated[str, Query(min_length=1, description="User whose permissions are resolved")],
    channel_id: Annotated[
        Optional[str],
        Query(description="Resolve within this channel, applying its overrides"),
    ] = None,
) -> EffectivePermissions:
    """Resolve a user's effective permissions for a server or one of its channels.

    The body maps every permission name to a boolean, e.g.
    ``{"readMessages": true, "sendMessages": false, ...}``.
    """
    return await roles.get_member_permissions(server_id, user_id, channel_id)
