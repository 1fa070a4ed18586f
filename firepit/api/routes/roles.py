from typing import Annotated

from fastapi import APIRouter, Depends, status

from firepit.adapters.rate_limit.base import RateLimits
from firepit.api.dependencies import get_role_service
from firepit.core.identity import require_caller_id
from firepit.core.rate_limit import rate_limit
from firepit.schemas.permissions import ChannelPermissionOverride, Role, RoleAssignment
from firepit.schemas.requests import (
    ChannelOverrideRequest,
    CreateRoleRequest,
    SetMemberRolesRequest,
    UpdateRoleRequest,
)
from firepit.services.role_service import RoleService

router = APIRouter(
    tags=["Roles"],
    dependencies=[Depends(rate_limit(RateLimits.STANDARD, scope="roles"))],
)

Caller = Annotated[str, Depends(require_caller_id)]
Roles = Annotated[RoleService, Depends(get_role_service)]


@router.post(
    "/servers/{server_id}/roles",
    response_model=Role,
    status_code=status.HTTP_201_CREATED,
)
async def create_role(
    server_id: str, body: CreateRoleRequest, caller_id: Caller, roles: Roles
) -> Role:
    """Create a role. Setting ``default_on_join`` demotes the previous default role."""
    return await roles.create_role(
        server_id,
        caller_id,
        name=body.name,
        color=body.color,
        position=body.position,
        permissions=body.permissions,
        default_on_join=body.default_on_join,
        mentionable=body.mentionable,
    )


@router.patch("/servers/{server_id}/roles/{role_id}", response_model=Role)
async def update_role(
    server_id: str,
    role_id: str,
    body: UpdateRoleRequest,
    caller_id: Caller,
    roles: Roles,
) -> Role:
    return await roles.update_role(
        server_id, role_id, caller_id, body.model_dump(exclude_unset=True)
    )


@router.put("/servers/{server_id}/members/{user_id}/roles", response_model=RoleAssignment)
async def set_member_roles(
    server_id: str,
    user_id: str,
    body: SetMemberRolesRequest,
    caller_id: Caller,
    roles: Roles,
) -> RoleAssignment:
    """Replace the roles held by a member."""
    return await roles.set_member_roles(server_id, user_id, caller_id, body.role_ids)


@router.put(
    "/servers/{server_id}/channels/{channel_id}/overrides",
    response_model=ChannelPermissionOverride,
)
async def set_channel_override(
    server_id: str,
    channel_id: str,
    body: ChannelOverrideRequest,
    caller_id: Caller,
    roles: Roles,
) -> ChannelPermissionOverride:
    """Create or replace the override of one role or one user on a channel."""
    return await roles.set_channel_override(
        server_id,
        channel_id,
        caller_id,
        permissions=body.permissions,
        role_id=body.role_id,
        user_id=body.user_id,
    )
