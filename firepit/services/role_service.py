"""Role and membership orchestration.

Loads roles, assignments and channel overrides from the role store, applies
the write-side invariants (one default role per server, member counts) and
hands the read side to the permission resolver. Effective permissions are
computed fresh on every call; only membership listings go through the
request cache.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Sequence

from firepit.adapters.roles.base import AbstractRoleStore
from firepit.core.errors import NotFoundAppError, PermissionDeniedAppError, ValidationAppError
from firepit.schemas.permissions import (
    ChannelPermissionOverride,
    EffectivePermissions,
    OverrideValue,
    Permission,
    Role,
    RoleAssignment,
    Server,
)
from firepit.services.permissions import (
    can_manage_role,
    compute_effective_permissions,
    has_permission,
    is_valid_permission,
)
from firepit.utils.request_cache import CacheTTL, RequestCache

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


def memberships_cache_key(server_id: str) -> str:
    return f"memberships:{server_id}"


def _validate_permission_names(names: Sequence[str]) -> None:
    unknown = sorted(name for name in names if not is_valid_permission(name))
    if unknown:
        raise ValidationAppError(
            code="unknown_permission",
            message=f"Unknown permission(s): {', '.join(unknown)}",
            details={"hint": "Valid permissions: " + ", ".join(p.value for p in Permission)},
        )


class RoleService:
    """Server, role and membership operations on top of a role store."""

    def __init__(
        self,
        store: AbstractRoleStore,
        cache: RequestCache,
        *,
        memberships_ttl_ms: int = CacheTTL.MEMBERSHIPS,
    ) -> None:
        self._store = store
        self._cache = cache
        self._memberships_ttl_ms = memberships_ttl_ms

    async def _require_server(self, server_id: str) -> Server:
        server = await self._store.get_server(server_id)
        if server is None:
            raise NotFoundAppError(
                code="server_not_found",
                message="Server not found",
                details={"server_id": server_id},
            )
        return server

    async def _require_role(self, server_id: str, role_id: str) -> Role:
        role = await self._store.get_role(role_id)
        if role is None or role.server_id != server_id:
            raise NotFoundAppError(
                code="role_not_found",
                message="Role not found",
                details={"server_id": server_id, "role_id": role_id},
            )
        return role

    async def _member_roles(self, server_id: str, user_id: str) -> list[Role]:
        assignment = await self._store.get_assignment(server_id, user_id)
        if assignment is None or not assignment.role_ids:
            return []
        return await self._store.list_roles(server_id, role_ids=assignment.role_ids)

    async def _require_manageable(self, server: Server, caller_id: str, role: Role) -> None:
        caller_roles = await self._member_roles(server.id, caller_id)
        if not can_manage_role(caller_roles, role, is_owner=server.owner_id == caller_id):
            logger.warning(
                "roles.manage_denied",
                extra={"server_id": server.id, "role_id": role.id},
            )
            raise PermissionDeniedAppError(
                code="cannot_manage_role",
                message="You cannot manage this role",
                details={"server_id": server.id, "role_id": role.id},
            )

    async def _refresh_member_counts(self, server_id: str, role_ids: Sequence[str]) -> None:
        if not role_ids:
            return
        assignments = await self._store.list_assignments(server_id)
        for role in await self._store.list_roles(server_id, role_ids=role_ids):
            role.member_count = sum(1 for a in assignments if role.id in a.role_ids)
            await self._store.save_role(role)

    async def create_server(self, name: str, owner_id: str) -> Server:
        server = await self._store.save_server(Server(id=_new_id(), name=name, owner_id=owner_id))
        await self._store.save_assignment(RoleAssignment(server_id=server.id, user_id=owner_id))
        logger.info("servers.created", extra={"server_id": server.id})
        return server

    async def enforce_single_default_role(self, server_id: str, keep_role_id: str) -> None:
        """Clear ``default_on_join`` on every role of the server but one."""
        defaults = await self._store.list_roles(server_id, default_on_join=True)
        for role in defaults:
            if role.id == keep_role_id:
                continue
            role.default_on_join = False
            await self._store.save_role(role)
            logger.info(
                "roles.default_demoted",
                extra={"server_id": server_id, "role_id": role.id},
            )

    async def create_role(
        self,
        server_id: str,
        caller_id: str,
        *,
        name: str,
        color: str | None = None,
        position: int = 0,
        permissions: dict[str, bool] | None = None,
        default_on_join: bool = False,
        mentionable: bool = False,
    ) -> Role:
        server = await self._require_server(server_id)
        _validate_permission_names(list(permissions or {}))

        role = Role(
            id=_new_id(),
            server_id=server_id,
            name=name,
            position=position,
            permissions=dict(permissions or {}),
            default_on_join=default_on_join,
            mentionable=mentionable,
        )
        if color:
            role.color = color

        await self._require_manageable(server, caller_id, role)
        await self._store.save_role(role)
        if role.default_on_join:
            await self.enforce_single_default_role(server_id, role.id)

        logger.info("roles.created", extra={"server_id": server_id, "role_id": role.id})
        return role

    async def update_role(
        self,
        server_id: str,
        role_id: str,
        caller_id: str,
        changes: dict[str, Any],
    ) -> Role:
        """Apply a partial update to a role.

        The caller must be able to manage the role both before and after the
        change, so a role cannot be lifted above the caller's own rank.
        """
        server = await self._require_server(server_id)
        role = await self._require_role(server_id, role_id)
        await self._require_manageable(server, caller_id, role)

        if "permissions" in changes and changes["permissions"] is not None:
            _validate_permission_names(list(changes["permissions"]))

        updated = role.model_copy(
            update={key: value for key, value in changes.items() if value is not None}
        )
        await self._require_manageable(server, caller_id, updated)
        await self._store.save_role(updated)
        if updated.default_on_join:
            await self.enforce_single_default_role(server_id, updated.id)

        logger.info("roles.updated", extra={"server_id": server_id, "role_id": role_id})
        return updated

    async def assign_default_role(self, server_id: str, user_id: str) -> bool:
        """Give ``user_id`` the server's default role.

        Picks the highest positioned role flagged ``default_on_join``.

        Returns:
            True if the user holds the default role afterwards, False when the
            server has no default role.
        """
        defaults = await self._store.list_roles(server_id, default_on_join=True)
        if not defaults:
            return False
        default_role = defaults[0]

        assignment = await self._store.get_assignment(server_id, user_id)
        if assignment is None:
            assignment = RoleAssignment(server_id=server_id, user_id=user_id)
        elif default_role.id in assignment.role_ids:
            return True

        assignment.role_ids.append(default_role.id)
        await self._store.save_assignment(assignment)
        await self._refresh_member_counts(server_id, [default_role.id])
        logger.info(
            "roles.default_assigned",
            extra={"server_id": server_id, "role_id": default_role.id},
        )
        return True

    async def join_server(self, server_id: str, user_id: str) -> RoleAssignment:
        await self._require_server(server_id)
        if await self._store.get_assignment(server_id, user_id) is None:
            await self._store.save_assignment(RoleAssignment(server_id=server_id, user_id=user_id))
        await self.assign_default_role(server_id, user_id)
        self._cache.clear(memberships_cache_key(server_id))

        assignment = await self._store.get_assignment(server_id, user_id)
        return assignment or RoleAssignment(server_id=server_id, user_id=user_id)

    async def set_member_roles(
        self,
        server_id: str,
        user_id: str,
        caller_id: str,
        role_ids: Sequence[str],
    ) -> RoleAssignment:
        """Replace the roles of a member.

        Every role added or removed must be manageable by the caller.
        """
        server = await self._require_server(server_id)
        assignment = await self._store.get_assignment(server_id, user_id)
        if assignment is None:
            raise NotFoundAppError(
                code="member_not_found",
                message="User is not a member of this server",
                details={"server_id": server_id},
            )

        wanted = list(dict.fromkeys(role_ids))
        changed = set(wanted).symmetric_difference(assignment.role_ids)
        for role_id in sorted(changed):
            role = await self._require_role(server_id, role_id)
            await self._require_manageable(server, caller_id, role)

        assignment.role_ids = wanted
        await self._store.save_assignment(assignment)
        await self._refresh_member_counts(server_id, sorted(changed))
        self._cache.clear(memberships_cache_key(server_id))
        logger.info(
            "roles.member_roles_set",
            extra={"server_id": server_id, "role_count": len(wanted)},
        )
        return assignment

    async def list_members(self, server_id: str) -> list[RoleAssignment]:
        """List role assignments, coalescing concurrent reads via the cache."""
        await self._require_server(server_id)

        async def _load() -> list[RoleAssignment]:
            return await self._store.list_assignments(server_id)

        return await self._cache.dedupe(
            memberships_cache_key(server_id), _load, self._memberships_ttl_ms
        )

    async def set_channel_override(
        self,
        server_id: str,
        channel_id: str,
        caller_id: str,
        *,
        permissions: dict[str, OverrideValue],
        role_id: str | None = None,
        user_id: str | None = None,
    ) -> ChannelPermissionOverride:
        """Create or replace the override of a role or a user on a channel."""
        if (role_id is None) == (user_id is None):
            raise ValidationAppError(
                code="invalid_override_target",
                message="Exactly one of role_id and user_id must be set",
                details={"channel_id": channel_id},
            )
        _validate_permission_names(list(permissions))

        await self._require_server(server_id)
        if role_id is not None:
            await self._require_role(server_id, role_id)

        caller_permissions = await self.get_member_permissions(server_id, caller_id)
        if not has_permission(Permission.MANAGE_CHANNELS, caller_permissions):
            raise PermissionDeniedAppError(
                code="missing_permission",
                message="Managing channel permissions requires manageChannels",
                details={"permission": Permission.MANAGE_CHANNELS.value},
            )

        override = ChannelPermissionOverride(
            id=_new_id(),
            server_id=server_id,
            channel_id=channel_id,
            role_id=role_id,
            user_id=user_id,
            permissions=permissions,
        )
        await self._store.save_override(override)
        logger.info(
            "overrides.saved",
            extra={"server_id": server_id, "channel_id": channel_id},
        )
        return override

    async def get_member_permissions(
        self,
        server_id: str,
        user_id: str,
        channel_id: str | None = None,
    ) -> EffectivePermissions:
        """Resolve the effective permissions of a user, optionally in a channel."""
        server = await self._require_server(server_id)
        roles = await self._member_roles(server_id, user_id)

        overrides: list[ChannelPermissionOverride] = []
        if channel_id:
            overrides = await self._store.list_overrides(
                server_id,
                channel_id,
                role_ids=[role.id for role in roles],
                user_id=user_id,
            )

        return compute_effective_permissions(
            roles,
            overrides,
            is_owner=server.owner_id == user_id,
        )
