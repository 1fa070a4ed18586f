"""In-memory role store.

Per-process only and lost on restart. Returned models are copies so callers
cannot mutate stored state behind the store's back.
"""

from __future__ import annotations

from typing import Sequence

from firepit.adapters.roles.base import AbstractRoleStore
from firepit.schemas.permissions import (
    ChannelPermissionOverride,
    Role,
    RoleAssignment,
    Server,
)


class InMemoryRoleStore(AbstractRoleStore):
    """Dictionary-backed implementation of :class:`AbstractRoleStore`."""

    def __init__(self) -> None:
        self._servers: dict[str, Server] = {}
        self._roles: dict[str, Role] = {}
        self._assignments: dict[tuple[str, str], RoleAssignment] = {}
        self._overrides: dict[
            tuple[str, str, str | None, str | None], ChannelPermissionOverride
        ] = {}

    async def save_server(self, server: Server) -> Server:
        self._servers[server.id] = server.model_copy(deep=True)
        return server

    async def get_server(self, server_id: str) -> Server | None:
        server = self._servers.get(server_id)
        return server.model_copy(deep=True) if server else None

    async def save_role(self, role: Role) -> Role:
        self._roles[role.id] = role.model_copy(deep=True)
        return role

    async def get_role(self, role_id: str) -> Role | None:
        role = self._roles.get(role_id)
        return role.model_copy(deep=True) if role else None

    async def list_roles(
        self,
        server_id: str,
        *,
        role_ids: Sequence[str] | None = None,
        default_on_join: bool | None = None,
    ) -> list[Role]:
        wanted = set(role_ids) if role_ids is not None else None
        roles = [
            role.model_copy(deep=True)
            for role in self._roles.values()
            if role.server_id == server_id
            and (wanted is None or role.id in wanted)
            and (default_on_join is None or role.default_on_join == default_on_join)
        ]
        return sorted(roles, key=lambda role: role.position, reverse=True)

    async def get_assignment(self, server_id: str, user_id: str) -> RoleAssignment | None:
        assignment = self._assignments.get((server_id, user_id))
        return assignment.model_copy(deep=True) if assignment else None

    async def save_assignment(self, assignment: RoleAssignment) -> RoleAssignment:
        key = (assignment.server_id, assignment.user_id)
        self._assignments[key] = assignment.model_copy(deep=True)
        return assignment

    async def list_assignments(self, server_id: str) -> list[RoleAssignment]:
        return [
            assignment.model_copy(deep=True)
            for (assignment_server, _), assignment in self._assignments.items()
            if assignment_server == server_id
        ]

    async def save_override(
        self, override: ChannelPermissionOverride
    ) -> ChannelPermissionOverride:
        key = (
            override.server_id,
            override.channel_id,
            override.role_id,
            override.user_id,
        )
        self._overrides[key] = override.model_copy(deep=True)
        return override

    async def list_overrides(
        self,
        server_id: str,
        channel_id: str,
        *,
        role_ids: Sequence[str] = (),
        user_id: str | None = None,
    ) -> list[ChannelPermissionOverride]:
        wanted_roles = set(role_ids)
        return [
            override.model_copy(deep=True)
            for override in self._overrides.values()
            if override.server_id == server_id
            and override.channel_id == channel_id
            and (
                (override.role_id is not None and override.role_id in wanted_roles)
                or (user_id is not None and override.user_id == user_id)
            )
        ]
