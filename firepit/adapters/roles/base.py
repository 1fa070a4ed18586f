"""Role storage interface.

Servers, roles, role assignments and channel overrides live in a hosted
document database in production. Services talk to this abstraction so the
database client can be swapped for the in-memory store in tests and local
runs.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from firepit.schemas.permissions import (
    ChannelPermissionOverride,
    Role,
    RoleAssignment,
    Server,
)


class AbstractRoleStore(ABC):
    """Async CRUD over the role-related collections."""

    @abstractmethod
    async def save_server(self, server: Server) -> Server:
        ...

    @abstractmethod
    async def get_server(self, server_id: str) -> Server | None:
        ...

    @abstractmethod
    async def save_role(self, role: Role) -> Role:
        """Insert or replace a role by id."""
        ...

    @abstractmethod
    async def get_role(self, role_id: str) -> Role | None:
        ...

    @abstractmethod
    async def list_roles(
        self,
        server_id: str,
        *,
        role_ids: Sequence[str] | None = None,
        default_on_join: bool | None = None,
    ) -> list[Role]:
        """List a server's roles, highest position first.

        Args:
            server_id: Server the roles belong to.
            role_ids: Restrict to these ids when given.
            default_on_join: Restrict to roles with this flag when given.
        """
        ...

    @abstractmethod
    async def get_assignment(self, server_id: str, user_id: str) -> RoleAssignment | None:
        ...

    @abstractmethod
    async def save_assignment(self, assignment: RoleAssignment) -> RoleAssignment:
        """Insert or replace the assignment of ``(server_id, user_id)``."""
        ...

    @abstractmethod
    async def list_assignments(self, server_id: str) -> list[RoleAssignment]:
        ...

    @abstractmethod
    async def save_override(
        self, override: ChannelPermissionOverride
    ) -> ChannelPermissionOverride:
        """Insert or replace the override for the same server, channel and target."""
        ...

    @abstractmethod
    async def list_overrides(
        self,
        server_id: str,
        channel_id: str,
        *,
        role_ids: Sequence[str] = (),
        user_id: str | None = None,
    ) -> list[ChannelPermissionOverride]:
        """List overrides of a server channel targeting any of ``role_ids`` or ``user_id``."""
        ...
