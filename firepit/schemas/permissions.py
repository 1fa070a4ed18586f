"""Pydantic schemas for roles, channel overrides and effective permissions."""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Permission(str, Enum):
    """Capabilities a role or override can grant."""

    READ_MESSAGES = "readMessages"
    SEND_MESSAGES = "sendMessages"
    MANAGE_MESSAGES = "manageMessages"
    MANAGE_CHANNELS = "manageChannels"
    MANAGE_ROLES = "manageRoles"
    MANAGE_SERVER = "manageServer"
    MENTION_EVERYONE = "mentionEveryone"
    ADMINISTRATOR = "administrator"

    @property
    def field_name(self) -> str:
        """Attribute name of this permission on :class:`EffectivePermissions`."""
        return self.name.lower()


class OverrideValue(str, Enum):
    ALLOW = "allow"
    DENY = "deny"
    INHERIT = "inherit"


class Server(BaseModel):
    id: str
    name: str
    owner_id: str


class Role(BaseModel):
    """Named permission bundle scoped to a server.

    ``position`` orders roles: a higher value ranks higher in the hierarchy.
    ``permissions`` maps permission names to grants; names that are not a
    known :class:`Permission` are carried along but ignored when resolving.
    """

    id: str
    server_id: str
    name: str
    color: str = "#99AAB5"
    position: int = 0
    permissions: Dict[str, bool] = Field(default_factory=dict)
    default_on_join: bool = False
    mentionable: bool = False
    member_count: int = 0

    def grants(self, permission: Permission) -> bool:
        return bool(self.permissions.get(permission.value, False))


class RoleAssignment(BaseModel):
    server_id: str
    user_id: str
    role_ids: List[str] = Field(default_factory=list)


class ChannelPermissionOverride(BaseModel):
    """Per-channel adjustment for one role or one user.

    Exactly one of ``role_id`` and ``user_id`` is expected to be set. Channel
    ids are only unique within a server, so ``server_id`` is part of the
    override's identity.
    """

    id: str
    server_id: str
    channel_id: str
    role_id: Optional[str] = None
    user_id: Optional[str] = None
    permissions: Dict[str, OverrideValue] = Field(default_factory=dict)


class EffectivePermissions(BaseModel):
    """Final allow/deny decision for every known permission.

    Serialises with the camelCase permission names (``readMessages``, ...)
    so the payload can be handed to clients as is.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    read_messages: bool = False
    send_messages: bool = False
    manage_messages: bool = False
    manage_channels: bool = False
    manage_roles: bool = False
    manage_server: bool = False
    mention_everyone: bool = False
    administrator: bool = False

    @classmethod
    def all_granted(cls) -> "EffectivePermissions":
        return cls(**{permission.field_name: True for permission in Permission})

    def is_granted(self, permission: Permission) -> bool:
        return getattr(self, permission.field_name)

    def to_dict(self) -> dict[str, bool]:
        """Return ``{permission name: granted}`` for every permission."""
        return self.model_dump(by_alias=True)
