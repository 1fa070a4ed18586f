"""Permission resolution for role-based access control.

Resolution order for a member of a server:
1. Server owner holds every permission.
2. Base permissions: union of the grants of every role the member holds.
3. A role granting ``administrator`` holds every permission and bypasses
   channel overrides.
4. Channel overrides of the member's roles; when the roles disagree on a
   permission, deny wins over allow.
5. A channel override targeting the member directly has the final word.

Everything here is pure: no I/O, no raising on odd input. Unknown permission
names on roles or overrides are ignored.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from firepit.schemas.permissions import (
    ChannelPermissionOverride,
    EffectivePermissions,
    OverrideValue,
    Permission,
    Role,
)

_PERMISSION_NAMES = frozenset(permission.value for permission in Permission)

PERMISSION_DESCRIPTIONS: dict[Permission, str] = {
    Permission.READ_MESSAGES: "View channels and read message history",
    Permission.SEND_MESSAGES: "Send messages in channels",
    Permission.MANAGE_MESSAGES: "Delete and edit messages from other users",
    Permission.MANAGE_CHANNELS: "Create, edit, and delete channels",
    Permission.MANAGE_ROLES: "Create and modify roles below their highest role",
    Permission.MANAGE_SERVER: "Change server name and other server settings",
    Permission.MENTION_EVERYONE: "Use @everyone and @here mentions",
    Permission.ADMINISTRATOR: "All permissions and bypass channel overrides",
}


def _known_overrides(
    override: ChannelPermissionOverride,
) -> Iterable[tuple[Permission, OverrideValue]]:
    for name, value in override.permissions.items():
        if is_valid_permission(name):
            yield Permission(name), value


def _merge_role_overrides(
    overrides: Iterable[ChannelPermissionOverride],
) -> dict[Permission, OverrideValue]:
    """Combine role overrides per permission, deny winning over allow."""
    merged: dict[Permission, OverrideValue] = {}
    for override in overrides:
        for permission, value in _known_overrides(override):
            if value is OverrideValue.INHERIT:
                continue
            if merged.get(permission) is OverrideValue.DENY:
                continue
            merged[permission] = value
    return merged


def compute_effective_permissions(
    roles: Sequence[Role],
    overrides: Sequence[ChannelPermissionOverride] = (),
    *,
    is_owner: bool = False,
) -> EffectivePermissions:
    """Calculate the effective permissions of a member.

    Args:
        roles: Every role the member holds in the server.
        overrides: Channel overrides applicable to the member for the target
            channel (those of the member's roles and the member's own).
            Empty for server-wide checks.
        is_owner: Whether the member owns the server.

    Returns:
        EffectivePermissions with a value for every permission. A member
        without roles gets all-False.
    """
    if is_owner:
        return EffectivePermissions.all_granted()

    granted: dict[Permission, bool] = {permission: False for permission in Permission}

    # Grants are a union; role precedence only matters for rank checks
    for role in roles:
        for permission in Permission:
            if role.grants(permission):
                granted[permission] = True

    if granted[Permission.ADMINISTRATOR]:
        return EffectivePermissions.all_granted()

    role_overrides = [o for o in overrides if o.role_id]
    user_overrides = [o for o in overrides if o.user_id and not o.role_id]

    for permission, value in _merge_role_overrides(role_overrides).items():
        granted[permission] = value is OverrideValue.ALLOW

    for override in user_overrides[:1]:
        for permission, value in _known_overrides(override):
            if value is not OverrideValue.INHERIT:
                granted[permission] = value is OverrideValue.ALLOW

    return EffectivePermissions(
        **{permission.field_name: value for permission, value in granted.items()}
    )


def has_permission(permission: Permission, effective: EffectivePermissions) -> bool:
    """Check a permission, letting ``administrator`` through everything."""
    if effective.administrator:
        return True
    return effective.is_granted(permission)


def calculate_role_hierarchy(roles: Iterable[Role]) -> list[Role]:
    """Return roles sorted highest position first."""
    return sorted(roles, key=lambda role: role.position, reverse=True)


def get_highest_role(roles: Sequence[Role]) -> Role | None:
    if not roles:
        return None
    return calculate_role_hierarchy(roles)[0]


def can_manage_role(
    user_roles: Sequence[Role],
    target_role: Role,
    *,
    is_owner: bool = False,
) -> bool:
    """Check whether a member may edit or assign ``target_role``.

    Owners manage every role. Administrators manage every non-administrator
    role. Anyone else needs ``manageRoles`` and a highest role strictly
    above the target.
    """
    if is_owner:
        return True

    if any(role.grants(Permission.ADMINISTRATOR) for role in user_roles):
        if not target_role.grants(Permission.ADMINISTRATOR):
            return True

    if not any(role.grants(Permission.MANAGE_ROLES) for role in user_roles):
        return False

    highest = get_highest_role(user_roles)
    if highest is None:
        return False

    return highest.position > target_role.position


def is_valid_permission(name: str) -> bool:
    return name in _PERMISSION_NAMES


def get_all_permissions() -> list[Permission]:
    return list(Permission)


def get_permission_description(permission: Permission) -> str:
    return PERMISSION_DESCRIPTIONS[permission]
