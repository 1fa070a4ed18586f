"""Unit tests for the permission resolver."""

from typing import Any

import pytest

from firepit.schemas.permissions import (
    ChannelPermissionOverride,
    EffectivePermissions,
    OverrideValue,
    Permission,
    Role,
)
from firepit.services.permissions import (
    calculate_role_hierarchy,
    can_manage_role,
    compute_effective_permissions,
    get_all_permissions,
    get_highest_role,
    get_permission_description,
    has_permission,
    is_valid_permission,
)


def _role(role_id: str, position: int = 0, **permissions: bool) -> Role:
    return Role(
        id=role_id,
        server_id="srv",
        name=role_id.title(),
        position=position,
        permissions=permissions,
    )


def _override(
    role_id: str | None = None,
    user_id: str | None = None,
    **values: Any,
) -> ChannelPermissionOverride:
    return ChannelPermissionOverride(
        id=f"ovr-{role_id or user_id}",
        server_id="srv",
        channel_id="general",
        role_id=role_id,
        user_id=user_id,
        permissions={name: OverrideValue(value) for name, value in values.items()},
    )


class TestComputeEffectivePermissions:
    def test_no_roles_yields_all_false(self) -> None:
        result = compute_effective_permissions([])

        assert result.to_dict() == {p.value: False for p in Permission}

    def test_result_always_contains_every_permission(self) -> None:
        result = compute_effective_permissions([_role("member", readMessages=True)])

        assert set(result.to_dict()) == {p.value for p in Permission}

    def test_permission_no_role_grants_stays_false(self) -> None:
        roles = [
            _role("member", 1, readMessages=True, sendMessages=True),
            _role("helper", 2, manageMessages=True, manageChannels=False),
        ]

        result = compute_effective_permissions(roles)

        assert result.manage_channels is False
        assert result.manage_roles is False
        assert result.read_messages is True
        assert result.manage_messages is True

    def test_grants_are_unioned_across_roles(self) -> None:
        # A higher role that does not grant a permission cannot revoke it
        roles = [
            _role("member", 1, sendMessages=True),
            _role("muted", 5, sendMessages=False),
        ]

        result = compute_effective_permissions(roles)

        assert result.send_messages is True

    def test_unknown_permission_names_are_ignored(self) -> None:
        roles = [_role("odd", 1, readMessages=True, flyToTheMoon=True)]
        overrides = [_override(role_id="odd", flyToTheMoon="allow")]

        result = compute_effective_permissions(roles, overrides)

        assert result.read_messages is True
        assert "flyToTheMoon" not in result.to_dict()

    def test_owner_gets_everything_regardless_of_input(self) -> None:
        overrides = [_override(role_id="member", readMessages="deny", sendMessages="deny")]

        result = compute_effective_permissions([], overrides, is_owner=True)

        assert all(result.to_dict().values())

    def test_administrator_role_bypasses_channel_overrides(self) -> None:
        roles = [_role("admin", 10, administrator=True)]
        overrides = [_override(role_id="admin", sendMessages="deny")]

        result = compute_effective_permissions(roles, overrides)

        assert result == EffectivePermissions.all_granted()

    def test_role_override_allow_widens_access(self) -> None:
        roles = [_role("member", 1, readMessages=True)]
        overrides = [_override(role_id="member", sendMessages="allow")]

        result = compute_effective_permissions(roles, overrides)

        assert result.send_messages is True

    def test_role_override_deny_narrows_access(self) -> None:
        roles = [_role("member", 1, readMessages=True, sendMessages=True)]
        overrides = [_override(role_id="member", sendMessages="deny")]

        result = compute_effective_permissions(roles, overrides)

        assert result.send_messages is False
        assert result.read_messages is True

    @pytest.mark.parametrize("order", [("allow", "deny"), ("deny", "allow")])
    def test_deny_wins_when_role_overrides_disagree(self, order: tuple[str, str]) -> None:
        roles = [
            _role("member", 1, readMessages=True),
            _role("vip", 2, readMessages=True),
        ]
        overrides = [
            _override(role_id="member", sendMessages=order[0]),
            _override(role_id="vip", sendMessages=order[1]),
        ]

        result = compute_effective_permissions(roles, overrides)

        assert result.send_messages is False

    def test_inherit_leaves_role_value_untouched(self) -> None:
        roles = [_role("member", 1, sendMessages=True)]
        overrides = [_override(role_id="member", sendMessages="inherit")]

        result = compute_effective_permissions(roles, overrides)

        assert result.send_messages is True

    def test_user_override_has_final_word(self) -> None:
        roles = [_role("member", 1, readMessages=True)]
        overrides = [
            _override(role_id="member", sendMessages="deny"),
            _override(user_id="u1", sendMessages="allow", readMessages="deny"),
        ]

        result = compute_effective_permissions(roles, overrides)

        assert result.send_messages is True
        assert result.read_messages is False

    def test_serializes_with_permission_names(self) -> None:
        result = compute_effective_permissions([_role("member", readMessages=True)])

        payload = result.model_dump(by_alias=True)

        assert payload["readMessages"] is True
        assert payload["mentionEveryone"] is False


class TestHierarchyHelpers:
    def test_role_precedence_higher_position_wins(self) -> None:
        low, mid, high = _role("low", 1), _role("mid", 5), _role("high", 9)

        ordered = calculate_role_hierarchy([mid, low, high])

        assert [r.id for r in ordered] == ["high", "mid", "low"]
        assert get_highest_role([low, high, mid]) is high
        # the higher-positioned role outranks, never the other way round
        manager = _role("manager", 5, manageRoles=True)
        assert can_manage_role([manager], low)
        assert not can_manage_role([manager], high)

    def test_highest_role(self) -> None:
        assert get_highest_role([]) is None
        assert get_highest_role([_role("a", 3), _role("b", 7)]).id == "b"

    def test_owner_can_manage_any_role(self) -> None:
        assert can_manage_role([], _role("admin", 99, administrator=True), is_owner=True)

    def test_admin_manages_non_admin_roles_only(self) -> None:
        admin = _role("admin", 5, administrator=True)

        assert can_manage_role([admin], _role("mod", 50, manageMessages=True))
        assert not can_manage_role([admin], _role("other-admin", 1, administrator=True))

    def test_manage_roles_requires_strictly_higher_rank(self) -> None:
        manager = _role("manager", 5, manageRoles=True)

        assert can_manage_role([manager], _role("member", 4))
        assert not can_manage_role([manager], _role("peer", 5))
        assert not can_manage_role([manager], _role("boss", 6))

    def test_rank_comes_from_highest_role_even_without_manage_roles_on_it(self) -> None:
        roles = [_role("manager", 2, manageRoles=True), _role("veteran", 8)]

        assert can_manage_role(roles, _role("member", 5))

    def test_without_manage_roles_nothing_is_manageable(self) -> None:
        assert not can_manage_role([_role("member", 10, sendMessages=True)], _role("x", 1))


class TestPermissionCatalog:
    def test_has_permission_admin_bypass(self) -> None:
        effective = EffectivePermissions(administrator=True)

        assert has_permission(Permission.MANAGE_SERVER, effective)

    def test_has_permission_reads_flag(self) -> None:
        effective = EffectivePermissions(send_messages=True)

        assert has_permission(Permission.SEND_MESSAGES, effective)
        assert not has_permission(Permission.MANAGE_SERVER, effective)

    def test_is_valid_permission(self) -> None:
        assert is_valid_permission("manageChannels")
        assert not is_valid_permission("manage_channels")
        assert not is_valid_permission("")

    def test_every_permission_has_a_description(self) -> None:
        permissions = get_all_permissions()

        assert len(permissions) == 8
        for permission in permissions:
            assert get_permission_description(permission)
