import pytest
from common.choices import UserRole
from django.contrib.auth.models import AnonymousUser
from users.permissions import (
    Capability,
    assignable_roles,
    available_tabs,
    can_manage_user_of_role,
    role_has_capability,
    role_of,
)


@pytest.mark.parametrize(
    "role, capability, allowed",
    [
        (None, Capability.VIEW_CATALOGUE, True),
        (UserRole.REQUESTER, Capability.VIEW_LOANS, False),
        (UserRole.IH, Capability.MANAGE_LOANS, False),
        (UserRole.LOGS, Capability.MANAGE_LOANS, True),
        (UserRole.LOGS, Capability.MANAGE_ITEMS, True),
        (UserRole.LOGS, Capability.MANAGE_USERS, False),
        (UserRole.ADMIN, Capability.MANAGE_USERS, True),
        (None, Capability.MANAGE_LOANS, False),
    ],
)
def test_capability_thresholds(role, capability, allowed):
    assert role_has_capability(role, capability) is allowed


def test_role_of_handles_strings_anonymous_and_unknown_roles():
    class Caller:
        is_authenticated = True
        role = "SUPERHERO"

    assert role_of(None) is None
    assert role_of(AnonymousUser()) is None
    assert role_of(UserRole.LOGS) == UserRole.LOGS
    assert role_of("nonsense") is None
    assert role_of(Caller()) is None


def test_users_manage_only_strictly_lower_roles():
    assert can_manage_user_of_role(UserRole.ADMIN, UserRole.LOGS)
    assert not can_manage_user_of_role(UserRole.ADMIN, UserRole.ADMIN)
    assert not can_manage_user_of_role(UserRole.LOGS, UserRole.REQUESTER)
    assert assignable_roles(UserRole.ADMIN) == [UserRole.REQUESTER, UserRole.IH, UserRole.LOGS]
    assert assignable_roles(None) == []


def test_tabs_grow_with_role():
    assert [t["name"] for t in available_tabs(UserRole.REQUESTER)] == ["CATALOGUE"]
    assert [t["name"] for t in available_tabs(UserRole.LOGS)] == ["CATALOGUE", "LOANS", "USERS"]
