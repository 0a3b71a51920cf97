"""Role hierarchy and capability checks.

Hierarchy: REQUESTER -> IH -> LOGS -> ADMIN. Everything here is a pure
function of the caller's role; the role itself comes from the identity
provider and is trusted as-is.
"""

from typing import Optional

from common.choices import UserRole
from django.db import models
from rest_framework.permissions import BasePermission

ROLE_RANK = {
    UserRole.REQUESTER: 1,
    UserRole.IH: 2,
    UserRole.LOGS: 3,
    UserRole.ADMIN: 4,
}


class Capability(models.TextChoices):
    VIEW_CATALOGUE = "view_catalogue", "View catalogue"
    VIEW_LOANS = "view_loans", "View loans"
    VIEW_USERS = "view_users", "View users"
    MANAGE_LOANS = "manage_loans", "Manage loans"
    MANAGE_ITEMS = "manage_items", "Manage items"
    MANAGE_LOCATIONS = "manage_locations", "Manage locations"
    MANAGE_USERS = "manage_users", "Manage users and groups"


# Minimum role per capability; None means no role is required.
CAPABILITY_MIN_ROLE = {
    Capability.VIEW_CATALOGUE: None,
    Capability.VIEW_LOANS: UserRole.LOGS,
    Capability.VIEW_USERS: UserRole.LOGS,
    Capability.MANAGE_LOANS: UserRole.LOGS,
    Capability.MANAGE_ITEMS: UserRole.LOGS,
    Capability.MANAGE_LOCATIONS: UserRole.LOGS,
    Capability.MANAGE_USERS: UserRole.ADMIN,
}


def role_of(actor) -> Optional[str]:
    """Return the role string for a user, a role string, or None for anonymous callers."""
    if actor is None:
        return None
    if isinstance(actor, str):
        return actor if actor in ROLE_RANK else None
    if not getattr(actor, "is_authenticated", False):
        return None
    role = getattr(actor, "role", None)
    return role if role in ROLE_RANK else None


def role_rank(role: Optional[str]) -> int:
    return ROLE_RANK.get(role, 0) if role else 0


def has_minimum_role(role: Optional[str], minimum: str) -> bool:
    return role_rank(role) >= ROLE_RANK[minimum]


def role_has_capability(role: Optional[str], capability: str) -> bool:
    minimum = CAPABILITY_MIN_ROLE[capability]
    if minimum is None:
        return True
    return has_minimum_role(role, minimum)


def can_manage_user_of_role(actor_role: Optional[str], target_role: str) -> bool:
    """Users may only manage users of strictly lower rank."""
    if not role_has_capability(actor_role, Capability.MANAGE_USERS):
        return False
    return role_rank(actor_role) > role_rank(target_role)


def assignable_roles(actor_role: Optional[str]) -> list[str]:
    rank = role_rank(actor_role)
    return [role for role, level in ROLE_RANK.items() if level < rank]


def available_tabs(role: Optional[str]) -> list[dict]:
    tabs = [{"name": "CATALOGUE", "href": "/catalogue"}]
    if role_has_capability(role, Capability.VIEW_LOANS):
        tabs.append({"name": "LOANS", "href": "/loans"})
    if role_has_capability(role, Capability.VIEW_USERS):
        tabs.append({"name": "USERS", "href": "/users"})
    return tabs


class HasCapability(BasePermission):
    """DRF permission gating a view on a capability.

    Use via ``HasCapability.for_(Capability.MANAGE_LOANS)``. Safe methods can be
    given a separate capability with ``read=``.
    """

    capability = Capability.VIEW_CATALOGUE
    read_capability: Optional[str] = None

    @classmethod
    def for_(cls, capability: str, read: Optional[str] = None):
        return type(
            f"Has{capability.title().replace('_', '')}",
            (cls,),
            {"capability": capability, "read_capability": read},
        )

    def has_permission(self, request, view) -> bool:
        capability = self.capability
        if self.read_capability and request.method in ("GET", "HEAD", "OPTIONS"):
            capability = self.read_capability
        return role_has_capability(role_of(request.user), capability)
