"""User management services.

Create, update and delete club members and keep their holder-group
memberships in step. Callers need the MANAGE_USERS capability and may only
manage users whose role ranks strictly below their own, both before and
after the change.
"""

import logging
from typing import Optional

from catalog.models import IHMember, InventoryHolder
from common.actions import guarded_action
from common.choices import IHType, UserRole
from common.exceptions import AuthorizationError, BusinessRuleError, NotFoundError, ValidationFailed
from django.db.models import Count

from .models import User, normalize_telegram_handle
from .permissions import Capability, can_manage_user_of_role, role_of

logger = logging.getLogger("logistics.users")


def _text(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def clean_user_input(
    *, first_name=None, last_name=None, nusnet=None, telegram_handle=None, role=None, group_ids=None
) -> dict:
    """Trim and normalize user fields.

    ``role=None`` keeps the current role on update (REQUESTER on create) and
    ``group_ids=None`` leaves memberships untouched.
    """
    errors: dict = {}
    first_name = _text(first_name)
    handle = normalize_telegram_handle(telegram_handle)
    if not first_name:
        errors["first_name"] = ["First name is required"]
    if not handle:
        errors["telegram_handle"] = ["Telegram handle is required"]
    if role is not None and role not in UserRole.values:
        errors["role"] = [f"Unknown role {role}"]
    if group_ids is not None:
        group_ids = [str(ih_id).strip() for ih_id in group_ids if str(ih_id).strip()]
        group_ids = list(dict.fromkeys(group_ids))
    if errors:
        raise ValidationFailed("Validation failed", errors=errors)
    return {
        "first_name": first_name,
        "last_name": _text(last_name) or "",
        "nusnet": _text(nusnet),
        "telegram_handle": handle,
        "role": role,
        "group_ids": group_ids,
    }


def _require_rank(actor, target_role: str) -> None:
    if not can_manage_user_of_role(role_of(actor), target_role):
        raise AuthorizationError(f"Not allowed to manage {UserRole(target_role).label} users")


def _check_unique(telegram_handle: str, nusnet: Optional[str], exclude_id=None) -> None:
    others = User.objects.all()
    if exclude_id is not None:
        others = others.exclude(pk=exclude_id)
    if others.filter(telegram_handle=telegram_handle).exists():
        raise BusinessRuleError(f"User with Telegram handle @{telegram_handle} already exists.")
    if nusnet and others.filter(nusnet_id=nusnet).exists():
        raise BusinessRuleError(f"User with NUSNET {nusnet} already exists.")


def _check_groups(group_ids: list[str]) -> None:
    found = set(InventoryHolder.objects.filter(ih_id__in=group_ids, is_active=True).values_list("ih_id", flat=True))
    missing = [ih_id for ih_id in group_ids if ih_id not in found]
    if missing:
        raise NotFoundError(f"Inventory holder not found: {', '.join(missing)}")


def _username_for(handle: str) -> str:
    candidate = handle[:140]
    suffix = 1
    while User.objects.filter(username=candidate).exists():
        suffix += 1
        candidate = f"{handle[:140]}-{suffix}"
    return candidate


@guarded_action(Capability.MANAGE_USERS, "user.created", clean=clean_user_input)
def create_user(actor, *, first_name, last_name, nusnet, telegram_handle, role, group_ids) -> dict:
    role = role or UserRole.REQUESTER
    _require_rank(actor, role)
    _check_unique(telegram_handle, nusnet)
    if group_ids:
        _check_groups(group_ids)
    user = User(
        username=_username_for(telegram_handle),
        first_name=first_name,
        last_name=last_name,
        nusnet_id=nusnet,
        telegram_handle=telegram_handle,
        role=role,
    )
    user.set_unusable_password()
    user.save()
    IHMember.objects.bulk_create([IHMember(user=user, ih_id=ih_id) for ih_id in group_ids or []])
    return {"user_id": user.id}


@guarded_action(Capability.MANAGE_USERS, "user.updated", clean=clean_user_input)
def update_user(actor, user_id, *, first_name, last_name, nusnet, telegram_handle, role, group_ids) -> dict:
    """Overwrite a user's details and, when ``group_ids`` is given, diff memberships.

    Memberships not listed are removed; new ones are added as non-primary.
    """
    try:
        user = User.objects.select_for_update().get(pk=user_id)
    except (User.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("User not found")
    _require_rank(actor, user.role)
    role = role or user.role
    _require_rank(actor, role)
    _check_unique(telegram_handle, nusnet, exclude_id=user.pk)

    user.first_name = first_name
    user.last_name = last_name
    user.nusnet_id = nusnet
    user.telegram_handle = telegram_handle
    user.role = role
    user.save()

    if group_ids is not None:
        current = set(user.ih_memberships.values_list("ih_id", flat=True))
        to_add = [ih_id for ih_id in group_ids if ih_id not in current]
        to_remove = current - set(group_ids)
        if to_add:
            _check_groups(to_add)
        if to_remove:
            user.ih_memberships.filter(ih_id__in=to_remove).delete()
        IHMember.objects.bulk_create([IHMember(user=user, ih_id=ih_id) for ih_id in to_add])
        if to_add or to_remove:
            logger.info(
                "user_groups_changed",
                extra={"user_id": user.pk, "added": sorted(to_add), "removed": sorted(to_remove)},
            )
    return {"user_id": user.pk}


@guarded_action(Capability.MANAGE_USERS, "user.deleted")
def delete_user(actor, user_id) -> dict:
    """Delete a user without loan history.

    Refused while the user is the individual holder of any item. Individual
    holders left without members or items are removed with the user.
    """
    try:
        user = User.objects.select_for_update().get(pk=user_id)
    except (User.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("User not found")
    _require_rank(actor, user.role)
    if user.loan_requests.exists() or user.handled_loans.exists():
        raise BusinessRuleError("Cannot delete user with loan history")

    individual = list(
        InventoryHolder.objects.filter(memberships__user=user, ih_type=IHType.INDIVIDUAL).annotate(
            item_count=Count("items", distinct=True)
        )
    )
    for holder in individual:
        if holder.item_count:
            raise BusinessRuleError(
                f"Cannot delete user: they are the IH for {holder.item_count} item(s). Reassign items first."
            )

    orphaned = [holder.ih_id for holder in individual]
    user.delete()
    if orphaned:
        InventoryHolder.objects.filter(ih_id__in=orphaned, memberships__isnull=True).delete()
        logger.info("individual_holders_removed", extra={"user_id": int(user_id), "ih_ids": orphaned})
    return {"user_id": int(user_id)}
