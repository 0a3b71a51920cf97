"""Catalog services: items, storage locations, inventory holders and memberships.

Every function is a guarded action returning an ``ActionResult``. Item and
location management needs LOGS or above; holder groups and their
memberships need ADMIN.
"""

import datetime as dt
import logging
from typing import Optional

from common.actions import guarded_action
from common.choices import IHType, LoanItemStatus
from common.exceptions import BusinessRuleError, NotFoundError, ValidationFailed
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils.dateparse import parse_date
from django.utils.text import slugify
from loans.models import LoanItemDetail
from users.permissions import Capability

from .models import IHMember, InventoryHolder, Item, Sloc
from .storage import delete_item_image

logger = logging.getLogger("logistics.catalog")


def _text(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _flag(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def clean_item_input(**fields) -> dict:
    """Trim text, coerce numbers, dates and flags; collect per-field errors."""
    errors: dict = {}
    cleaned = {
        "item_desc": _text(fields.get("item_desc")),
        "item_uom": _text(fields.get("item_uom")),
        "item_sloc_id": _text(fields.get("item_sloc")),
        "item_ih_id": _text(fields.get("item_ih")),
        "nusc_sn": _text(fields.get("nusc_sn")),
        "item_remarks": _text(fields.get("item_remarks")),
        "item_rfp_number": _text(fields.get("item_rfp_number")),
        "item_image": _text(fields.get("item_image")),
        "item_unloanable": _flag(fields.get("item_unloanable", False)),
        "item_expendable": _flag(fields.get("item_expendable", False)),
    }
    for key, label in (
        ("item_desc", "Description"),
        ("item_uom", "Unit of Measure"),
        ("item_sloc_id", "Storage Location"),
        ("item_ih_id", "Inventory Holder"),
    ):
        if not cleaned[key]:
            errors[key.replace("_id", "")] = [f"{label} is required"]

    try:
        qty = int(fields.get("item_qty"))
        if qty < 0:
            errors["item_qty"] = ["Quantity cannot be negative"]
        cleaned["item_qty"] = qty
    except (TypeError, ValueError):
        errors["item_qty"] = ["Quantity must be a whole number"]

    purchase = fields.get("item_purchase_date")
    if isinstance(purchase, str):
        try:
            purchase = parse_date(purchase.strip()) if purchase.strip() else None
        except ValueError:
            purchase = None
        if purchase is None and fields.get("item_purchase_date", "").strip():
            errors["item_purchase_date"] = ["Enter a valid date"]
    elif purchase is not None and not isinstance(purchase, dt.date):
        errors["item_purchase_date"] = ["Enter a valid date"]
    cleaned["item_purchase_date"] = purchase

    if "delete_previous_image" in fields:
        cleaned["delete_previous_image"] = _flag(fields["delete_previous_image"])
    if errors:
        raise ValidationFailed("Validation failed", errors=errors)
    return cleaned


def _check_placement(sloc_id: str, ih_id: str) -> None:
    if not Sloc.objects.filter(sloc_id=sloc_id, is_active=True).exists():
        raise NotFoundError("Storage location not found")
    if not InventoryHolder.objects.filter(ih_id=ih_id, is_active=True).exists():
        raise NotFoundError("Inventory holder not found")


def _remove_image_after_commit(url: Optional[str]) -> None:
    if url:
        transaction.on_commit(lambda: delete_item_image(url))


# Items


@guarded_action(Capability.MANAGE_ITEMS, "item.created", clean=clean_item_input)
def create_item(actor, **fields) -> dict:
    _check_placement(fields["item_sloc_id"], fields["item_ih_id"])
    if fields["nusc_sn"] and Item.objects.filter(nusc_sn=fields["nusc_sn"]).exists():
        raise BusinessRuleError("An item with this serial number already exists")
    fields.pop("delete_previous_image", None)
    item = Item.objects.create(**fields)
    return {"item_id": item.item_id}


@guarded_action(Capability.MANAGE_ITEMS, "item.updated", clean=clean_item_input)
def update_item(actor, item_id, *, delete_previous_image: bool = False, **fields) -> dict:
    """Overwrite an item's fields.

    With ``delete_previous_image`` the old image file is removed once the
    update commits, whether it was replaced or simply cleared.
    """
    try:
        item = Item.objects.select_for_update().get(item_id=item_id)
    except (Item.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Item not found. It may have been deleted.")
    _check_placement(fields["item_sloc_id"], fields["item_ih_id"])
    if fields["nusc_sn"] and Item.objects.filter(nusc_sn=fields["nusc_sn"]).exclude(item_id=item.item_id).exists():
        raise BusinessRuleError("An item with this serial number already exists")

    previous_image = item.item_image
    for key, value in fields.items():
        setattr(item, key, value)
    item.save()
    if delete_previous_image and previous_image and previous_image != item.item_image:
        _remove_image_after_commit(previous_image)
    return {"item_id": item.item_id}


@guarded_action(Capability.MANAGE_ITEMS, "item.deleted")
def delete_item(actor, item_id) -> dict:
    """Delete an item that has no pending or on-loan lines, then its image."""
    try:
        item = Item.objects.select_for_update().get(item_id=item_id)
    except (Item.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Item not found. It may have already been deleted.")
    active = LoanItemDetail.objects.filter(
        item_id=item.item_id, loan_status__in=[LoanItemStatus.PENDING, LoanItemStatus.ON_LOAN]
    )
    if active.exists():
        raise BusinessRuleError("Cannot delete item with active or pending loans. Return or reject all loans first.")
    if LoanItemDetail.objects.filter(item_id=item.item_id).exists():
        raise BusinessRuleError("Cannot delete item with loan history")
    image = item.item_image
    item.delete()
    _remove_image_after_commit(image)
    return {"item_id": int(item_id)}


# Storage locations


def _slug_for(name: str) -> str:
    return slugify(name)


def _clean_name(field: str):
    def clean(**kwargs) -> dict:
        name = _text(kwargs.get(field))
        if not name:
            raise ValidationFailed("Name is required", errors={field: ["Name is required"]})
        if not _slug_for(name):
            raise ValidationFailed("Name must contain letters or digits", errors={field: ["Invalid name"]})
        return {field: name}

    return clean


@guarded_action(Capability.MANAGE_LOCATIONS, "sloc.created", clean=_clean_name("sloc_name"))
def create_sloc(actor, *, sloc_name: str) -> dict:
    sloc_id = _slug_for(sloc_name)
    existing = Sloc.objects.filter(sloc_id=sloc_id).first()
    if existing and existing.is_active:
        raise BusinessRuleError("A location with a similar name already exists")
    if existing:
        existing.sloc_name = sloc_name
        existing.is_active = True
        existing.save(update_fields=["sloc_name", "is_active", "updated_at"])
        return {"sloc_id": existing.sloc_id, "sloc_name": existing.sloc_name}
    sloc = Sloc.objects.create(sloc_id=sloc_id, sloc_name=sloc_name)
    return {"sloc_id": sloc.sloc_id, "sloc_name": sloc.sloc_name}


@guarded_action(Capability.MANAGE_LOCATIONS, "sloc.deactivated")
def deactivate_sloc(actor, sloc_id: str) -> dict:
    try:
        sloc = Sloc.objects.select_for_update().get(sloc_id=sloc_id)
    except Sloc.DoesNotExist:
        raise NotFoundError("Storage location not found")
    if Item.objects.filter(item_sloc_id=sloc.sloc_id).exists():
        raise BusinessRuleError("Sloc is in use and cannot be deleted")
    sloc.is_active = False
    sloc.save(update_fields=["is_active", "updated_at"])
    return {"sloc_id": sloc.sloc_id}


def search_slocs(query: str = "", limit: int = 10):
    return Sloc.objects.filter(sloc_name__icontains=query or "", is_active=True).order_by("sloc_name")[:limit]


# Inventory holders and memberships


@guarded_action(Capability.MANAGE_USERS, "ih.created", clean=_clean_name("ih_name"))
def create_group_ih(actor, *, ih_name: str) -> dict:
    ih_id = _slug_for(ih_name)
    if InventoryHolder.objects.filter(ih_id=ih_id).exists():
        raise BusinessRuleError(f'A group with ID "{ih_id}" already exists')
    holder = InventoryHolder.objects.create(ih_id=ih_id, ih_name=ih_name, ih_type=IHType.GROUP)
    return {"ih_id": holder.ih_id, "ih_name": holder.ih_name, "ih_type": holder.ih_type}


@guarded_action(Capability.MANAGE_LOCATIONS, "ih.deactivated")
def deactivate_ih(actor, ih_id: str) -> dict:
    try:
        holder = InventoryHolder.objects.select_for_update().get(ih_id=ih_id)
    except InventoryHolder.DoesNotExist:
        raise NotFoundError("Inventory holder not found")
    if Item.objects.filter(item_ih_id=holder.ih_id).exists():
        raise BusinessRuleError("IH is in use and cannot be deleted")
    holder.is_active = False
    holder.save(update_fields=["is_active", "updated_at"])
    return {"ih_id": holder.ih_id}


def search_ihs(query: str = "", limit: int = 10):
    return (
        InventoryHolder.objects.filter(ih_name__icontains=query or "", is_active=True)
        .prefetch_related("memberships__user")
        .order_by("ih_name")[:limit]
    )


def _locked_holder(ih_id: str) -> InventoryHolder:
    try:
        return InventoryHolder.objects.select_for_update().get(ih_id=ih_id)
    except InventoryHolder.DoesNotExist:
        raise NotFoundError("Inventory holder not found")


def _user_pk(user_id) -> int:
    try:
        return int(user_id)
    except (TypeError, ValueError):
        raise NotFoundError("User not found")


@guarded_action(Capability.MANAGE_USERS, "ih.member_added")
def add_user_to_group(actor, user_id, ih_id: str, *, is_primary: bool = False) -> dict:
    holder = _locked_holder(ih_id)
    user_id = _user_pk(user_id)
    if not get_user_model().objects.filter(pk=user_id).exists():
        raise NotFoundError("User not found")
    if IHMember.objects.filter(user_id=user_id, ih=holder).exists():
        raise BusinessRuleError("User is already a member of this group")
    if is_primary:
        holder.memberships.filter(is_primary=True).update(is_primary=False)
    IHMember.objects.create(user_id=user_id, ih=holder, is_primary=is_primary)
    return {"user_id": int(user_id), "ih_id": holder.ih_id, "is_primary": is_primary}


@guarded_action(Capability.MANAGE_USERS, "ih.member_removed")
def remove_user_from_group(actor, user_id, ih_id: str) -> dict:
    holder = _locked_holder(ih_id)
    user_id = _user_pk(user_id)
    deleted, _ = IHMember.objects.filter(user_id=user_id, ih=holder).delete()
    if not deleted:
        raise NotFoundError("User is not a member of this group")
    return {"user_id": int(user_id), "ih_id": holder.ih_id}


@guarded_action(Capability.MANAGE_USERS, "ih.primary_set")
def set_primary_poc(actor, ih_id: str, user_id) -> dict:
    """Make an existing member the holder's primary point of contact."""
    holder = _locked_holder(ih_id)
    user_id = _user_pk(user_id)
    try:
        membership = holder.memberships.select_for_update().get(user_id=user_id)
    except IHMember.DoesNotExist:
        raise BusinessRuleError("User is not a member of this group")
    holder.memberships.filter(is_primary=True).exclude(pk=membership.pk).update(is_primary=False)
    if not membership.is_primary:
        membership.is_primary = True
        membership.save(update_fields=["is_primary", "updated_at"])
    logger.info("primary_poc_changed", extra={"ih_id": holder.ih_id, "user_id": membership.user_id})
    return {"ih_id": holder.ih_id, "user_id": membership.user_id}
