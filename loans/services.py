"""Loan services: the loan request state machine.

Request states: PENDING -> ONGOING (approve), PENDING -> REJECTED (reject),
PENDING -> PENDING (update), PENDING -> deleted, ONGOING -> COMPLETED once
every line is in a terminal state. Line states: PENDING -> ON_LOAN ->
RETURNED / RETURNED_LATE, or PENDING -> REJECTED.

Every public function is a guarded action: it checks the caller's role,
runs in a single transaction and returns an ``ActionResult``. Rows whose
values feed a decision are locked with ``select_for_update`` in a fixed
order (loan request first, then items by ascending id) so concurrent
approvals against the same stock serialize.
"""

import datetime as dt
import logging
from collections.abc import Mapping
from datetime import timedelta
from decimal import Decimal
from typing import Optional

from catalog.models import Item
from common.actions import guarded_action
from common.choices import RETURNED_LINE_STATUSES, TERMINAL_LINE_STATUSES, LoanItemStatus, RequestStatus, UserRole
from common.exceptions import NotFoundError, ValidationFailed
from django.conf import settings
from django.contrib.auth import get_user_model
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from inventory.ledger import derive_stock
from inventory.selectors import loan_quantities
from users.models import normalize_telegram_handle
from users.permissions import Capability

from .exceptions import (
    DuplicateRequesterError,
    InsufficientStockError,
    LoanDetailNotReturnableError,
    LoanNotPendingError,
    UnloanableItemError,
)
from .models import LoanItemDetail, LoanRequest

logger = logging.getLogger("logistics.loans")


# Input cleaning (runs before the transaction is opened)


def _coerce_datetime(value, *, end_of_day: bool) -> Optional[dt.datetime]:
    """Accept a datetime, a date or an ISO string; return an aware datetime.

    Bare dates cover the whole day: a start date begins at midnight and an
    end date runs until the last microsecond of that day.
    """
    if isinstance(value, str):
        try:
            value = parse_date(value.strip()) or parse_datetime(value.strip())
        except ValueError:
            value = None
    if isinstance(value, dt.datetime):
        if timezone.is_naive(value):
            value = timezone.make_aware(value)
        return value
    if isinstance(value, dt.date):
        moment = dt.time.max if end_of_day else dt.time.min
        return timezone.make_aware(dt.datetime.combine(value, moment))
    return None


def _whole_number(value) -> int:
    """Coerce to int, refusing booleans and fractional numbers."""
    if isinstance(value, bool):
        raise TypeError("booleans are not quantities")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError("not a whole number")
    if isinstance(value, Decimal) and value != value.to_integral_value():
        raise ValueError("not a whole number")
    return int(value)


def _clean_lines(items, errors: dict) -> list[dict]:
    if not items:
        errors["items"] = ["At least one item must be added"]
        return []
    if not isinstance(items, (list, tuple)):
        errors["items"] = ["Items must be a list of item_id and loan_qty entries"]
        return []
    lines = []
    seen = set()
    for index, entry in enumerate(items):
        if not isinstance(entry, Mapping):
            errors.setdefault("items", []).append(f"Line {index + 1}: expected an object with item_id and loan_qty")
            continue
        item_id = entry.get("item_id")
        loan_qty = entry.get("loan_qty")
        try:
            item_id = _whole_number(item_id)
            loan_qty = _whole_number(loan_qty)
        except (TypeError, ValueError):
            errors.setdefault("items", []).append(f"Line {index + 1}: item_id and loan_qty must be integers")
            continue
        if loan_qty < 1:
            errors.setdefault("items", []).append(f"Line {index + 1}: Quantity must be at least 1")
            continue
        if item_id in seen:
            errors.setdefault("items", []).append(f"Line {index + 1}: Item {item_id} is listed more than once")
            continue
        seen.add(item_id)
        lines.append({"item_id": item_id, "loan_qty": loan_qty})
    return lines


def _clean_optional_text(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _clean_loan_fields(*, loan_date_start, loan_date_end, items, errors: dict, **metadata) -> dict:
    start = _coerce_datetime(loan_date_start, end_of_day=False)
    end = _coerce_datetime(loan_date_end, end_of_day=True)
    if start is None:
        errors["loan_date_start"] = ["A valid start date is required"]
    if end is None:
        errors["loan_date_end"] = ["A valid end date is required"]
    if start and end and end < start:
        errors["loan_date_end"] = ["End date cannot be before the start date"]
    cleaned = {
        "loan_date_start": start,
        "loan_date_end": end,
        "items": _clean_lines(items, errors),
    }
    for key in ("organisation", "event_details", "event_location"):
        cleaned[key] = _clean_optional_text(metadata.get(key))
    return cleaned


def _clean_new_requester(details: dict, errors: dict) -> Optional[dict]:
    first_name = _clean_optional_text(details.get("first_name") or details.get("name"))
    nusnet = _clean_optional_text(details.get("nusnet") or details.get("nusnet_id"))
    if not first_name:
        errors.setdefault("new_requester", []).append("Name is required for new requesters")
    if not nusnet:
        errors.setdefault("new_requester", []).append("NUSNET ID is required for new requesters")
    if not first_name or not nusnet:
        return None
    return {
        "first_name": first_name,
        "last_name": _clean_optional_text(details.get("last_name")) or "",
        "nusnet_id": nusnet,
        "telegram_handle": normalize_telegram_handle(details.get("telegram_handle") or details.get("telehandle")),
        "telegram_id": details.get("telegram_id"),
    }


def clean_create_input(*, requester_id=None, new_requester=None, **fields) -> dict:
    errors: dict = {}
    cleaned = _clean_loan_fields(errors=errors, **fields)
    if requester_id and new_requester:
        errors["requester_id"] = ["Select an existing requester or provide new requester details, not both"]
    elif not requester_id and not new_requester:
        errors["requester_id"] = ["You must select or create a requester"]
    elif new_requester:
        cleaned["new_requester"] = _clean_new_requester(new_requester, errors)
    cleaned.setdefault("new_requester", None)
    cleaned["requester_id"] = requester_id or None
    if errors:
        raise ValidationFailed("Validation failed", errors=errors)
    return cleaned


def clean_update_input(**fields) -> dict:
    errors: dict = {}
    cleaned = _clean_loan_fields(errors=errors, **fields)
    if errors:
        raise ValidationFailed("Validation failed", errors=errors)
    return cleaned


# Transaction steps


def _handler_of(actor):
    """Return the acting user for audit columns, or None when only a role was given."""
    return actor if getattr(actor, "pk", None) else None


def _locked_loan(ref_no) -> LoanRequest:
    try:
        return LoanRequest.objects.select_for_update().get(ref_no=ref_no)
    except (LoanRequest.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Loan request not found")


def _require_pending(loan: LoanRequest) -> None:
    if loan.request_status != RequestStatus.PENDING:
        raise LoanNotPendingError()


def _log_status_change(loan: LoanRequest, previous: str, actor) -> None:
    logger.info(
        "loan_status_changed",
        extra={
            "ref_no": loan.ref_no,
            "requester_id": loan.requester_id,
            "actor_id": getattr(actor, "id", None),
            "status_from": previous,
            "status_to": loan.request_status,
        },
    )


def _unique_username(base: str) -> str:
    User = get_user_model()
    base = base[:140] or "requester"
    candidate = base
    suffix = 1
    while User.objects.filter(username=candidate).exists():
        suffix += 1
        candidate = f"{base}-{suffix}"
    return candidate


def _create_requester(details: dict):
    User = get_user_model()
    handle = details["telegram_handle"]
    nusnet = details["nusnet_id"]
    if handle and User.objects.filter(telegram_handle=handle).exists():
        raise DuplicateRequesterError(f"User with Telegram handle @{handle} already exists.")
    if User.objects.filter(nusnet_id=nusnet).exists():
        raise DuplicateRequesterError(f"User with NUSNET {nusnet} already exists.")
    user = User(
        username=_unique_username(handle or nusnet.lower()),
        first_name=details["first_name"],
        last_name=details["last_name"],
        nusnet_id=nusnet,
        telegram_handle=handle,
        telegram_id=details.get("telegram_id"),
        role=UserRole.REQUESTER,
    )
    user.set_unusable_password()
    user.save()
    logger.info("requester_created", extra={"user_id": user.id, "nusnet_id": nusnet})
    return user


def _resolve_requester(requester_id, new_requester):
    if new_requester:
        return _create_requester(new_requester)
    User = get_user_model()
    try:
        return User.objects.get(pk=requester_id)
    except (User.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Requester not found")


def _insert_lines(loan: LoanRequest, lines: list[dict]) -> list[LoanItemDetail]:
    """Validate each requested item against the shelf and create PENDING lines.

    Pending reservations are advisory at this stage; the hard ceiling is the
    full shelf quantity. No stock changes until approval.
    """
    item_ids = sorted(line["item_id"] for line in lines)
    locked = Item.objects.select_for_update().filter(item_id__in=item_ids).order_by("item_id")
    items = {item.item_id: item for item in locked}
    details = []
    for line in lines:
        item = items.get(line["item_id"])
        if item is None:
            raise NotFoundError(f"Item {line['item_id']} not found")
        if item.item_unloanable:
            raise UnloanableItemError(f"{item.item_desc} cannot be loaned")
        if line["loan_qty"] > item.item_qty:
            raise InsufficientStockError(
                f"Insufficient stock for {item.item_desc}. Available: {item.item_qty}, Requested: {line['loan_qty']}"
            )
        details.append(
            LoanItemDetail.objects.create(
                loan_request=loan,
                item=item,
                loan_qty=line["loan_qty"],
                loan_status=LoanItemStatus.PENDING,
                item_sloc_at_loan=item.item_sloc_id,
                item_ih_at_loan=item.item_ih_id,
            )
        )
    return details


@guarded_action(Capability.MANAGE_LOANS, "loan.created", clean=clean_create_input)
def create_loan(
    actor,
    *,
    loan_date_start,
    loan_date_end,
    items,
    requester_id=None,
    new_requester=None,
    organisation=None,
    event_details=None,
    event_location=None,
) -> dict:
    """Create a PENDING loan request with one PENDING line per item.

    Returns ``{"ref_no": ...}``. Either ``requester_id`` (existing user) or
    ``new_requester`` (``first_name``, ``nusnet``, optional ``last_name`` and
    ``telegram_handle``) identifies the borrower.
    """
    requester = _resolve_requester(requester_id, new_requester)
    loan = LoanRequest.objects.create(
        requester=requester,
        loan_date_start=loan_date_start,
        loan_date_end=loan_date_end,
        organisation=organisation,
        event_details=event_details,
        event_location=event_location,
        request_status=RequestStatus.PENDING,
    )
    details = _insert_lines(loan, items)
    return {"ref_no": loan.ref_no, "requester_id": requester.pk, "loan_detail_ids": [d.loan_detail_id for d in details]}


@guarded_action(Capability.MANAGE_LOANS, "loan.approved")
def approve_loan(actor, ref_no) -> dict:
    """Approve a PENDING request: every line goes ON_LOAN or nothing changes.

    Each line is checked against ``item_qty - on_loan`` with the on-loan
    aggregate re-read under the item locks, so loans approved in the interim
    are accounted for. Expendable items are consumed from the shelf.

    On SQLite the whole database is write-locked, so a concurrent approval
    that loses the race fails as a retryable conflict rather than reaching
    the stock check.
    """
    loan = _locked_loan(ref_no)
    _require_pending(loan)
    details = list(loan.details.select_for_update().order_by("loan_detail_id"))
    item_ids = sorted({d.item_id for d in details})
    locked = Item.objects.select_for_update().filter(item_id__in=item_ids).order_by("item_id")
    items = {item.item_id: item for item in locked}
    quantities = loan_quantities(item_ids)
    approved_now: dict[int, int] = {}

    for detail in details:
        item = items[detail.item_id]
        pending, on_loan = quantities[item.item_id]
        figures = derive_stock(item.item_qty, pending, on_loan + approved_now.get(item.item_id, 0))
        if not figures.can_approve(detail.loan_qty):
            raise InsufficientStockError(
                f"Insufficient stock for {item.item_desc}. "
                f"Available: {max(0, figures.approvable)}, Requested: {detail.loan_qty}"
            )
        if item.item_expendable:
            item.item_qty = int(item.item_qty) - int(detail.loan_qty)
            item.save(update_fields=["item_qty", "updated_at"])
        detail.loan_status = LoanItemStatus.ON_LOAN
        detail.save(update_fields=["loan_status", "updated_at"])
        approved_now[item.item_id] = approved_now.get(item.item_id, 0) + int(detail.loan_qty)

    previous = loan.request_status
    loan.request_status = RequestStatus.ONGOING
    loan.loggie = _handler_of(actor) or loan.loggie
    loan.save(update_fields=["request_status", "loggie", "updated_at"])
    _log_status_change(loan, previous, actor)
    return {"ref_no": loan.ref_no, "request_status": loan.request_status}


@guarded_action(Capability.MANAGE_LOANS, "loan.rejected")
def reject_loan(actor, ref_no) -> dict:
    """Reject a PENDING request and all of its lines. Stock is untouched."""
    loan = _locked_loan(ref_no)
    _require_pending(loan)
    loan.details.update(loan_status=LoanItemStatus.REJECTED, updated_at=timezone.now())
    previous = loan.request_status
    loan.request_status = RequestStatus.REJECTED
    loan.loggie = _handler_of(actor) or loan.loggie
    loan.save(update_fields=["request_status", "loggie", "updated_at"])
    _log_status_change(loan, previous, actor)
    return {"ref_no": loan.ref_no, "request_status": loan.request_status}


@guarded_action(Capability.MANAGE_LOANS, "loan.updated", clean=clean_update_input)
def update_loan(
    actor,
    ref_no,
    *,
    loan_date_start,
    loan_date_end,
    items,
    organisation=None,
    event_details=None,
    event_location=None,
) -> dict:
    """Replace a PENDING request's dates, metadata and lines wholesale."""
    loan = _locked_loan(ref_no)
    _require_pending(loan)
    loan.details.all().delete()
    details = _insert_lines(loan, items)
    loan.loan_date_start = loan_date_start
    loan.loan_date_end = loan_date_end
    loan.organisation = organisation
    loan.event_details = event_details
    loan.event_location = event_location
    loan.save(
        update_fields=[
            "loan_date_start",
            "loan_date_end",
            "organisation",
            "event_details",
            "event_location",
            "updated_at",
        ]
    )
    return {"ref_no": loan.ref_no, "loan_detail_ids": [d.loan_detail_id for d in details]}


@guarded_action(Capability.MANAGE_LOANS, "loan.deleted")
def delete_loan(actor, ref_no) -> dict:
    """Delete a PENDING request together with its lines."""
    loan = _locked_loan(ref_no)
    _require_pending(loan)
    loan.details.all().delete()
    loan.delete()
    return {"ref_no": int(ref_no)}


def is_late(loan: LoanRequest, now: dt.datetime) -> bool:
    grace = timedelta(minutes=getattr(settings, "LOAN_LATE_GRACE_MINUTES", 0))
    return now > loan.loan_date_end + grace


@guarded_action(Capability.MANAGE_LOANS, "loan.item_returned")
def return_item(actor, loan_detail_id, *, now: Optional[dt.datetime] = None) -> dict:
    """Mark an ON_LOAN line as returned, completing the request when it was the last one.

    Returning a line that is already RETURNED or RETURNED_LATE succeeds
    without changes. Shelf quantities are never restored: non-expendable
    stock was never deducted and expendable stock is consumed.
    """
    try:
        ref_no = LoanItemDetail.objects.values_list("loan_request_id", flat=True).get(loan_detail_id=loan_detail_id)
    except (LoanItemDetail.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Loan detail not found")
    loan = _locked_loan(ref_no)
    detail = LoanItemDetail.objects.select_for_update().get(loan_detail_id=loan_detail_id)

    if detail.loan_status in RETURNED_LINE_STATUSES:
        return {
            "loan_detail_id": detail.loan_detail_id,
            "loan_status": detail.loan_status,
            "request_status": loan.request_status,
            "already_returned": True,
        }
    if detail.loan_status != LoanItemStatus.ON_LOAN:
        raise LoanDetailNotReturnableError(f"Only items on loan can be returned (current status: {detail.loan_status})")

    now = now or timezone.now()
    detail.loan_status = LoanItemStatus.RETURNED_LATE if is_late(loan, now) else LoanItemStatus.RETURNED
    detail.returned_at = now
    detail.save(update_fields=["loan_status", "returned_at", "updated_at"])

    siblings = list(loan.details.values_list("loan_status", flat=True))
    if all(status in TERMINAL_LINE_STATUSES for status in siblings):
        previous = loan.request_status
        loan.request_status = RequestStatus.COMPLETED
        loan.save(update_fields=["request_status", "updated_at"])
        _log_status_change(loan, previous, actor)

    return {
        "loan_detail_id": detail.loan_detail_id,
        "loan_status": detail.loan_status,
        "request_status": loan.request_status,
        "already_returned": False,
    }
