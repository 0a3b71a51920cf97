"""Selectors for the loans domain.

Read-only query helpers used by the API and management commands. Nothing
here locks rows or writes.
"""

from collections import Counter
from typing import Optional

from common.choices import LoanItemStatus
from django.db.models import Prefetch, Q, QuerySet
from django.utils import timezone

from .models import LoanItemDetail, LoanRequest


def list_loans(
    *,
    status: Optional[str] = None,
    requester_id: Optional[int] = None,
    search: Optional[str] = None,
) -> QuerySet[LoanRequest]:
    """Return loan requests newest first with requester and lines prefetched.

    ``search`` matches the reference number exactly when numeric, otherwise
    the requester's name, NUSNET id or Telegram handle, the organisation or
    the event details.
    """

    qs = LoanRequest.objects.select_related("requester", "loggie").prefetch_related(
        Prefetch("details", queryset=LoanItemDetail.objects.select_related("item").order_by("loan_detail_id"))
    )
    if status:
        qs = qs.filter(request_status=status)
    if requester_id:
        qs = qs.filter(requester_id=requester_id)
    if search:
        term = search.strip()
        cond = (
            Q(requester__first_name__icontains=term)
            | Q(requester__last_name__icontains=term)
            | Q(requester__nusnet_id__icontains=term)
            | Q(requester__telegram_handle__icontains=term.lstrip("@"))
            | Q(organisation__icontains=term)
            | Q(event_details__icontains=term)
        )
        if term.isdigit():
            cond |= Q(ref_no=int(term))
        qs = qs.filter(cond)
    return qs.order_by("-ref_no")


def get_loan(ref_no) -> Optional[LoanRequest]:
    try:
        return list_loans().get(ref_no=int(ref_no))
    except (LoanRequest.DoesNotExist, ValueError, TypeError):
        return None


def loan_summary(loan: LoanRequest) -> dict:
    """Count lines per status and the quantity still out on loan."""

    details = list(loan.details.all())
    counts = Counter(d.loan_status for d in details)
    return {
        "lines": len(details),
        "by_status": {status: counts.get(status, 0) for status in LoanItemStatus.values},
        "outstanding_qty": sum(d.loan_qty for d in details if d.loan_status == LoanItemStatus.ON_LOAN),
    }


def overdue_lines(now=None) -> QuerySet[LoanItemDetail]:
    """ON_LOAN lines whose request end date has passed, oldest due first."""

    now = now or timezone.now()
    return (
        LoanItemDetail.objects.select_related("loan_request", "loan_request__requester", "item")
        .filter(loan_status=LoanItemStatus.ON_LOAN, loan_request__loan_date_end__lt=now)
        .order_by("loan_request__loan_date_end", "loan_detail_id")
    )
