"""Loan request models.

A ``LoanRequest`` owns one ``LoanItemDetail`` per requested item. Status
changes on both are driven exclusively by ``loans.services``.
"""

from common.choices import LoanItemStatus, RequestStatus
from django.conf import settings
from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class LoanRequest(TimeStampedModel):
    """A request to borrow one or more items over a date range."""

    STATUS_PENDING = RequestStatus.PENDING
    STATUS_ONGOING = RequestStatus.ONGOING
    STATUS_REJECTED = RequestStatus.REJECTED
    STATUS_COMPLETED = RequestStatus.COMPLETED
    STATUS_CHOICES = RequestStatus.choices

    ref_no = models.BigAutoField(primary_key=True)
    loan_date_start = models.DateTimeField()
    loan_date_end = models.DateTimeField()
    requester = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="loan_requests")
    loggie = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="handled_loans",
        help_text="Logistics member who approved or rejected the request",
    )
    organisation = models.CharField(max_length=200, null=True, blank=True)
    event_details = models.TextField(null=True, blank=True)
    event_location = models.CharField(max_length=200, null=True, blank=True)
    request_status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)

    class Meta:
        ordering = ["-ref_no"]
        constraints = [
            models.CheckConstraint(
                name="loan_dates_ordered",
                condition=models.Q(loan_date_end__gte=models.F("loan_date_start")),
            ),
        ]
        indexes = [
            models.Index(fields=["requester", "request_status"], name="loan_requester_status_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"LoanRequest#{self.ref_no} requester={self.requester_id} status={self.request_status}"


class LoanItemDetail(TimeStampedModel):
    """One requested item within a loan request."""

    STATUS_PENDING = LoanItemStatus.PENDING
    STATUS_ON_LOAN = LoanItemStatus.ON_LOAN
    STATUS_RETURNED = LoanItemStatus.RETURNED
    STATUS_RETURNED_LATE = LoanItemStatus.RETURNED_LATE
    STATUS_REJECTED = LoanItemStatus.REJECTED
    STATUS_CHOICES = LoanItemStatus.choices

    loan_detail_id = models.BigAutoField(primary_key=True)
    loan_request = models.ForeignKey(LoanRequest, on_delete=models.CASCADE, related_name="details")
    item = models.ForeignKey("catalog.Item", on_delete=models.PROTECT, related_name="loan_details")
    loan_qty = models.PositiveIntegerField()
    loan_status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING)
    # Where the item lived when it was requested
    item_sloc_at_loan = models.CharField(max_length=80, blank=True)
    item_ih_at_loan = models.CharField(max_length=80, blank=True)
    returned_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["loan_detail_id"]
        constraints = [
            models.CheckConstraint(name="loan_qty_positive", condition=models.Q(loan_qty__gte=1)),
        ]
        indexes = [
            models.Index(fields=["item", "loan_status"], name="loan_detail_item_status_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"LoanItemDetail#{self.loan_detail_id} item={self.item_id} qty={self.loan_qty} status={self.loan_status}"
