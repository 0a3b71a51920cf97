"""Shared enumerations and choices used across apps."""

from django.db import models


class UserRole(models.TextChoices):
    """Roles in ascending order of privilege."""

    REQUESTER = "REQUESTER", "Requester"
    IH = "IH", "Inventory Holder"
    LOGS = "LOGS", "Logistics"
    ADMIN = "ADMIN", "Admin"


class IHType(models.TextChoices):
    INDIVIDUAL = "INDIVIDUAL", "Individual"
    GROUP = "GROUP", "Group"
    DEPARTMENT = "DEPARTMENT", "Department"


class RequestStatus(models.TextChoices):
    """Lifecycle statuses for loan requests."""

    PENDING = "PENDING", "Pending"
    ONGOING = "ONGOING", "Ongoing"
    REJECTED = "REJECTED", "Rejected"
    COMPLETED = "COMPLETED", "Completed"


class LoanItemStatus(models.TextChoices):
    """Lifecycle statuses for individual loan lines."""

    PENDING = "PENDING", "Pending"
    ON_LOAN = "ON_LOAN", "On loan"
    RETURNED = "RETURNED", "Returned"
    RETURNED_LATE = "RETURNED_LATE", "Returned late"
    REJECTED = "REJECTED", "Rejected"


# Line statuses that no longer change.
TERMINAL_LINE_STATUSES = frozenset(
    {LoanItemStatus.RETURNED, LoanItemStatus.RETURNED_LATE, LoanItemStatus.REJECTED}
)
RETURNED_LINE_STATUSES = frozenset({LoanItemStatus.RETURNED, LoanItemStatus.RETURNED_LATE})
