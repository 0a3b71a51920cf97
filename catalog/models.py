"""Catalog app models.

Defines the physical side of the logistics store: storage locations,
inventory holders (custodians) and their members, and the items they hold.
"""

from common.choices import IHType
from django.conf import settings
from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Sloc(TimeStampedModel):
    """Physical storage location. Deactivated rather than deleted."""

    sloc_id = models.SlugField(max_length=80, primary_key=True)
    sloc_name = models.CharField(max_length=120)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        ordering = ["sloc_name"]

    def __str__(self) -> str:  # pragma: no cover
        return self.sloc_name


class InventoryHolder(TimeStampedModel):
    """Individual, group or department recorded as custodian of items."""

    TYPE_INDIVIDUAL = IHType.INDIVIDUAL
    TYPE_GROUP = IHType.GROUP
    TYPE_DEPARTMENT = IHType.DEPARTMENT
    TYPE_CHOICES = IHType.choices

    ih_id = models.SlugField(max_length=80, primary_key=True)
    ih_name = models.CharField(max_length=120)
    ih_type = models.CharField(max_length=16, choices=TYPE_CHOICES, default=TYPE_INDIVIDUAL)
    is_active = models.BooleanField(default=True, db_index=True)
    members = models.ManyToManyField(settings.AUTH_USER_MODEL, through="IHMember", related_name="holder_groups")

    class Meta:
        ordering = ["ih_name"]

    def __str__(self) -> str:  # pragma: no cover
        return self.ih_name

    @property
    def primary_member(self):
        membership = next((m for m in self.memberships.all() if m.is_primary), None)
        return membership.user if membership else None


class IHMember(TimeStampedModel):
    """Membership of a user in an inventory holder; one member may be the primary POC."""

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="ih_memberships")
    ih = models.ForeignKey(InventoryHolder, on_delete=models.CASCADE, related_name="memberships")
    is_primary = models.BooleanField(default=False)

    class Meta:
        ordering = ["-is_primary", "id"]
        constraints = [
            models.UniqueConstraint(fields=["user", "ih"], name="unique_ih_membership"),
            models.UniqueConstraint(
                fields=["ih"],
                condition=models.Q(is_primary=True),
                name="unique_primary_poc_per_ih",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"IHMember<{self.ih_id}> user={self.user_id} primary={self.is_primary}"


class Item(TimeStampedModel):
    """A stocked item.

    ``item_qty`` is the shelf count. It only ever decreases when an
    expendable item is loaned out; what is out on loan for other items is
    derived from loan lines (see ``inventory.ledger``).
    """

    item_id = models.BigAutoField(primary_key=True)
    nusc_sn = models.CharField(max_length=64, null=True, blank=True, unique=True)
    item_desc = models.CharField(max_length=200)
    item_uom = models.CharField(max_length=32)
    item_qty = models.IntegerField(default=0)
    item_unloanable = models.BooleanField(default=False)
    item_expendable = models.BooleanField(default=False)
    item_sloc = models.ForeignKey(Sloc, on_delete=models.PROTECT, related_name="items")
    item_ih = models.ForeignKey(InventoryHolder, on_delete=models.PROTECT, related_name="items")
    item_remarks = models.TextField(null=True, blank=True)
    item_purchase_date = models.DateField(null=True, blank=True)
    item_rfp_number = models.CharField(max_length=64, null=True, blank=True)
    item_image = models.CharField(max_length=500, null=True, blank=True)

    class Meta:
        ordering = ["-item_id"]
        constraints = [
            models.CheckConstraint(name="item_qty_non_negative", condition=models.Q(item_qty__gte=0)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Item#{self.item_id} {self.item_desc} qty={self.item_qty}"
