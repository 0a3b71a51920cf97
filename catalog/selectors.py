"""Selectors for the catalog domain.

Expose read-only query helpers to keep views thin and allow reuse across
APIs and commands. Selectors return querysets or lightweight data
structures and avoid side effects.
"""

from typing import Optional

from django.db.models import Prefetch, Q, QuerySet
from inventory.selectors import stock_for_items

from .models import IHMember, Item

SORT_FIELDS = {
    "name": "item_desc",
    "quantity": "item_qty",
    "id": "item_id",
}


def list_items(
    *,
    search: Optional[str] = None,
    sloc_id: Optional[str] = None,
    ih_id: Optional[str] = None,
    sort: Optional[str] = None,
    asc: bool = False,
) -> QuerySet[Item]:
    """Return catalogue items with location, holder and primary POC prefetched.

    ``search`` matches description, remarks, location name and holder name,
    plus an exact item id when the term is a plain number. ``sort`` is one of
    ``name``, ``quantity`` or ``id``; anything else falls back to newest first.
    """

    qs = Item.objects.select_related("item_sloc", "item_ih").prefetch_related(
        Prefetch(
            "item_ih__memberships",
            queryset=IHMember.objects.filter(is_primary=True).select_related("user"),
        )
    )
    if search:
        term = search.strip()
        cond = (
            Q(item_desc__icontains=term)
            | Q(item_remarks__icontains=term)
            | Q(item_sloc__sloc_name__icontains=term)
            | Q(item_ih__ih_name__icontains=term)
        )
        if term.isdigit():
            cond |= Q(item_id=int(term))
        qs = qs.filter(cond)
    if sloc_id:
        qs = qs.filter(item_sloc_id=sloc_id)
    if ih_id:
        qs = qs.filter(item_ih_id=ih_id)

    field = SORT_FIELDS.get(sort or "")
    if field is None:
        return qs.order_by("-item_id")
    ordering = field if asc else f"-{field}"
    return qs.order_by(ordering, "item_id")


def get_item(item_id) -> Optional[Item]:
    try:
        return list_items().get(item_id=int(item_id))
    except (Item.DoesNotExist, ValueError, TypeError):
        return None


def catalogue_rows(items) -> list[dict]:
    """Pair each item with its stock figures and the holder's primary POC."""

    items = list(items)
    stock = stock_for_items(items)
    rows = []
    for item in items:
        poc = item.item_ih.primary_member
        rows.append({"item": item, "stock": stock[item.item_id], "primary_poc": poc})
    return rows

