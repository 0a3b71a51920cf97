"""Selectors feeding the stock ledger.

Aggregate loan quantities per item with a single grouped query and combine
them with the item's shelf count via ``derive_stock``.
"""

from typing import Iterable

from common.choices import LoanItemStatus
from django.db.models import Sum
from loans.models import LoanItemDetail

from .ledger import StockFigures, derive_stock


def loan_quantities(item_ids: Iterable[int]) -> dict[int, tuple[int, int]]:
    """Return ``{item_id: (pending, on_loan)}`` for the given items.

    Items without any pending or on-loan lines map to ``(0, 0)``.
    """

    ids = list(item_ids)
    result = {item_id: (0, 0) for item_id in ids}
    if not ids:
        return result
    rows = (
        LoanItemDetail.objects.filter(
            item_id__in=ids,
            loan_status__in=[LoanItemStatus.PENDING, LoanItemStatus.ON_LOAN],
        )
        .values("item_id", "loan_status")
        .annotate(total=Sum("loan_qty"))
        .order_by()
    )
    for row in rows:
        pending, on_loan = result[row["item_id"]]
        if row["loan_status"] == LoanItemStatus.PENDING:
            pending = int(row["total"] or 0)
        else:
            on_loan = int(row["total"] or 0)
        result[row["item_id"]] = (pending, on_loan)
    return result


def stock_for_items(items) -> dict[int, StockFigures]:
    """Return ledger figures keyed by item id for already-loaded items."""

    items = list(items)
    quantities = loan_quantities(item.item_id for item in items)
    return {item.item_id: derive_stock(item.item_qty, *quantities[item.item_id]) for item in items}


def stock_for_item(item) -> StockFigures:
    return stock_for_items([item])[item.item_id]
