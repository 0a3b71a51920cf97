"""Stock ledger: derived availability for items.

Nothing here is stored. Figures are recomputed from the item's shelf count
and the loan lines that reference it every time they are read, so catalogue
views and the approval check always agree.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class StockFigures:
    """Availability figures for one item.

    - item_qty: physical count on the shelf (stored on the item).
    - pending: quantity requested by loans awaiting approval.
    - on_loan: quantity of approved loans not yet returned.
    - total_qty: physical assets including what is out (item_qty + on_loan).
    - net_qty: what can still be promised to new requests, never negative.
    - approvable: ceiling an approval is checked against (item_qty - on_loan).
    """

    item_qty: int
    pending: int
    on_loan: int

    @property
    def total_qty(self) -> int:
        return self.item_qty + self.on_loan

    @property
    def net_qty(self) -> int:
        return max(0, self.item_qty - self.pending)

    @property
    def approvable(self) -> int:
        return self.item_qty - self.on_loan

    def can_approve(self, quantity: int) -> bool:
        return quantity <= self.approvable

    def as_dict(self) -> dict:
        return {
            "item_qty": self.item_qty,
            "pending": self.pending,
            "on_loan": self.on_loan,
            "total_qty": self.total_qty,
            "net_qty": self.net_qty,
        }


def derive_stock(item_qty: int, pending: int = 0, on_loan: int = 0) -> StockFigures:
    return StockFigures(item_qty=int(item_qty), pending=int(pending or 0), on_loan=int(on_loan or 0))
