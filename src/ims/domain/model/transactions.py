"""Business transactions that move stock: purchases, sales, returns.

The ledger only sees these as a reference type plus an id.  The
aggregates here are owned by the application handlers that create them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum

from ims.domain.exceptions import ValidationError
from ims.domain.model.value_objects import Money, Quantity, UnitType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Purchase:
    """Stock bought from a supplier.

    ``quantity`` is as entered; ``base_quantity`` is what reaches the
    ledger after unit conversion.
    """

    id: int | None
    supplier_id: str
    product_id: str
    quantity: Quantity
    unit_price: Money
    base_quantity: int
    unit_type: UnitType = UnitType.PIECE
    reference_number: str = ""
    notes: str = ""
    created_by: str | None = None
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def total_amount(self) -> Money:
        return self.unit_price * self.quantity.value


@dataclass
class Sale:
    id: int | None
    customer_id: str
    product_id: str
    quantity: Quantity
    unit_price: Money
    actual_quantity: int  # base units deducted from stock
    unit_type: UnitType = UnitType.PIECE
    sale_date: date | None = None
    notes: str = ""
    created_by: str | None = None
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def total_amount(self) -> Money:
        return self.unit_price * self.quantity.value


class ReturnStatus(Enum):
    WAITING = "WAITING"
    SENT = "SENT"
    CONFIRMED = "CONFIRMED"

    @staticmethod
    def parse(raw: str | ReturnStatus) -> ReturnStatus:
        if isinstance(raw, ReturnStatus):
            return raw
        try:
            return ReturnStatus(str(raw).strip().upper())
        except ValueError:
            raise ValidationError(f"Unknown return status: {raw!r}") from None


_STATUS_ORDER = [ReturnStatus.WAITING, ReturnStatus.SENT, ReturnStatus.CONFIRMED]


@dataclass
class PurchaseReturn:
    """Goods sent back to the supplier of a purchase."""

    id: int | None
    purchase_id: int
    quantity: Quantity
    reason: str = ""
    status: ReturnStatus = ReturnStatus.WAITING
    created_by: str | None = None
    updated_by: str | None = None
    created_at: datetime = field(default_factory=_utcnow)

    def advance_to(self, status: ReturnStatus, actor_id: str | None) -> None:
        """Move the return forward, WAITING -> SENT -> CONFIRMED."""
        if _STATUS_ORDER.index(status) < _STATUS_ORDER.index(self.status):
            raise ValidationError(
                f"Return #{self.id} cannot go from {self.status.value} "
                f"back to {status.value}"
            )
        self.status = status
        self.updated_by = actor_id
