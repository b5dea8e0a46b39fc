"""StockMovement: one signed, auditable change to a product's stock.

Movements are append-only.  A movement is never edited or deleted; the
effect of a movement is undone by appending a compensating movement that
points back at it through ``reverses_movement_id``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from ims.domain.exceptions import ValidationError


class MovementType(Enum):
    PURCHASE = "PURCHASE"
    SALE = "SALE"
    RETURN = "RETURN"
    ADJUSTMENT = "ADJUSTMENT"


class ReferenceType(Enum):
    """The kind of business transaction a movement originated from."""

    PURCHASE = "PURCHASE"
    SALE = "SALE"
    PURCHASE_RETURN = "PURCHASE_RETURN"
    ADJUSTMENT = "ADJUSTMENT"
    PURCHASE_DELETION = "PURCHASE_DELETION"
    SALE_DELETION = "SALE_DELETION"
    REVERSAL = "REVERSAL"

    @property
    def reversal_type(self) -> ReferenceType:
        """Reference type used when undoing a movement of this type."""
        return _REVERSAL_TYPES.get(self, ReferenceType.REVERSAL)


_REVERSAL_TYPES = {
    ReferenceType.PURCHASE: ReferenceType.PURCHASE_DELETION,
    ReferenceType.SALE: ReferenceType.SALE_DELETION,
}


def parse_movement_type(raw: str | MovementType) -> MovementType:
    if isinstance(raw, MovementType):
        return raw
    try:
        return MovementType(str(raw).strip().upper())
    except ValueError:
        raise ValidationError(f"Unknown movement type: {raw!r}") from None


def parse_reference_type(raw: str | ReferenceType) -> ReferenceType:
    if isinstance(raw, ReferenceType):
        return raw
    try:
        return ReferenceType(str(raw).strip().upper())
    except ValueError:
        raise ValidationError(f"Unknown reference type: {raw!r}") from None


def validate_delta(quantity: object) -> int:
    """Return *quantity* if it is a usable ledger delta."""
    # bool is an int subclass
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError(
            f"Movement quantity must be an integer, got {type(quantity).__name__}"
        )
    if quantity == 0:
        raise ValidationError("Movement quantity cannot be zero")
    return quantity


@dataclass(frozen=True)
class StockMovement:
    """A ledger entry.

    ``id`` and ``created_at`` are ``None`` until the movement log assigns
    them on append.

    Invariant: ``new_quantity == previous_quantity + quantity``.
    """

    product_id: str
    movement_type: MovementType
    quantity: int
    reference_type: ReferenceType
    reference_id: str
    previous_quantity: int
    new_quantity: int
    created_by: str | None = None
    notes: str = ""
    reverses_movement_id: int | None = None
    id: int | None = None
    created_at: datetime | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        validate_delta(self.quantity)
        if self.new_quantity != self.previous_quantity + self.quantity:
            raise ValidationError(
                f"Inconsistent movement: {self.previous_quantity} "
                f"{self.quantity:+d} != {self.new_quantity}"
            )

    @property
    def is_reversal(self) -> bool:
        return self.reverses_movement_id is not None

    def stamped(self, movement_id: int, created_at: datetime) -> StockMovement:
        """Copy carrying the identity assigned by the movement log."""
        return replace(self, id=movement_id, created_at=created_at)
