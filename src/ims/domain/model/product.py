"""Product aggregate.

Products own the running ``stock_quantity``.  Stock is only ever changed
through the stock ledger, which bumps ``version`` on every write so that
concurrent writers can detect each other.
"""

from __future__ import annotations

from dataclasses import dataclass

from ims.domain.exceptions import ValidationError
from ims.domain.model.value_objects import Money


@dataclass
class Product:
    """A product in the catalog together with its cached stock level."""

    id: str
    name: str
    price: Money
    stock_quantity: int = 0
    min_stock: int = 0
    pieces_per_box: int = 1
    version: int = 0

    def __post_init__(self) -> None:
        if self.min_stock < 0:
            raise ValidationError("Minimum stock cannot be negative")
        if self.pieces_per_box < 1:
            raise ValidationError("Pieces per box must be at least 1")

    @property
    def is_low_stock(self) -> bool:
        return self.stock_quantity <= self.min_stock

