"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass

from ims.domain.model.stock_movement import StockMovement


@dataclass(frozen=True)
class LineSpec:
    """Input: one row of a bulk purchase or bulk sale."""

    product_id: str
    quantity: int
    unit_price: str
    unit_type: str = "PIECE"


@dataclass(frozen=True)
class MovementDTO:
    """Output: a ledger entry as displayed to the user."""

    id: int
    product_id: str
    movement_type: str
    quantity: int
    reference: str  # e.g. "SALE #12"
    previous_quantity: int
    new_quantity: int
    created_by: str
    created_at: str
    notes: str

    @staticmethod
    def from_movement(movement: StockMovement) -> MovementDTO:
        return MovementDTO(
            id=movement.id,
            product_id=movement.product_id,
            movement_type=movement.movement_type.value,
            quantity=movement.quantity,
            reference=f"{movement.reference_type.value} #{movement.reference_id}",
            previous_quantity=movement.previous_quantity,
            new_quantity=movement.new_quantity,
            created_by=movement.created_by or "",
            created_at=movement.created_at.isoformat() if movement.created_at else "",
            notes=movement.notes,
        )
