"""Application service: manual stock adjustment and movement reversal."""

from __future__ import annotations

from ims.application.dto import MovementDTO
from ims.domain.exceptions import ValidationError
from ims.domain.service.stock_ledger_service import StockLedgerService


class AdjustStockHandler:

    def __init__(self, ledger: StockLedgerService) -> None:
        self._ledger = ledger

    def handle(
        self,
        product_id: str,
        quantity: int,
        reason: str,
        actor_id: str | None = None,
    ) -> MovementDTO:
        """Correct a product's stock by a signed quantity."""
        if not reason or not reason.strip():
            raise ValidationError("A reason is required for stock adjustments")
        movement = self._ledger.adjust_stock(
            product_id, quantity, reason.strip(), actor_id=actor_id
        )
        return MovementDTO.from_movement(movement)


class ReverseMovementHandler:

    def __init__(self, ledger: StockLedgerService) -> None:
        self._ledger = ledger

    def handle(
        self,
        movement_id: int,
        notes: str | None = None,
        actor_id: str | None = None,
    ) -> MovementDTO:
        movement = self._ledger.reverse(movement_id, actor_id=actor_id, notes=notes)
        return MovementDTO.from_movement(movement)
