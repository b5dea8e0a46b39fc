"""Compensation helpers shared by the transaction handlers.

A handler that has already written some movements and then fails must
put stock back where it was before re-raising.  Movements are never
deleted, so "putting back" always means appending more movements.
"""

from __future__ import annotations

import logging

from ims.domain.exceptions import DomainException
from ims.domain.model.stock_movement import MovementType, StockMovement
from ims.domain.service.stock_ledger_service import StockLedgerService

logger = logging.getLogger(__name__)


def undo_movements(
    ledger: StockLedgerService,
    movements: list[StockMovement],
    actor_id: str | None,
) -> None:
    """Reverse movements written earlier in a failed operation."""
    for movement in reversed(movements):
        try:
            ledger.reverse(
                movement.id,
                actor_id=actor_id,
                notes=f"Rollback of movement #{movement.id}",
            )
        except DomainException:
            logger.exception("Could not roll back movement #%s", movement.id)
            raise


def undo_reversals(
    ledger: StockLedgerService,
    reversals: list[StockMovement],
    originals: list[StockMovement],
    actor_id: str | None,
) -> None:
    """Re-apply originals whose reversal was written by a failed operation."""
    reversed_ids = {r.reverses_movement_id for r in reversals}
    for original in originals:
        if original.id not in reversed_ids:
            continue
        try:
            ledger.record_movement(
                original.product_id,
                MovementType.ADJUSTMENT,
                original.quantity,
                original.reference_type,
                original.reference_id,
                actor_id=actor_id,
                notes=f"Restored movement #{original.id} after failed deletion",
            )
        except DomainException:
            logger.exception("Could not restore movement #%s", original.id)
            raise
