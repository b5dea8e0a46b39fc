"""Application service: Delete Purchase use case."""

from __future__ import annotations

import logging

from ims.application.ledger_rollback import undo_reversals
from ims.domain.exceptions import DomainException, EntityNotFoundError, ValidationError
from ims.domain.model.stock_movement import ReferenceType
from ims.domain.repository.transaction_repositories import (
    PurchaseRepository,
    PurchaseReturnRepository,
)
from ims.domain.service.stock_ledger_service import StockLedgerService

logger = logging.getLogger(__name__)


class DeletePurchaseHandler:

    def __init__(
        self,
        purchase_repo: PurchaseRepository,
        return_repo: PurchaseReturnRepository,
        ledger: StockLedgerService,
    ) -> None:
        self._purchase_repo = purchase_repo
        self._return_repo = return_repo
        self._ledger = ledger

    def handle(self, purchase_id: int, actor_id: str | None = None) -> None:
        """Delete a purchase and take its quantity back out of stock."""
        purchase = self._purchase_repo.get_by_id(purchase_id)
        if purchase is None:
            raise EntityNotFoundError(f"Purchase #{purchase_id} not found")
        if self._return_repo.list_for_purchase(purchase_id):
            raise ValidationError(
                f"Purchase #{purchase_id} has returns recorded against it"
            )

        self._purchase_repo.delete(purchase_id)

        originals = self._ledger.live_movements(ReferenceType.PURCHASE, purchase_id)
        reversals = []
        try:
            for movement in originals:
                reversals.append(
                    self._ledger.reverse(
                        movement.id,
                        actor_id=actor_id,
                        notes=f"Reversal of deleted purchase {purchase_id}",
                    )
                )
        except DomainException:
            logger.warning("Stock not reversed; restoring purchase #%s", purchase_id)
            undo_reversals(self._ledger, reversals, originals, actor_id)
            self._purchase_repo.save(purchase)
            raise
