"""Application service: Delete Sale use case.

Deleting a sale puts its quantity back into stock by reversing every
movement the sale produced.
"""

from __future__ import annotations

import logging

from ims.application.ledger_rollback import undo_reversals
from ims.domain.exceptions import DomainException, EntityNotFoundError
from ims.domain.model.stock_movement import ReferenceType
from ims.domain.repository.transaction_repositories import SaleRepository
from ims.domain.service.stock_ledger_service import StockLedgerService

logger = logging.getLogger(__name__)


class DeleteSaleHandler:

    def __init__(self, sale_repo: SaleRepository, ledger: StockLedgerService) -> None:
        self._sale_repo = sale_repo
        self._ledger = ledger

    def handle(self, sale_id: int, actor_id: str | None = None) -> None:
        sale = self._sale_repo.get_by_id(sale_id)
        if sale is None:
            raise EntityNotFoundError(f"Sale #{sale_id} not found")

        self._sale_repo.delete(sale_id)

        originals = self._ledger.live_movements(ReferenceType.SALE, sale_id)
        reversals = []
        try:
            for movement in originals:
                reversals.append(
                    self._ledger.reverse(
                        movement.id,
                        actor_id=actor_id,
                        notes=f"Reversal of deleted sale {sale_id}",
                    )
                )
        except DomainException:
            logger.warning("Stock not restored; restoring sale #%s", sale_id)
            undo_reversals(self._ledger, reversals, originals, actor_id)
            self._sale_repo.save(sale)
            raise
