"""Application service: Bulk Purchase use case.

Several products bought from one supplier under one reference number.
Each line becomes its own purchase and its own PURCHASE movement.  If any
line fails, every movement already written is reversed and every row of
the batch is removed.
"""

from __future__ import annotations

import logging

from ims.application.dto import LineSpec
from ims.application.ledger_rollback import undo_movements
from ims.application.record_purchase import load_product, new_purchase
from ims.domain.exceptions import DomainException, ValidationError
from ims.domain.model.stock_movement import MovementType, ReferenceType
from ims.domain.model.transactions import Purchase
from ims.domain.repository.product_repository import ProductRepository
from ims.domain.repository.transaction_repositories import PurchaseRepository
from ims.domain.service.stock_ledger_service import StockLedgerService

logger = logging.getLogger(__name__)


class BulkPurchaseHandler:

    def __init__(
        self,
        purchase_repo: PurchaseRepository,
        product_repo: ProductRepository,
        ledger: StockLedgerService,
    ) -> None:
        self._purchase_repo = purchase_repo
        self._product_repo = product_repo
        self._ledger = ledger

    def handle(
        self,
        supplier_id: str,
        lines: list[LineSpec],
        reference_number: str = "",
        notes: str = "",
        actor_id: str | None = None,
    ) -> list[Purchase]:
        if not lines:
            raise ValidationError("Add at least one product")

        # Build every row before writing anything.
        purchases = [
            new_purchase(
                load_product(self._product_repo, line.product_id),
                supplier_id,
                line.quantity,
                line.unit_price,
                line.unit_type,
                reference_number,
                notes,
                actor_id,
            )
            for line in lines
        ]
        saved = []
        recorded = []
        try:
            for purchase in purchases:
                self._purchase_repo.save(purchase)
                saved.append(purchase)
            for purchase in purchases:
                recorded.append(
                    self._ledger.record_movement(
                        purchase.product_id,
                        MovementType.PURCHASE,
                        purchase.base_quantity,
                        ReferenceType.PURCHASE,
                        purchase.id,
                        actor_id=actor_id,
                        notes=notes,
                    )
                )
        except DomainException:
            logger.warning(
                "Bulk purchase failed after %d of %d lines; rolling back",
                len(recorded),
                len(purchases),
            )
            undo_movements(self._ledger, recorded, actor_id)
            for purchase in saved:
                self._purchase_repo.delete(purchase.id)
            raise

        return purchases
