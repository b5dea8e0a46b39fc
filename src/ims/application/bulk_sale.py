"""Application service: Bulk Sale use case.

Lines may be entered in boxes or pieces; each is converted to pieces
before it reaches the ledger.  There is no availability pre-check here:
whether stock may go negative is left to the ledger's policy.
"""

from __future__ import annotations

import logging
from datetime import date

from ims.application.dto import LineSpec
from ims.application.ledger_rollback import undo_movements
from ims.application.record_purchase import load_product
from ims.application.record_sale import new_sale, record_sale_movement
from ims.domain.exceptions import DomainException, ValidationError
from ims.domain.model.transactions import Sale
from ims.domain.repository.product_repository import ProductRepository
from ims.domain.repository.transaction_repositories import SaleRepository
from ims.domain.service.stock_ledger_service import StockLedgerService

logger = logging.getLogger(__name__)


class BulkSaleHandler:

    def __init__(
        self,
        sale_repo: SaleRepository,
        product_repo: ProductRepository,
        ledger: StockLedgerService,
    ) -> None:
        self._sale_repo = sale_repo
        self._product_repo = product_repo
        self._ledger = ledger

    def handle(
        self,
        customer_id: str,
        lines: list[LineSpec],
        sale_date: date | None = None,
        notes: str = "",
        actor_id: str | None = None,
    ) -> list[Sale]:
        if not lines:
            raise ValidationError("Add at least one product")

        sales = [
            new_sale(
                load_product(self._product_repo, line.product_id),
                customer_id,
                line.quantity,
                line.unit_price,
                line.unit_type,
                sale_date,
                notes,
                actor_id,
            )
            for line in lines
        ]
        saved = []
        recorded = []
        try:
            for sale in sales:
                self._sale_repo.save(sale)
                saved.append(sale)
            for sale in sales:
                recorded.append(record_sale_movement(self._ledger, sale, actor_id))
        except DomainException:
            logger.warning(
                "Bulk sale failed after %d of %d lines; rolling back",
                len(recorded),
                len(sales),
            )
            undo_movements(self._ledger, recorded, actor_id)
            for sale in saved:
                self._sale_repo.delete(sale.id)
            raise

        return sales
