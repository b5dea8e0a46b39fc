"""Application service: Update Sale use case."""

from __future__ import annotations

import logging
from dataclasses import replace

from ims.application.record_purchase import load_product
from ims.domain.exceptions import DomainException, EntityNotFoundError
from ims.domain.model.stock_movement import MovementType, ReferenceType
from ims.domain.model.transactions import Sale
from ims.domain.model.value_objects import Money, Quantity, UnitType
from ims.domain.repository.product_repository import ProductRepository
from ims.domain.repository.transaction_repositories import SaleRepository
from ims.domain.service.stock_ledger_service import StockLedgerService

logger = logging.getLogger(__name__)


class UpdateSaleHandler:

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
        sale_id: int,
        quantity: int | None = None,
        unit_price: str | None = None,
        unit_type: str | None = None,
        notes: str | None = None,
        actor_id: str | None = None,
    ) -> Sale:
        """Change a sale; a quantity change moves stock by the difference."""
        sale = self._sale_repo.get_by_id(sale_id)
        if sale is None:
            raise EntityNotFoundError(f"Sale #{sale_id} not found")
        before = replace(sale)
        product = load_product(self._product_repo, sale.product_id)

        if quantity is not None:
            sale.quantity = Quantity(quantity)
        if unit_type is not None:
            sale.unit_type = UnitType.parse(unit_type)
        if unit_price is not None:
            sale.unit_price = Money.of(unit_price)
        if notes is not None:
            sale.notes = notes
        sale.actual_quantity = sale.unit_type.to_base_units(
            sale.quantity, product.pieces_per_box
        )

        self._sale_repo.save(sale)

        # More sold means less in stock.
        delta = before.actual_quantity - sale.actual_quantity
        if delta == 0:
            return sale

        try:
            self._ledger.record_movement(
                sale.product_id,
                MovementType.ADJUSTMENT,
                delta,
                ReferenceType.SALE,
                sale.id,
                actor_id=actor_id,
                notes=(
                    f"Sale #{sale.id} changed from "
                    f"{before.actual_quantity} to {sale.actual_quantity}"
                ),
            )
        except DomainException:
            logger.warning("Stock not adjusted; restoring sale #%s", sale.id)
            self._sale_repo.save(before)
            raise

        return sale
