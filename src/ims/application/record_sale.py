"""Application service: Record Sale use case."""

from __future__ import annotations

import logging
from datetime import date

from ims.application.record_purchase import load_product
from ims.domain.exceptions import (
    DomainException,
    InsufficientStockError,
    ValidationError,
)
from ims.domain.model.product import Product
from ims.domain.model.stock_movement import MovementType, ReferenceType, StockMovement
from ims.domain.model.transactions import Sale
from ims.domain.model.value_objects import Money, Quantity, UnitType
from ims.domain.repository.product_repository import ProductRepository
from ims.domain.repository.transaction_repositories import SaleRepository
from ims.domain.service.stock_ledger_service import StockLedgerService

logger = logging.getLogger(__name__)


def new_sale(
    product: Product,
    customer_id: str,
    quantity: int,
    unit_price: str,
    unit_type: str,
    sale_date: date | None,
    notes: str,
    actor_id: str | None,
) -> Sale:
    """Build an unsaved sale; ``actual_quantity`` is in base units."""
    if not customer_id or not str(customer_id).strip():
        raise ValidationError("Customer is required")
    qty = Quantity(quantity)
    unit = UnitType.parse(unit_type)
    return Sale(
        id=None,
        customer_id=str(customer_id).strip(),
        product_id=product.id,
        quantity=qty,
        unit_price=Money.of(unit_price),
        actual_quantity=unit.to_base_units(qty, product.pieces_per_box),
        unit_type=unit,
        sale_date=sale_date,
        notes=notes,
        created_by=actor_id,
    )


def record_sale_movement(
    ledger: StockLedgerService, sale: Sale, actor_id: str | None
) -> StockMovement:
    return ledger.record_movement(
        sale.product_id,
        MovementType.SALE,
        -sale.actual_quantity,
        ReferenceType.SALE,
        sale.id,
        actor_id=actor_id,
        notes=f"Sale to customer {sale.customer_id}",
    )


class RecordSaleHandler:

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
        product_id: str,
        quantity: int,
        unit_price: str,
        unit_type: str = "PIECE",
        sale_date: date | None = None,
        notes: str = "",
        actor_id: str | None = None,
    ) -> Sale:
        product = load_product(self._product_repo, product_id)
        sale = new_sale(
            product, customer_id, quantity, unit_price,
            unit_type, sale_date, notes, actor_id,
        )

        if not self._ledger.allow_negative_stock:
            available, current = self._ledger.check_availability(
                product.id, sale.actual_quantity
            )
            if not available:
                raise InsufficientStockError(
                    f"Insufficient stock. Current stock: {current}"
                )

        self._sale_repo.save(sale)

        try:
            record_sale_movement(self._ledger, sale, actor_id)
        except DomainException:
            logger.warning("Stock not recorded; removing sale #%s", sale.id)
            self._sale_repo.delete(sale.id)
            raise

        return sale
