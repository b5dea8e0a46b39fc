"""Application service: Record Purchase use case.

The purchase row is saved first and its stock movement recorded second.
If the ledger refuses the movement the row is removed again, so a
purchase never exists without its stock effect.
"""

from __future__ import annotations

import logging

from ims.domain.exceptions import DomainException, EntityNotFoundError, ValidationError
from ims.domain.model.product import Product
from ims.domain.model.stock_movement import MovementType, ReferenceType
from ims.domain.model.transactions import Purchase
from ims.domain.model.value_objects import Money, Quantity, UnitType
from ims.domain.repository.product_repository import ProductRepository
from ims.domain.repository.transaction_repositories import PurchaseRepository
from ims.domain.service.stock_ledger_service import StockLedgerService

logger = logging.getLogger(__name__)


def load_product(product_repo: ProductRepository, product_id: str) -> Product:
    product = product_repo.get_by_id(product_id)
    if product is None:
        raise EntityNotFoundError(f"Product not found: '{product_id}'")
    return product


def new_purchase(
    product: Product,
    supplier_id: str,
    quantity: int,
    unit_price: str,
    unit_type: str,
    reference_number: str,
    notes: str,
    actor_id: str | None,
) -> Purchase:
    """Build an unsaved purchase, converting the quantity to base units."""
    if not supplier_id or not str(supplier_id).strip():
        raise ValidationError("Supplier is required")
    qty = Quantity(quantity)
    unit = UnitType.parse(unit_type)
    return Purchase(
        id=None,
        supplier_id=str(supplier_id).strip(),
        product_id=product.id,
        quantity=qty,
        unit_price=Money.of(unit_price),
        base_quantity=unit.to_base_units(qty, product.pieces_per_box),
        unit_type=unit,
        reference_number=reference_number,
        notes=notes,
        created_by=actor_id,
    )


class RecordPurchaseHandler:

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
        product_id: str,
        quantity: int,
        unit_price: str,
        reference_number: str = "",
        unit_type: str = "PIECE",
        notes: str = "",
        actor_id: str | None = None,
    ) -> Purchase:
        product = load_product(self._product_repo, product_id)
        purchase = new_purchase(
            product, supplier_id, quantity, unit_price,
            unit_type, reference_number, notes, actor_id,
        )
        self._purchase_repo.save(purchase)

        try:
            self._ledger.record_movement(
                product.id,
                MovementType.PURCHASE,
                purchase.base_quantity,
                ReferenceType.PURCHASE,
                purchase.id,
                actor_id=actor_id,
                notes=notes,
            )
        except DomainException:
            logger.warning("Stock not recorded; removing purchase #%s", purchase.id)
            self._purchase_repo.delete(purchase.id)
            raise

        return purchase
