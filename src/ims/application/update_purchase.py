"""Application service: Update Purchase use case.

A quantity change is booked as a single correcting movement against the
same purchase reference, so deleting the purchase later still reverses
exactly what is in stock for it.  A purchase never drops below what has
already been returned from it.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from ims.application.record_purchase import load_product
from ims.domain.exceptions import DomainException, EntityNotFoundError, ValidationError
from ims.domain.model.stock_movement import MovementType, ReferenceType
from ims.domain.model.transactions import Purchase
from ims.domain.model.value_objects import Money, Quantity, UnitType
from ims.domain.repository.product_repository import ProductRepository
from ims.domain.repository.transaction_repositories import (
    PurchaseRepository,
    PurchaseReturnRepository,
)
from ims.domain.service.stock_ledger_service import StockLedgerService

logger = logging.getLogger(__name__)


class UpdatePurchaseHandler:

    def __init__(
        self,
        purchase_repo: PurchaseRepository,
        return_repo: PurchaseReturnRepository,
        product_repo: ProductRepository,
        ledger: StockLedgerService,
    ) -> None:
        self._purchase_repo = purchase_repo
        self._return_repo = return_repo
        self._product_repo = product_repo
        self._ledger = ledger

    def handle(
        self,
        purchase_id: int,
        quantity: int | None = None,
        unit_price: str | None = None,
        unit_type: str | None = None,
        reference_number: str | None = None,
        notes: str | None = None,
        actor_id: str | None = None,
    ) -> Purchase:
        purchase = self._purchase_repo.get_by_id(purchase_id)
        if purchase is None:
            raise EntityNotFoundError(f"Purchase #{purchase_id} not found")
        before = replace(purchase)
        product = load_product(self._product_repo, purchase.product_id)

        if quantity is not None:
            purchase.quantity = Quantity(quantity)
        if unit_type is not None:
            purchase.unit_type = UnitType.parse(unit_type)
        if unit_price is not None:
            purchase.unit_price = Money.of(unit_price)
        if reference_number is not None:
            purchase.reference_number = reference_number
        if notes is not None:
            purchase.notes = notes
        purchase.base_quantity = purchase.unit_type.to_base_units(
            purchase.quantity, product.pieces_per_box
        )

        returned = sum(
            r.quantity.value for r in self._return_repo.list_for_purchase(purchase.id)
        )
        if purchase.base_quantity < returned:
            raise ValidationError(
                f"Purchase #{purchase.id} cannot drop to {purchase.base_quantity}: "
                f"{returned} already returned"
            )

        self._purchase_repo.save(purchase)

        delta = purchase.base_quantity - before.base_quantity
        if delta == 0:
            return purchase

        try:
            self._ledger.record_movement(
                purchase.product_id,
                MovementType.ADJUSTMENT,
                delta,
                ReferenceType.PURCHASE,
                purchase.id,
                actor_id=actor_id,
                notes=(
                    f"Purchase #{purchase.id} changed from "
                    f"{before.base_quantity} to {purchase.base_quantity}"
                ),
            )
        except DomainException:
            logger.warning("Stock not adjusted; restoring purchase #%s", purchase.id)
            self._purchase_repo.save(before)
            raise

        return purchase
