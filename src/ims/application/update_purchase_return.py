"""Application services: edit a purchase return, or move its status on."""

from __future__ import annotations

import logging
from dataclasses import replace

from ims.application.create_purchase_return import check_returnable
from ims.domain.exceptions import DomainException, EntityNotFoundError
from ims.domain.model.stock_movement import MovementType, ReferenceType
from ims.domain.model.transactions import PurchaseReturn, ReturnStatus
from ims.domain.model.value_objects import Quantity
from ims.domain.repository.transaction_repositories import (
    PurchaseRepository,
    PurchaseReturnRepository,
)
from ims.domain.service.stock_ledger_service import StockLedgerService

logger = logging.getLogger(__name__)


def _load_return(
    return_repo: PurchaseReturnRepository, return_id: int
) -> PurchaseReturn:
    purchase_return = return_repo.get_by_id(return_id)
    if purchase_return is None:
        raise EntityNotFoundError(f"Purchase return #{return_id} not found")
    return purchase_return


class UpdatePurchaseReturnHandler:

    def __init__(
        self,
        return_repo: PurchaseReturnRepository,
        purchase_repo: PurchaseRepository,
        ledger: StockLedgerService,
    ) -> None:
        self._return_repo = return_repo
        self._purchase_repo = purchase_repo
        self._ledger = ledger

    def handle(
        self,
        return_id: int,
        quantity: int | None = None,
        reason: str | None = None,
        status: str | None = None,
        actor_id: str | None = None,
    ) -> PurchaseReturn:
        purchase_return = _load_return(self._return_repo, return_id)
        before = replace(purchase_return)

        purchase = self._purchase_repo.get_by_id(purchase_return.purchase_id)
        if purchase is None:
            raise EntityNotFoundError(
                f"Purchase #{purchase_return.purchase_id} not found"
            )

        if quantity is not None:
            purchase_return.quantity = Quantity(quantity)
            check_returnable(
                self._return_repo, purchase, purchase_return.quantity,
                exclude_return_id=purchase_return.id,
            )
        if reason is not None:
            purchase_return.reason = reason
        if status is not None:
            purchase_return.advance_to(ReturnStatus.parse(status), actor_id)
        purchase_return.updated_by = actor_id

        self._return_repo.save(purchase_return)

        # Returning more takes more out of stock.
        delta = before.quantity.value - purchase_return.quantity.value
        if delta == 0:
            return purchase_return

        try:
            self._ledger.record_movement(
                purchase.product_id,
                MovementType.ADJUSTMENT,
                delta,
                ReferenceType.PURCHASE_RETURN,
                purchase_return.id,
                actor_id=actor_id,
                notes=(
                    f"Return #{purchase_return.id} changed from "
                    f"{before.quantity} to {purchase_return.quantity}"
                ),
            )
        except DomainException:
            logger.warning(
                "Stock not adjusted; restoring return #%s", purchase_return.id
            )
            self._return_repo.save(before)
            raise

        return purchase_return


class UpdateReturnStatusHandler:

    def __init__(self, return_repo: PurchaseReturnRepository) -> None:
        self._return_repo = return_repo

    def handle(
        self, return_id: int, status: str, actor_id: str | None = None
    ) -> PurchaseReturn:
        """Mark a return as SENT or CONFIRMED. Stock is not touched."""
        purchase_return = _load_return(self._return_repo, return_id)
        purchase_return.advance_to(ReturnStatus.parse(status), actor_id)
        self._return_repo.save(purchase_return)
        return purchase_return
