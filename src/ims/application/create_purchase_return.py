"""Application service: Create Purchase Return use case.

Goods sent back to a supplier leave stock immediately, whatever the
shipping status of the return.
"""

from __future__ import annotations

import logging

from ims.domain.exceptions import DomainException, EntityNotFoundError, ValidationError
from ims.domain.model.stock_movement import MovementType, ReferenceType
from ims.domain.model.transactions import Purchase, PurchaseReturn, ReturnStatus
from ims.domain.model.value_objects import Quantity
from ims.domain.repository.transaction_repositories import (
    PurchaseRepository,
    PurchaseReturnRepository,
)
from ims.domain.service.stock_ledger_service import StockLedgerService

logger = logging.getLogger(__name__)


def check_returnable(
    return_repo: PurchaseReturnRepository,
    purchase: Purchase,
    quantity: Quantity,
    exclude_return_id: int | None = None,
) -> None:
    """Reject a return that would send back more than was bought."""
    already = sum(
        r.quantity.value
        for r in return_repo.list_for_purchase(purchase.id)
        if r.id != exclude_return_id
    )
    if already + quantity.value > purchase.base_quantity:
        raise ValidationError(
            f"Cannot return {quantity} of purchase #{purchase.id} "
            f"({purchase.base_quantity} bought, {already} already returned)"
        )


class CreatePurchaseReturnHandler:

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
        purchase_id: int,
        quantity: int,
        reason: str = "",
        status: str = "WAITING",
        actor_id: str | None = None,
    ) -> PurchaseReturn:
        purchase = self._purchase_repo.get_by_id(purchase_id)
        if purchase is None:
            raise EntityNotFoundError(f"Purchase #{purchase_id} not found")

        qty = Quantity(quantity)
        check_returnable(self._return_repo, purchase, qty)

        purchase_return = PurchaseReturn(
            id=None,
            purchase_id=purchase.id,
            quantity=qty,
            reason=reason,
            status=ReturnStatus.parse(status),
            created_by=actor_id,
        )
        self._return_repo.save(purchase_return)

        try:
            self._ledger.record_movement(
                purchase.product_id,
                MovementType.RETURN,
                -qty.value,
                ReferenceType.PURCHASE_RETURN,
                purchase_return.id,
                actor_id=actor_id,
                notes=reason,
            )
        except DomainException:
            logger.warning(
                "Stock not recorded; removing return #%s", purchase_return.id
            )
            self._return_repo.delete(purchase_return.id)
            raise

        return purchase_return
