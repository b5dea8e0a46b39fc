"""Application service: Add Product use case.

Opening stock is not written onto the product directly; it is booked as
an ADJUSTMENT movement so that replaying the ledger from zero always
gives the product's stock.  A product whose opening stock cannot be
booked is not kept.
"""

from __future__ import annotations

import logging

from ims.domain.exceptions import DomainException, ValidationError
from ims.domain.model.product import Product
from ims.domain.model.value_objects import Money
from ims.domain.repository.product_repository import ProductRepository
from ims.domain.service.stock_ledger_service import StockLedgerService

logger = logging.getLogger(__name__)


class AddProductHandler:

    def __init__(
        self, product_repo: ProductRepository, ledger: StockLedgerService
    ) -> None:
        self._product_repo = product_repo
        self._ledger = ledger

    def handle(
        self,
        name: str,
        price: str,
        opening_stock: int = 0,
        min_stock: int = 0,
        pieces_per_box: int = 1,
        actor_id: str | None = None,
    ) -> Product:
        """Add a new product to the catalog."""
        if not name or not name.strip():
            raise ValidationError("Product name is required")
        if opening_stock < 0:
            raise ValidationError("Opening stock cannot be negative")

        existing = self._product_repo.get_by_name(name.strip())
        if existing is not None:
            raise ValidationError(f"Product '{name}' already exists")

        # Auto-assign ID based on existing products
        all_products = self._product_repo.list_all()
        if all_products:
            next_id = str(max(int(p.id) for p in all_products) + 1)
        else:
            next_id = "1"

        product = Product(
            id=next_id,
            name=name.strip(),
            price=Money.of(price),
            min_stock=min_stock,
            pieces_per_box=pieces_per_box,
        )
        self._product_repo.save(product)

        if opening_stock:
            try:
                self._ledger.adjust_stock(
                    product.id, opening_stock, "Opening stock", actor_id=actor_id
                )
            except DomainException:
                logger.warning(
                    "Opening stock not recorded; removing product %s", product.id
                )
                self._product_repo.delete(product.id)
                raise
        return self._product_repo.get_by_id(product.id)
