"""Application service: Show Inventory use case (query)."""

from __future__ import annotations

from dataclasses import dataclass

from ims.domain.repository.product_repository import ProductRepository


@dataclass(frozen=True)
class InventoryLineDTO:
    product_id: str
    product_name: str
    stock: int
    min_stock: int
    low_stock: bool


class ShowInventoryHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(self, low_stock_only: bool = False) -> list[InventoryLineDTO]:
        products = self._product_repo.list_all()
        return [
            InventoryLineDTO(
                product_id=p.id,
                product_name=p.name,
                stock=p.stock_quantity,
                min_stock=p.min_stock,
                low_stock=p.is_low_stock,
            )
            for p in products
            if p.is_low_stock or not low_stock_only
        ]
