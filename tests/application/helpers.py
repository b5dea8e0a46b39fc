"""Shared wiring for the application tests."""

from __future__ import annotations

from dataclasses import dataclass

from ims.domain.model.product import Product
from ims.domain.model.value_objects import Money
from ims.domain.service.stock_ledger_service import StockLedgerService
from tests.fakes import (
    FakeMovementLog,
    FakeProductRepository,
    FakePurchaseRepository,
    FakePurchaseReturnRepository,
    FakeSaleRepository,
)


@dataclass
class World:
    products: FakeProductRepository
    movements: FakeMovementLog
    purchases: FakePurchaseRepository
    sales: FakeSaleRepository
    returns: FakePurchaseReturnRepository
    ledger: StockLedgerService

    def stock(self, product_id: str) -> int:
        return self.products.get_by_id(product_id).stock_quantity


def make_world(movements: FakeMovementLog | None = None, **ledger_kwargs) -> World:
    products = FakeProductRepository(
        [
            Product(id="1", name="Widget", price=Money.of("15.00"), stock_quantity=50),
            Product(
                id="2", name="Gadget", price=Money.of("24.00"),
                stock_quantity=0, pieces_per_box=12,
            ),
        ]
    )
    if movements is None:
        movements = FakeMovementLog()
    return World(
        products=products,
        movements=movements,
        purchases=FakePurchaseRepository(),
        sales=FakeSaleRepository(),
        returns=FakePurchaseReturnRepository(),
        ledger=StockLedgerService(products, movements, **ledger_kwargs),
    )
