"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.  Services are built
once per process and handed to whoever needs them.
"""

from __future__ import annotations

from dataclasses import dataclass

from ims.domain.service.stock_ledger_service import StockLedgerService
from ims.infrastructure.config import Settings
from ims.infrastructure.persistence.json_movement_log import JsonMovementLog
from ims.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)
from ims.infrastructure.persistence.json_transaction_repositories import (
    JsonPurchaseRepository,
    JsonPurchaseReturnRepository,
    JsonSaleRepository,
)


@dataclass
class Services:
    products: JsonProductRepository
    movements: JsonMovementLog
    purchases: JsonPurchaseRepository
    sales: JsonSaleRepository
    returns: JsonPurchaseReturnRepository
    ledger: StockLedgerService


def build_services(settings: Settings) -> Services:
    data_dir = settings.data_dir
    products = JsonProductRepository(data_dir / "products.json")
    movements = JsonMovementLog(data_dir / "stock_movements.json")
    return Services(
        products=products,
        movements=movements,
        purchases=JsonPurchaseRepository(data_dir / "purchases.json"),
        sales=JsonSaleRepository(data_dir / "sales.json"),
        returns=JsonPurchaseReturnRepository(data_dir / "purchase_returns.json"),
        ledger=StockLedgerService(
            products,
            movements,
            allow_negative_stock=settings.allow_negative_stock,
            max_write_retries=settings.max_write_retries,
        ),
    )
