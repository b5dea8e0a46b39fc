"""JSON-file-backed implementation of ProductRepository."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

from ims.domain.exceptions import EntityNotFoundError
from ims.domain.model.product import Product
from ims.domain.model.value_objects import Money
from ims.domain.repository.product_repository import ProductRepository
from ims.infrastructure.persistence.json_file import JsonFile, store_errors


class JsonProductRepository(ProductRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    # --- ProductRepository interface ------------------------------------------

    @store_errors
    def get_by_id(self, product_id: str) -> Product | None:
        for raw in self._file.read():
            if raw["id"] == product_id:
                return self._to_domain(raw)
        return None

    @store_errors
    def get_by_name(self, name: str) -> Product | None:
        for raw in self._file.read():
            if raw["name"].lower() == name.lower():
                return self._to_domain(raw)
        return None

    @store_errors
    def list_all(self) -> list[Product]:
        return [self._to_domain(raw) for raw in self._file.read()]

    @store_errors
    def save(self, product: Product) -> None:
        with self._file.locked():
            records = self._file.read()
            for i, raw in enumerate(records):
                if raw["id"] == product.id:
                    # Stock belongs to the ledger; keep what is stored.
                    updated = self._to_raw(product)
                    updated["stock_quantity"] = raw["stock_quantity"]
                    updated["version"] = raw.get("version", 0)
                    records[i] = updated
                    break
            else:
                records.append(self._to_raw(product))
            self._file.write(records)

    @store_errors
    def compare_and_set_stock(
        self, product_id: str, expected_version: int, new_stock: int
    ) -> bool:
        with self._file.locked():
            records = self._file.read()
            for raw in records:
                if raw["id"] == product_id:
                    if raw.get("version", 0) != expected_version:
                        return False
                    raw["stock_quantity"] = new_stock
                    raw["version"] = expected_version + 1
                    self._file.write(records)
                    return True
        raise EntityNotFoundError(f"Product not found: '{product_id}'")

    @store_errors
    def delete(self, product_id: str) -> None:
        with self._file.locked():
            records = self._file.read()
            kept = [r for r in records if r["id"] != product_id]
            if len(kept) != len(records):
                self._file.write(kept)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(product: Product) -> dict:
        return {
            "id": product.id,
            "name": product.name,
            "price": str(product.price.amount),
            "currency": product.price.currency,
            "stock_quantity": product.stock_quantity,
            "min_stock": product.min_stock,
            "pieces_per_box": product.pieces_per_box,
            "version": product.version,
        }

    @staticmethod
    def _to_domain(raw: dict) -> Product:
        return Product(
            id=raw["id"],
            name=raw["name"],
            price=Money(Decimal(raw["price"]), raw.get("currency", "USD")),
            stock_quantity=raw.get("stock_quantity", 0),
            min_stock=raw.get("min_stock", 0),
            pieces_per_box=raw.get("pieces_per_box", 1),
            version=raw.get("version", 0),
        )
