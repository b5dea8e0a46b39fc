"""JSON-file-backed implementations of the transaction repositories."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

from ims.domain.model.transactions import Purchase, PurchaseReturn, ReturnStatus, Sale
from ims.domain.model.value_objects import Money, Quantity, UnitType
from ims.domain.repository.transaction_repositories import (
    PurchaseRepository,
    PurchaseReturnRepository,
    SaleRepository,
)
from ims.infrastructure.persistence.json_file import JsonFile, store_errors


class _JsonRecords:
    """Upsert/delete by integer ``id`` over a JsonFile."""

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    def _find_raw(self, record_id: int) -> dict | None:
        for raw in self._file.read():
            if raw["id"] == record_id:
                return raw
        return None

    def _upsert(self, entity, to_raw) -> None:
        with self._file.locked():
            records = self._file.read()
            if entity.id is None:
                entity.id = max((r["id"] for r in records), default=0) + 1
            for i, raw in enumerate(records):
                if raw["id"] == entity.id:
                    records[i] = to_raw(entity)
                    break
            else:
                records.append(to_raw(entity))
            self._file.write(records)

    @store_errors
    def delete(self, record_id: int) -> None:
        with self._file.locked():
            records = self._file.read()
            kept = [r for r in records if r["id"] != record_id]
            if len(kept) != len(records):
                self._file.write(kept)


class JsonPurchaseRepository(_JsonRecords, PurchaseRepository):

    @store_errors
    def get_by_id(self, purchase_id: int) -> Purchase | None:
        raw = self._find_raw(purchase_id)
        return self._to_domain(raw) if raw is not None else None

    @store_errors
    def list_all(self) -> list[Purchase]:
        return [self._to_domain(raw) for raw in self._file.read()]

    @store_errors
    def save(self, purchase: Purchase) -> None:
        self._upsert(purchase, self._to_raw)

    @staticmethod
    def _to_raw(purchase: Purchase) -> dict:
        return {
            "id": purchase.id,
            "supplier_id": purchase.supplier_id,
            "product_id": purchase.product_id,
            "reference_number": purchase.reference_number,
            "quantity": purchase.quantity.value,
            "unit_type": purchase.unit_type.value,
            "base_quantity": purchase.base_quantity,
            "unit_price": str(purchase.unit_price.amount),
            "total_amount": str(purchase.total_amount.amount),
            "notes": purchase.notes,
            "created_by": purchase.created_by,
            "created_at": purchase.created_at.isoformat(),
        }

    @staticmethod
    def _to_domain(raw: dict) -> Purchase:
        return Purchase(
            id=raw["id"],
            supplier_id=raw["supplier_id"],
            product_id=raw["product_id"],
            quantity=Quantity(raw["quantity"]),
            unit_price=Money(Decimal(raw["unit_price"])),
            base_quantity=raw["base_quantity"],
            unit_type=UnitType(raw.get("unit_type", "PIECE")),
            reference_number=raw.get("reference_number", ""),
            notes=raw.get("notes", ""),
            created_by=raw.get("created_by"),
            created_at=datetime.fromisoformat(raw["created_at"]),
        )


class JsonSaleRepository(_JsonRecords, SaleRepository):

    @store_errors
    def get_by_id(self, sale_id: int) -> Sale | None:
        raw = self._find_raw(sale_id)
        return self._to_domain(raw) if raw is not None else None

    @store_errors
    def list_all(self) -> list[Sale]:
        return [self._to_domain(raw) for raw in self._file.read()]

    @store_errors
    def save(self, sale: Sale) -> None:
        self._upsert(sale, self._to_raw)

    @staticmethod
    def _to_raw(sale: Sale) -> dict:
        return {
            "id": sale.id,
            "customer_id": sale.customer_id,
            "product_id": sale.product_id,
            "quantity": sale.quantity.value,
            "unit_type": sale.unit_type.value,
            "actual_quantity": sale.actual_quantity,
            "unit_price": str(sale.unit_price.amount),
            "total_amount": str(sale.total_amount.amount),
            "sale_date": sale.sale_date.isoformat() if sale.sale_date else None,
            "notes": sale.notes,
            "created_by": sale.created_by,
            "created_at": sale.created_at.isoformat(),
        }

    @staticmethod
    def _to_domain(raw: dict) -> Sale:
        sale_date = raw.get("sale_date")
        return Sale(
            id=raw["id"],
            customer_id=raw["customer_id"],
            product_id=raw["product_id"],
            quantity=Quantity(raw["quantity"]),
            unit_price=Money(Decimal(raw["unit_price"])),
            actual_quantity=raw["actual_quantity"],
            unit_type=UnitType(raw.get("unit_type", "PIECE")),
            sale_date=date.fromisoformat(sale_date) if sale_date else None,
            notes=raw.get("notes", ""),
            created_by=raw.get("created_by"),
            created_at=datetime.fromisoformat(raw["created_at"]),
        )


class JsonPurchaseReturnRepository(_JsonRecords, PurchaseReturnRepository):

    @store_errors
    def get_by_id(self, return_id: int) -> PurchaseReturn | None:
        raw = self._find_raw(return_id)
        return self._to_domain(raw) if raw is not None else None

    @store_errors
    def list_for_purchase(self, purchase_id: int) -> list[PurchaseReturn]:
        return [
            self._to_domain(raw)
            for raw in self._file.read()
            if raw["purchase_id"] == purchase_id
        ]

    @store_errors
    def save(self, purchase_return: PurchaseReturn) -> None:
        self._upsert(purchase_return, self._to_raw)

    @staticmethod
    def _to_raw(purchase_return: PurchaseReturn) -> dict:
        return {
            "id": purchase_return.id,
            "purchase_id": purchase_return.purchase_id,
            "quantity": purchase_return.quantity.value,
            "reason": purchase_return.reason,
            "status": purchase_return.status.value,
            "created_by": purchase_return.created_by,
            "updated_by": purchase_return.updated_by,
            "created_at": purchase_return.created_at.isoformat(),
        }

    @staticmethod
    def _to_domain(raw: dict) -> PurchaseReturn:
        return PurchaseReturn(
            id=raw["id"],
            purchase_id=raw["purchase_id"],
            quantity=Quantity(raw["quantity"]),
            reason=raw.get("reason", ""),
            status=ReturnStatus(raw["status"]),
            created_by=raw.get("created_by"),
            updated_by=raw.get("updated_by"),
            created_at=datetime.fromisoformat(raw["created_at"]),
        )
