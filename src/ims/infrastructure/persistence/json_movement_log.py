"""JSON-file-backed implementation of MovementLog.

Records are only ever appended to the file; nothing here rewrites an
existing entry.  The file's lock doubles as the cross-process lock the
ledger holds while it writes stock, so ids and timestamps follow the
order in which stock actually changed.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import AbstractContextManager
from datetime import datetime, timezone
from pathlib import Path

from ims.domain.model.stock_movement import MovementType, ReferenceType, StockMovement
from ims.domain.repository.movement_log import MovementLog
from ims.infrastructure.persistence.json_file import JsonFile, store_errors


class JsonMovementLog(MovementLog):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    # --- MovementLog interface ------------------------------------------------

    def serialized(self, product_id: str) -> AbstractContextManager:
        return self._file.locked()

    @store_errors
    def append(self, movement: StockMovement) -> StockMovement:
        with self._file.locked():
            records = self._file.read()
            next_id = max((r["id"] for r in records), default=0) + 1
            stamped = movement.stamped(next_id, datetime.now(timezone.utc))
            records.append(self._to_raw(stamped))
            self._file.write(records)
        return stamped

    @store_errors
    def get_by_id(self, movement_id: int) -> StockMovement | None:
        for raw in self._file.read():
            if raw["id"] == movement_id:
                return self._to_domain(raw)
        return None

    @store_errors
    def query(
        self,
        product_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
        movement_type: MovementType | None = None,
    ) -> Iterator[StockMovement]:
        records = [r for r in self._file.read() if r["product_id"] == product_id]
        records.sort(
            key=lambda r: (datetime.fromisoformat(r["created_at"]), r["id"]),
            reverse=True,
        )
        # Decoded up front so that a malformed record fails here.
        movements = [
            m
            for m in map(self._to_domain, records)
            if (start is None or m.created_at >= start)
            and (end is None or m.created_at <= end)
            and (movement_type is None or m.movement_type == movement_type)
        ]
        return iter(movements)

    @store_errors
    def find_by_reference(
        self, reference_type: ReferenceType, reference_id: str
    ) -> list[StockMovement]:
        return [
            self._to_domain(raw)
            for raw in self._file.read()
            if raw["reference_type"] == reference_type.value
            and raw["reference_id"] == reference_id
        ]

    @store_errors
    def find_reversal(self, movement_id: int) -> StockMovement | None:
        for raw in self._file.read():
            if raw.get("reverses_movement_id") == movement_id:
                return self._to_domain(raw)
        return None

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(movement: StockMovement) -> dict:
        return {
            "id": movement.id,
            "product_id": movement.product_id,
            "movement_type": movement.movement_type.value,
            "quantity": movement.quantity,
            "reference_type": movement.reference_type.value,
            "reference_id": movement.reference_id,
            "previous_quantity": movement.previous_quantity,
            "new_quantity": movement.new_quantity,
            "notes": movement.notes,
            "created_by": movement.created_by,
            "created_at": movement.created_at.isoformat(),
            "reverses_movement_id": movement.reverses_movement_id,
        }

    @staticmethod
    def _to_domain(raw: dict) -> StockMovement:
        return StockMovement(
            id=raw["id"],
            product_id=raw["product_id"],
            movement_type=MovementType(raw["movement_type"]),
            quantity=raw["quantity"],
            reference_type=ReferenceType(raw["reference_type"]),
            reference_id=raw["reference_id"],
            previous_quantity=raw["previous_quantity"],
            new_quantity=raw["new_quantity"],
            notes=raw.get("notes", ""),
            created_by=raw.get("created_by"),
            created_at=datetime.fromisoformat(raw["created_at"]),
            reverses_movement_id=raw.get("reverses_movement_id"),
        )
