"""Domain service: Stock Ledger.

The single authoritative path for changing a product's stock.  Every
change is written twice: the product's cached ``stock_quantity`` and an
append-only StockMovement carrying the before/after snapshot.

Writes to one product are serialized by a lock in this process and by
the movement log's own lock across processes.  They are also guarded
by a compare-and-set on the product's version, so two writers can never both
build a movement on the same ``previous_quantity``.  A lost race re-reads
the product and tries again, up to ``max_write_retries`` times.

If the movement cannot be appended after the stock write succeeded, the
stock write is undone before the error is raised: callers either see the
stock change together with its movement, or neither.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from ims.domain.exceptions import (
    ConcurrencyConflictError,
    EntityNotFoundError,
    InsufficientStockError,
    ValidationError,
)
from ims.domain.model.product import Product
from ims.domain.model.stock_movement import (
    MovementType,
    ReferenceType,
    StockMovement,
    parse_movement_type,
    parse_reference_type,
    validate_delta,
)
from ims.domain.repository.movement_log import MovementLog
from ims.domain.repository.product_repository import ProductRepository

logger = logging.getLogger(__name__)

DEFAULT_MAX_WRITE_RETRIES = 3


def _as_utc(moment: datetime | None) -> datetime | None:
    """Naive bounds are taken to be UTC, like the timestamps in the log."""
    if moment is None or moment.tzinfo is not None:
        return moment
    return moment.replace(tzinfo=timezone.utc)


class MovementHistory:
    """A product's movements, newest first.

    Nothing is read until iteration starts, and every iteration runs the
    query again, so the same history object can be walked repeatedly.
    """

    def __init__(
        self,
        movement_log: MovementLog,
        product_id: str,
        start: datetime | None,
        end: datetime | None,
        movement_type: MovementType | None,
    ) -> None:
        self._movement_log = movement_log
        self.product_id = product_id
        self.start = start
        self.end = end
        self.movement_type = movement_type

    def __iter__(self) -> Iterator[StockMovement]:
        return iter(
            self._movement_log.query(
                self.product_id,
                start=self.start,
                end=self.end,
                movement_type=self.movement_type,
            )
        )


class StockLedgerService:

    def __init__(
        self,
        product_repo: ProductRepository,
        movement_log: MovementLog,
        *,
        allow_negative_stock: bool = True,
        max_write_retries: int = DEFAULT_MAX_WRITE_RETRIES,
    ) -> None:
        if max_write_retries < 1:
            raise ValueError("max_write_retries must be at least 1")
        self._product_repo = product_repo
        self._movement_log = movement_log
        self._allow_negative_stock = allow_negative_stock
        self._max_write_retries = max_write_retries
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @property
    def allow_negative_stock(self) -> bool:
        return self._allow_negative_stock

    # --- Writes ---------------------------------------------------------------

    def record_movement(
        self,
        product_id: str,
        movement_type: MovementType | str,
        quantity: int,
        reference_type: ReferenceType | str,
        reference_id: str | int,
        actor_id: str | None = None,
        notes: str = "",
    ) -> StockMovement:
        """Apply a signed ``quantity`` to a product's stock and log it.

        Raises:
            ValidationError: unknown movement/reference type, zero or
                non-integer quantity, or (with negative stock disabled)
                a movement that would leave stock below zero.
            EntityNotFoundError: the product does not exist.
            ConcurrencyConflictError: retries exhausted.
            StoreUnavailableError: storage failed; nothing was written.
        """
        movement_type = parse_movement_type(movement_type)
        reference_type = parse_reference_type(reference_type)
        delta = validate_delta(quantity)

        with self._product_lock(product_id):
            return self._apply(
                product_id,
                movement_type,
                delta,
                reference_type,
                str(reference_id),
                actor_id,
                notes or "",
                reverses_movement_id=None,
            )

    def adjust_stock(
        self,
        product_id: str,
        quantity: int,
        reason: str = "",
        actor_id: str | None = None,
    ) -> StockMovement:
        """Manual correction; the product itself is the reference."""
        return self.record_movement(
            product_id,
            MovementType.ADJUSTMENT,
            quantity,
            ReferenceType.ADJUSTMENT,
            product_id,
            actor_id=actor_id,
            notes=reason,
        )

    def reverse(
        self,
        movement_id: int,
        actor_id: str | None = None,
        notes: str | None = None,
    ) -> StockMovement:
        """Append the exact negation of a movement.

        Reversing the same movement twice returns the first compensating
        movement instead of writing another one.
        """
        original = self._movement_log.get_by_id(movement_id)
        if original is None:
            raise EntityNotFoundError(f"Stock movement #{movement_id} not found")
        if original.is_reversal:
            raise ValidationError(
                f"Stock movement #{movement_id} is itself a reversal "
                f"of #{original.reverses_movement_id}"
            )

        with self._product_lock(original.product_id):
            existing = self._movement_log.find_reversal(movement_id)
            if existing is not None:
                logger.info(
                    "Movement #%s already reversed by #%s", movement_id, existing.id
                )
                return existing
            return self._apply(
                original.product_id,
                MovementType.ADJUSTMENT,
                -original.quantity,
                original.reference_type.reversal_type,
                original.reference_id,
                actor_id,
                notes or f"Reversal of movement #{movement_id}",
                reverses_movement_id=movement_id,
            )

    def reverse_reference(
        self,
        reference_type: ReferenceType | str,
        reference_id: str | int,
        actor_id: str | None = None,
        notes: str | None = None,
    ) -> list[StockMovement]:
        """Reverse every live movement a business transaction produced."""
        reference_type = parse_reference_type(reference_type)
        return [
            self.reverse(movement.id, actor_id=actor_id, notes=notes)
            for movement in self.live_movements(reference_type, reference_id)
        ]

    # --- Reads ----------------------------------------------------------------

    def get_history(
        self,
        product_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
        movement_type: MovementType | str | None = None,
    ) -> MovementHistory:
        self._load_product(product_id)
        start, end = _as_utc(start), _as_utc(end)
        if start is not None and end is not None and start > end:
            raise ValidationError("History start must not be after its end")
        if movement_type is not None:
            movement_type = parse_movement_type(movement_type)
        return MovementHistory(
            self._movement_log, product_id, start, end, movement_type
        )

    def live_movements(
        self, reference_type: ReferenceType, reference_id: str | int
    ) -> list[StockMovement]:
        """Movements of a transaction that have not been reversed yet."""
        return [
            m
            for m in self._movement_log.find_by_reference(
                reference_type, str(reference_id)
            )
            if not m.is_reversal and self._movement_log.find_reversal(m.id) is None
        ]

    def current_stock(self, product_id: str) -> int:
        return self._load_product(product_id).stock_quantity

    def check_availability(self, product_id: str, quantity: int) -> tuple[bool, int]:
        """Return ``(enough_stock, current_stock)`` for a prospective outflow."""
        current = self.current_stock(product_id)
        return current >= quantity, current

    def replay(self, product_id: str) -> int:
        """Sum every recorded delta for a product, starting from zero."""
        self._load_product(product_id)
        return sum(m.quantity for m in self._movement_log.query(product_id))

    # --- Internal helpers -----------------------------------------------------

    def _apply(
        self,
        product_id: str,
        movement_type: MovementType,
        delta: int,
        reference_type: ReferenceType,
        reference_id: str,
        actor_id: str | None,
        notes: str,
        reverses_movement_id: int | None,
    ) -> StockMovement:
        # Caller holds the product lock.
        for attempt in range(1, self._max_write_retries + 1):
            product = self._load_product(product_id)
            previous = product.stock_quantity
            new = previous + delta
            if delta < 0 and new < 0 and not self._allow_negative_stock:
                raise InsufficientStockError(
                    f"Insufficient stock for {product.name} "
                    f"(need {-delta}, have {previous})"
                )

            movement = StockMovement(
                product_id=product_id,
                movement_type=movement_type,
                quantity=delta,
                reference_type=reference_type,
                reference_id=reference_id,
                previous_quantity=previous,
                new_quantity=new,
                created_by=actor_id,
                notes=notes,
                reverses_movement_id=reverses_movement_id,
            )

            if not self._product_repo.compare_and_set_stock(
                product_id, product.version, new
            ):
                logger.warning(
                    "Stock of product %s changed concurrently (attempt %d/%d)",
                    product_id,
                    attempt,
                    self._max_write_retries,
                )
                continue

            try:
                recorded = self._movement_log.append(movement)
            except Exception:
                self._restore_stock(product_id, product.version + 1, previous)
                raise

            logger.info(
                "Recorded %s %+d for product %s (%d -> %d, %s %s)",
                movement_type.value,
                delta,
                product_id,
                previous,
                new,
                reference_type.value,
                reference_id,
            )
            return recorded

        raise ConcurrencyConflictError(
            f"Could not update stock of product {product_id} after "
            f"{self._max_write_retries} attempts"
        )

    def _restore_stock(self, product_id: str, version: int, stock: int) -> None:
        logger.error(
            "Movement log write failed for product %s; restoring stock to %d",
            product_id,
            stock,
        )
        if not self._product_repo.compare_and_set_stock(product_id, version, stock):
            logger.error(
                "Could not restore stock of product %s: it changed again", product_id
            )

    def _load_product(self, product_id: str) -> Product:
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product not found: '{product_id}'")
        return product

    @contextmanager
    def _product_lock(self, product_id: str) -> Iterator[None]:
        with self._locks_guard:
            lock = self._locks.setdefault(product_id, threading.Lock())
        with lock, self._movement_log.serialized(product_id):
            yield
