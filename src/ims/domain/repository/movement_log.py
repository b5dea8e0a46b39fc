"""Abstract append-only log of stock movements."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import AbstractContextManager, nullcontext
from datetime import datetime

from ims.domain.model.stock_movement import MovementType, ReferenceType, StockMovement


class MovementLog(ABC):

    @abstractmethod
    def append(self, movement: StockMovement) -> StockMovement:
        """Store a movement and return it with ``id`` and ``created_at`` set.

        Ids are assigned in strictly increasing insertion order.
        """

    @abstractmethod
    def get_by_id(self, movement_id: int) -> StockMovement | None:
        """Return a movement by its ID, or None."""

    @abstractmethod
    def query(
        self,
        product_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
        movement_type: MovementType | None = None,
    ) -> Iterator[StockMovement]:
        """Yield a product's movements, newest first.

        Ordered by ``created_at`` descending, ties by id descending.
        ``start``/``end`` are inclusive bounds.
        """

    @abstractmethod
    def find_by_reference(
        self, reference_type: ReferenceType, reference_id: str
    ) -> list[StockMovement]:
        """Return the movements recorded for a business transaction, oldest first."""

    @abstractmethod
    def find_reversal(self, movement_id: int) -> StockMovement | None:
        """Return the movement compensating ``movement_id``, if any."""

    def serialized(self, product_id: str) -> AbstractContextManager:
        """Held by the ledger while it writes a product's stock and movement.

        Stores shared between processes return a lock here so that their
        writers cannot interleave.  A store used by one process only needs
        nothing beyond the ledger's own locks.
        """
        return nullcontext()
