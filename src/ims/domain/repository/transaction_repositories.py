"""Abstract repositories for the business transactions that move stock."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ims.domain.model.transactions import Purchase, PurchaseReturn, Sale


class PurchaseRepository(ABC):

    @abstractmethod
    def get_by_id(self, purchase_id: int) -> Purchase | None:
        """Return a purchase by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Purchase]:
        """Return every purchase, oldest first."""

    @abstractmethod
    def save(self, purchase: Purchase) -> None:
        """Persist a new or updated purchase, assigning an ID if needed."""

    @abstractmethod
    def delete(self, purchase_id: int) -> None:
        """Remove a purchase. Missing IDs are ignored."""


class SaleRepository(ABC):

    @abstractmethod
    def get_by_id(self, sale_id: int) -> Sale | None:
        """Return a sale by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Sale]:
        """Return every sale, oldest first."""

    @abstractmethod
    def save(self, sale: Sale) -> None:
        """Persist a new or updated sale, assigning an ID if needed."""

    @abstractmethod
    def delete(self, sale_id: int) -> None:
        """Remove a sale. Missing IDs are ignored."""


class PurchaseReturnRepository(ABC):

    @abstractmethod
    def get_by_id(self, return_id: int) -> PurchaseReturn | None:
        """Return a purchase return by its ID, or None if not found."""

    @abstractmethod
    def list_for_purchase(self, purchase_id: int) -> list[PurchaseReturn]:
        """Return every return recorded against a purchase."""

    @abstractmethod
    def save(self, purchase_return: PurchaseReturn) -> None:
        """Persist a new or updated return, assigning an ID if needed."""

    @abstractmethod
    def delete(self, return_id: int) -> None:
        """Remove a return. Missing IDs are ignored."""
