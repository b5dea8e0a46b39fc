"""Abstract repository for Product aggregate.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (JSON, in-memory) live in the
infrastructure layer and in the test fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ims.domain.model.product import Product


class ProductRepository(ABC):

    @abstractmethod
    def get_by_id(self, product_id: str) -> Product | None:
        """Return a product by its ID, or None if not found."""

    @abstractmethod
    def get_by_name(self, name: str) -> Product | None:
        """Return a product by its exact name, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Product]:
        """Return every product in the catalog."""

    @abstractmethod
    def save(self, product: Product) -> None:
        """Persist a new or updated product (catalog fields only)."""

    @abstractmethod
    def delete(self, product_id: str) -> None:
        """Remove a product. Deleting an unknown ID is a no-op."""

    @abstractmethod
    def compare_and_set_stock(
        self, product_id: str, expected_version: int, new_stock: int
    ) -> bool:
        """Write ``new_stock`` only if the product is still at ``expected_version``.

        On success the stored version is incremented and True is returned.
        Returns False when another writer got there first.  Raises
        EntityNotFoundError when the product does not exist.
        """
