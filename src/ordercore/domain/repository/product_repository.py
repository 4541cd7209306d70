"""Abstract repository for the catalog (products, variants, stock).

Defined in the domain layer so the domain never depends on
infrastructure.  Concrete implementations (SQL, in-memory) live in the
infrastructure layer and the tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ordercore.domain.model.product import Product, ProductVariant, StockRef


class ProductRepository(ABC):

    @abstractmethod
    def get_products(self, product_ids: list[str]) -> dict[str, Product]:
        """Return the products that exist, keyed by id (one batched read)."""

    @abstractmethod
    def get_variants(self, variant_ids: list[str]) -> dict[str, ProductVariant]:
        """Return the variants that exist, keyed by id (one batched read)."""

    @abstractmethod
    def get_stock(self, ref: StockRef) -> int | None:
        """Return the current stock counter, or None if the row is gone."""

    @abstractmethod
    def decrement_stock(self, ref: StockRef, quantity: int) -> bool:
        """Atomically subtract ``quantity`` if at least that much is left.

        Returns False, leaving the counter untouched, when the stock would
        go negative or the row does not exist.
        """

    @abstractmethod
    def restore_stock(self, ref: StockRef, quantity: int) -> None:
        """Add ``quantity`` back to the counter (no-op if the row is gone)."""
