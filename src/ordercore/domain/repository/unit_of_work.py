"""Abstract unit of work.

Every use case that writes runs inside one ``with uow:`` block.  Leaving
the block without ``commit()``, by exception or otherwise, rolls back
every write made through the repositories it exposes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ordercore.domain.repository.address_repository import (
    AddressRepository,
    CustomerRepository,
)
from ordercore.domain.repository.cart_repository import CartRepository
from ordercore.domain.repository.order_repository import OrderRepository
from ordercore.domain.repository.product_repository import ProductRepository


class UnitOfWork(ABC):
    orders: OrderRepository
    products: ProductRepository
    carts: CartRepository
    addresses: AddressRepository
    customers: CustomerRepository

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        # No-op after a successful commit.
        self.rollback()

    @abstractmethod
    def commit(self) -> None:
        """Make every write of this unit of work durable."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard every uncommitted write."""
