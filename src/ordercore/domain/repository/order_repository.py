"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from ordercore.domain.model.order import Order, OrderStatus, PaymentStatus


@dataclass(frozen=True)
class OrderSearch:
    """Filters and paging for order listings."""

    status: OrderStatus | None = None
    payment_status: PaymentStatus | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    search: str | None = None
    page: int = 1
    limit: int = 20

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class OrderRepository(ABC):

    @abstractmethod
    def add(self, order: Order) -> None:
        """Persist a new order together with its items.

        Raises OrderNumberConflictError if the order number is taken.
        """

    @abstractmethod
    def get_by_id(
        self,
        order_id: str,
        user_id: int | None = None,
        for_update: bool = False,
    ) -> Order | None:
        """Return an order with its items, optionally scoped to an owner."""

    @abstractmethod
    def get_by_number(self, order_number: str) -> Order | None:
        """Return an order by its human-readable number, or None."""

    @abstractmethod
    def latest_number_with_prefix(self, prefix: str) -> str | None:
        """Return the highest order number starting with ``prefix``."""

    @abstractmethod
    def next_sequence(self, prefix: str) -> int:
        """Claim the next sequence number for an order-number prefix.

        The claim is part of the current unit of work: concurrent callers
        get distinct values, and a rolled-back claim is given out again.
        The first claim for a prefix continues from
        ``latest_number_with_prefix``.
        """

    @abstractmethod
    def update(self, order: Order, expected_status: OrderStatus) -> bool:
        """Write status/payment/notes fields if the stored status still matches.

        Returns False (and writes nothing) when another writer changed the
        status since ``expected_status`` was read.
        """

    @abstractmethod
    def search(
        self, criteria: OrderSearch, user_id: int | None = None
    ) -> tuple[list[Order], int]:
        """Return one page of order headers (items not loaded) and the total."""

    @abstractmethod
    def count_items(self, order_id: str) -> int:
        """Return the sum of item quantities of an order."""

    @abstractmethod
    def claim_guest_orders(self, email: str, user_id: int, now: datetime) -> int:
        """Move every guest order placed with ``email`` to ``user_id``.

        Emails compare case-insensitively.  Returns how many orders moved.
        """
