"""Shopping cart, as far as checkout is concerned.

Carts are owned by the cart subsystem up to the moment an order is
created from them.  After that they are ``CONVERTED`` and can never be
checked out again.  A cart belongs either to a registered user or to a
guest session identified by ``guest_id``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ordercore.domain.exceptions import ValidationError


class CartStatus(Enum):
    ACTIVE = "active"
    CONVERTED = "converted"
    ABANDONED = "abandoned"


@dataclass(frozen=True)
class CartItem:
    id: str
    product_id: str
    quantity: int
    variant_id: str | None = None


@dataclass
class Cart:
    id: str
    user_id: int | None = None
    status: CartStatus = CartStatus.ACTIVE
    items: list[CartItem] = field(default_factory=list)
    guest_id: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    def mark_converted(self) -> None:
        """Transition ACTIVE -> CONVERTED once an order has been placed."""
        if self.status != CartStatus.ACTIVE:
            raise ValidationError(
                f"Cannot convert cart in {self.status.value} status"
            )
        self.status = CartStatus.CONVERTED
