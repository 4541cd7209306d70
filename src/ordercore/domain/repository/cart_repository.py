"""Abstract repository for shopping carts."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ordercore.domain.model.cart import Cart


class CartRepository(ABC):

    @abstractmethod
    def get_active_for_user(self, user_id: int) -> Cart | None:
        """Return the user's single active cart with its items, or None."""

    @abstractmethod
    def get_active_for_guest(self, guest_id: str) -> Cart | None:
        """Return the guest session's active cart with its items, or None."""

    @abstractmethod
    def mark_converted(self, cart_id: str) -> bool:
        """Flip an active cart to converted.

        Returns False, writing nothing, when the cart is no longer active
        (another checkout converted it first).
        """
