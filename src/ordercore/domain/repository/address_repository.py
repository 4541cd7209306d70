"""Abstract repositories for address-book and account lookups."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ordercore.domain.model.address import Address
from ordercore.domain.model.customer import Customer


class AddressRepository(ABC):

    @abstractmethod
    def get_for_user(self, address_id: str, user_id: int) -> Address | None:
        """Return the address if it exists and belongs to the user."""


class CustomerRepository(ABC):

    @abstractmethod
    def get_by_id(self, user_id: int) -> Customer | None:
        """Return the account, or None."""
