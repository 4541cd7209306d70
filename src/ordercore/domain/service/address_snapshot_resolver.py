"""Domain service: freezes a user's saved addresses for an order."""

from __future__ import annotations

from ordercore.domain.exceptions import ValidationError
from ordercore.domain.model.address import AddressSnapshot
from ordercore.domain.repository.address_repository import AddressRepository


class AddressSnapshotResolver:

    def __init__(self, address_repo: AddressRepository) -> None:
        self._address_repo = address_repo

    def resolve(self, address_id: str, user_id: int, role: str = "Shipping") -> AddressSnapshot:
        """Snapshot one of the user's addresses.

        Addresses owned by someone else are treated exactly like missing
        ones.
        """
        address = self._address_repo.get_for_user(address_id, user_id)
        if address is None:
            raise ValidationError(f"{role} address not found")
        return AddressSnapshot.of(address)

    def resolve_pair(
        self,
        user_id: int,
        shipping_address_id: str,
        billing_address_id: str | None = None,
        use_same_address: bool = True,
    ) -> tuple[AddressSnapshot, AddressSnapshot]:
        """Return (shipping, billing); billing reuses shipping when asked to."""
        shipping = self.resolve(shipping_address_id, user_id, "Shipping")
        if use_same_address or not billing_address_id:
            return shipping, shipping
        return shipping, self.resolve(billing_address_id, user_id, "Billing")
