"""Customer addresses and the frozen copies orders keep of them."""

from __future__ import annotations

from dataclasses import asdict, dataclass

from ordercore.domain.exceptions import ValidationError


@dataclass
class Address:
    """A saved address in the user's address book (mutable)."""

    id: str
    user_id: int
    full_name: str
    phone: str
    address_line1: str
    city: str
    state: str
    postal_code: str
    country: str
    label: str | None = None
    address_line2: str | None = None


@dataclass(frozen=True)
class AddressSnapshot:
    """Denormalized copy of an Address taken when the order is placed.

    Orders hold this value, never a live Address, so editing or deleting
    the address later leaves historical orders untouched.
    """

    id: str
    full_name: str
    phone: str
    address_line1: str
    city: str
    state: str
    postal_code: str
    country: str
    label: str | None = None
    address_line2: str | None = None

    @staticmethod
    def of(address: Address) -> AddressSnapshot:
        return AddressSnapshot(
            id=address.id,
            full_name=address.full_name,
            phone=address.phone,
            address_line1=address.address_line1,
            city=address.city,
            state=address.state,
            postal_code=address.postal_code,
            country=address.country,
            label=address.label,
            address_line2=address.address_line2,
        )

    def to_dict(self) -> dict:
        return asdict(self)

    @staticmethod
    def from_dict(raw: dict) -> AddressSnapshot:
        return AddressSnapshot(
            id=raw["id"],
            full_name=raw["full_name"],
            phone=raw["phone"],
            address_line1=raw["address_line1"],
            city=raw["city"],
            state=raw["state"],
            postal_code=raw["postal_code"],
            country=raw["country"],
            label=raw.get("label"),
            address_line2=raw.get("address_line2"),
        )


_GUEST_REQUIRED = (
    ("full_name", "Full name"),
    ("phone", "Phone number"),
    ("address_line1", "Address line 1"),
    ("city", "City"),
    ("state", "State"),
    ("postal_code", "Postal code"),
)


@dataclass(frozen=True)
class GuestAddress:
    """An address typed in at guest checkout; never saved to an address book."""

    full_name: str
    phone: str
    address_line1: str
    city: str
    state: str
    postal_code: str
    country: str = "US"
    address_line2: str | None = None

    def snapshot(self, snapshot_id: str, role: str = "Shipping") -> AddressSnapshot:
        for attr, label in _GUEST_REQUIRED:
            if not (getattr(self, attr) or "").strip():
                raise ValidationError(f"{role} address: {label} is required")
        return AddressSnapshot(
            id=snapshot_id,
            full_name=self.full_name.strip(),
            phone=self.phone.strip(),
            address_line1=self.address_line1.strip(),
            city=self.city.strip(),
            state=self.state.strip(),
            postal_code=self.postal_code.strip(),
            country=(self.country or "US").strip(),
            address_line2=self.address_line2 or None,
        )
