"""SQLAlchemy-backed address-book and account lookups."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from ordercore.domain.model.address import Address
from ordercore.domain.model.customer import Customer
from ordercore.domain.repository.address_repository import (
    AddressRepository,
    CustomerRepository,
)
from ordercore.infrastructure.persistence.tables import AddressRow, UserRow


class SqlAddressRepository(AddressRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_for_user(self, address_id: str, user_id: int) -> Address | None:
        row = self._session.scalars(
            select(AddressRow).where(
                AddressRow.id == address_id, AddressRow.user_id == user_id
            )
        ).one_or_none()
        if row is None:
            return None
        return Address(
            id=row.id,
            user_id=row.user_id,
            full_name=row.full_name,
            phone=row.phone,
            address_line1=row.address_line1,
            city=row.city,
            state=row.state,
            postal_code=row.postal_code,
            country=row.country,
            label=row.label,
            address_line2=row.address_line2,
        )


class SqlCustomerRepository(CustomerRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_id(self, user_id: int) -> Customer | None:
        row = self._session.get(UserRow, user_id)
        if row is None:
            return None
        return Customer(id=row.id, email=row.email)
