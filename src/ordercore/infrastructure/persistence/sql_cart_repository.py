"""SQLAlchemy-backed implementation of CartRepository."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ordercore.domain.model.cart import Cart, CartItem, CartStatus
from ordercore.domain.repository.cart_repository import CartRepository
from ordercore.infrastructure.persistence.tables import CartItemRow, CartRow


class SqlCartRepository(CartRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_active_for_user(self, user_id: int) -> Cart | None:
        return self._active_where(CartRow.user_id == user_id)

    def get_active_for_guest(self, guest_id: str) -> Cart | None:
        return self._active_where(CartRow.guest_id == guest_id, CartRow.user_id.is_(None))

    def mark_converted(self, cart_id: str) -> bool:
        # Conditional on ACTIVE: of two overlapping checkouts only one flips it
        result = self._session.execute(
            update(CartRow)
            .where(CartRow.id == cart_id, CartRow.status == CartStatus.ACTIVE.value)
            .values(status=CartStatus.CONVERTED.value, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def _active_where(self, *conditions) -> Cart | None:
        row = self._session.scalars(
            select(CartRow)
            .where(*conditions, CartRow.status == CartStatus.ACTIVE.value)
            .limit(1)
        ).first()
        if row is None:
            return None
        items = self._session.scalars(
            select(CartItemRow).where(CartItemRow.cart_id == row.id).order_by(CartItemRow.id)
        ).all()
        return Cart(
            id=row.id,
            user_id=row.user_id,
            guest_id=row.guest_id,
            status=CartStatus(row.status),
            items=[
                CartItem(
                    id=i.id,
                    product_id=i.product_id,
                    quantity=i.quantity,
                    variant_id=i.variant_id,
                )
                for i in items
            ],
        )
