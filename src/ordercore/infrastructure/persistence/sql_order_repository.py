"""SQLAlchemy-backed implementation of OrderRepository."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ordercore.domain.exceptions import OrderNumberConflictError
from ordercore.domain.model.address import AddressSnapshot
from ordercore.domain.model.customer import normalize_email
from ordercore.domain.model.order import Order, OrderItem, OrderStatus, PaymentStatus
from ordercore.domain.model.value_objects import Money, Quantity
from ordercore.domain.repository.order_repository import OrderRepository, OrderSearch
from ordercore.domain.service.order_number_generator import SEQUENCE_WIDTH, parse_sequence
from ordercore.infrastructure.persistence.tables import (
    OrderCounterRow,
    OrderItemRow,
    OrderRow,
)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything stored is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlOrderRepository(OrderRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    # --- OrderRepository interface --------------------------------------------

    def add(self, order: Order) -> None:
        self._session.add(self._to_row(order))
        try:
            # Header first, so a duplicate number fails before any item insert
            self._session.flush()
        except IntegrityError as exc:
            if "order_number" in str(exc.orig):
                raise OrderNumberConflictError(order.order_number) from exc
            raise
        self._session.add_all(self._item_to_row(order.id, item) for item in order.items)
        self._session.flush()

    def get_by_id(
        self,
        order_id: str,
        user_id: int | None = None,
        for_update: bool = False,
    ) -> Order | None:
        stmt = select(OrderRow).where(OrderRow.id == order_id)
        if user_id is not None:
            stmt = stmt.where(OrderRow.user_id == user_id)
        if for_update:
            stmt = stmt.with_for_update()
        row = self._session.scalars(stmt).one_or_none()
        if row is None:
            return None
        return self._to_domain(row, self._load_items(row.id))

    def get_by_number(self, order_number: str) -> Order | None:
        row = self._session.scalars(
            select(OrderRow).where(OrderRow.order_number == order_number)
        ).one_or_none()
        if row is None:
            return None
        return self._to_domain(row, self._load_items(row.id))

    def latest_number_with_prefix(self, prefix: str) -> str | None:
        return self._session.scalar(
            select(func.max(OrderRow.order_number)).where(
                OrderRow.order_number.startswith(prefix, autoescape=True)
            )
        )

    def next_sequence(self, prefix: str) -> int:
        # The counter row stays locked until the unit of work ends
        claimed = self._session.execute(
            update(OrderCounterRow)
            .where(OrderCounterRow.prefix == prefix)
            .values(last_value=OrderCounterRow.last_value + 1)
            .execution_options(synchronize_session=False)
        ).rowcount
        if claimed:
            return self._session.scalar(
                select(OrderCounterRow.last_value).where(OrderCounterRow.prefix == prefix)
            )

        first = parse_sequence(self.latest_number_with_prefix(prefix)) + 1
        self._session.add(OrderCounterRow(prefix=prefix, last_value=first))
        try:
            self._session.flush()
        except IntegrityError as exc:
            # Another checkout opened the day's counter first
            raise OrderNumberConflictError(f"{prefix}{first:0{SEQUENCE_WIDTH}d}") from exc
        return first

    def update(self, order: Order, expected_status: OrderStatus) -> bool:
        result = self._session.execute(
            update(OrderRow)
            .where(OrderRow.id == order.id, OrderRow.status == expected_status.value)
            .values(
                status=order.status.value,
                payment_status=order.payment_status.value,
                provider_order_id=order.provider_order_id,
                provider_payment_id=order.provider_payment_id,
                admin_notes=order.admin_notes,
                updated_at=order.updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def search(
        self, criteria: OrderSearch, user_id: int | None = None
    ) -> tuple[list[Order], int]:
        conditions = []
        if user_id is not None:
            conditions.append(OrderRow.user_id == user_id)
        if criteria.status is not None:
            conditions.append(OrderRow.status == criteria.status.value)
        if criteria.payment_status is not None:
            conditions.append(OrderRow.payment_status == criteria.payment_status.value)
        if criteria.start_date is not None:
            conditions.append(OrderRow.created_at >= criteria.start_date)
        if criteria.end_date is not None:
            conditions.append(OrderRow.created_at <= criteria.end_date)
        if criteria.search:
            conditions.append(
                OrderRow.order_number.icontains(criteria.search.strip(), autoescape=True)
            )

        total = self._session.scalar(
            select(func.count()).select_from(OrderRow).where(*conditions)
        )
        rows = self._session.scalars(
            select(OrderRow)
            .where(*conditions)
            .order_by(OrderRow.created_at.desc(), OrderRow.order_number.desc())
            .limit(criteria.limit)
            .offset(criteria.offset)
        ).all()
        return [self._to_domain(row, []) for row in rows], total or 0

    def count_items(self, order_id: str) -> int:
        return self._session.scalar(
            select(func.coalesce(func.sum(OrderItemRow.quantity), 0)).where(
                OrderItemRow.order_id == order_id
            )
        )

    def claim_guest_orders(self, email: str, user_id: int, now: datetime) -> int:
        result = self._session.execute(
            update(OrderRow)
            .where(
                OrderRow.is_guest.is_(True),
                func.lower(OrderRow.guest_email) == normalize_email(email),
            )
            .values(user_id=user_id, is_guest=False, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    # --- Mapping --------------------------------------------------------------

    def _load_items(self, order_id: str) -> list[OrderItemRow]:
        return list(
            self._session.scalars(
                select(OrderItemRow)
                .where(OrderItemRow.order_id == order_id)
                .order_by(OrderItemRow.product_name, OrderItemRow.id)
            )
        )

    @staticmethod
    def _to_row(order: Order) -> OrderRow:
        return OrderRow(
            id=order.id,
            order_number=order.order_number,
            user_id=order.user_id,
            subtotal=order.subtotal.amount,
            tax_amount=order.tax_amount.amount,
            shipping_amount=order.shipping_amount.amount,
            discount_amount=order.discount_amount.amount,
            total_amount=order.total_amount.amount,
            status=order.status.value,
            payment_status=order.payment_status.value,
            shipping_address_id=order.shipping_address_id,
            billing_address_id=order.billing_address_id,
            shipping_address_snapshot=order.shipping_address.to_dict(),
            billing_address_snapshot=order.billing_address.to_dict(),
            payment_method=order.payment_method,
            provider_order_id=order.provider_order_id,
            provider_payment_id=order.provider_payment_id,
            customer_notes=order.customer_notes,
            admin_notes=order.admin_notes,
            is_guest=order.is_guest,
            guest_email=order.guest_email,
            guest_phone=order.guest_phone,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )

    @staticmethod
    def _item_to_row(order_id: str, item: OrderItem) -> OrderItemRow:
        return OrderItemRow(
            id=item.id,
            order_id=order_id,
            product_id=item.product_id,
            variant_id=item.variant_id,
            product_name=item.product_name,
            variant_name=item.variant_name,
            sku=item.sku,
            product_image=item.product_image,
            price=item.unit_price.amount,
            quantity=item.quantity.value,
            total_price=item.line_total.quantized().amount,
        )

    @staticmethod
    def _to_domain(row: OrderRow, item_rows: list[OrderItemRow]) -> Order:
        items = [
            OrderItem(
                id=i.id,
                product_id=i.product_id,
                product_name=i.product_name,
                quantity=Quantity(i.quantity),
                unit_price=Money(i.price),
                variant_id=i.variant_id,
                variant_name=i.variant_name,
                sku=i.sku,
                product_image=i.product_image,
            )
            for i in item_rows
        ]
        return Order(
            id=row.id,
            order_number=row.order_number,
            user_id=row.user_id,
            items=items,
            subtotal=Money(row.subtotal),
            tax_amount=Money(row.tax_amount),
            shipping_amount=Money(row.shipping_amount),
            discount_amount=Money(row.discount_amount),
            total_amount=Money(row.total_amount),
            shipping_address=AddressSnapshot.from_dict(row.shipping_address_snapshot),
            billing_address=AddressSnapshot.from_dict(row.billing_address_snapshot),
            status=OrderStatus(row.status),
            payment_status=PaymentStatus(row.payment_status),
            shipping_address_id=row.shipping_address_id,
            billing_address_id=row.billing_address_id,
            payment_method=row.payment_method,
            provider_order_id=row.provider_order_id,
            provider_payment_id=row.provider_payment_id,
            customer_notes=row.customer_notes,
            admin_notes=row.admin_notes,
            is_guest=row.is_guest,
            guest_email=row.guest_email,
            guest_phone=row.guest_phone,
            created_at=as_utc(row.created_at),
            updated_at=as_utc(row.updated_at),
        )
