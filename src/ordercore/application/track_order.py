"""Application service: Track Order use case (public query).

Anyone holding an order number and the email it was placed with (the
account's email, or the contact email of a guest order) can see the
order's progress.  A wrong email and an unknown number
give the same answer, so the endpoint cannot be used to discover which
order numbers exist.
"""

from __future__ import annotations

from typing import Callable

from ordercore.application.dto import TrackedOrderDTO, order_item_to_dto
from ordercore.domain.exceptions import EntityNotFoundError
from ordercore.domain.repository.unit_of_work import UnitOfWork


class TrackOrderHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self, order_number: str, email: str) -> TrackedOrderDTO:
        with self._uow_factory() as uow:
            order = uow.orders.get_by_number(order_number.strip())
            owner = None
            if order is not None and not order.is_guest:
                owner = uow.customers.get_by_id(order.user_id)

        if order is None:
            raise EntityNotFoundError("Order not found")
        if order.is_guest:
            matches = order.placed_by_guest_email(email)
        else:
            matches = owner is not None and owner.owns_email(email)
        if not matches:
            raise EntityNotFoundError("Order not found")

        return TrackedOrderDTO(
            order_number=order.order_number,
            status=order.status.value,
            payment_status=order.payment_status.value,
            total_amount=str(order.total_amount),
            payment_method=order.payment_method,
            shipping_address=order.shipping_address.to_dict(),
            items=[order_item_to_dto(item) for item in order.items],
            created_at=order.created_at.isoformat(),
            updated_at=order.updated_at.isoformat(),
        )
