"""Application service: Show Guest Order use case (query).

Lets a guest reopen their own order, typically to pay for it, by proving
they know the email it was placed with.
"""

from __future__ import annotations

from typing import Callable

from ordercore.application.dto import OrderDTO, order_to_dto
from ordercore.domain.exceptions import EntityNotFoundError
from ordercore.domain.repository.unit_of_work import UnitOfWork


class ShowGuestOrderHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self, order_id: str, email: str) -> OrderDTO:
        with self._uow_factory() as uow:
            order = uow.orders.get_by_id(order_id)
        # Registered orders and wrong emails look exactly like missing ones
        if order is None or not order.placed_by_guest_email(email):
            raise EntityNotFoundError("Order not found")
        return order_to_dto(order)
