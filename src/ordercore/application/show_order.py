"""Application service: Show Order use case (query)."""

from __future__ import annotations

from typing import Callable

from ordercore.application.dto import OrderDTO, order_to_dto
from ordercore.domain.exceptions import EntityNotFoundError
from ordercore.domain.repository.unit_of_work import UnitOfWork


class ShowOrderHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self, order_id: str, user_id: int | None = None) -> OrderDTO:
        """Return one order with its items.

        With ``user_id`` the lookup is scoped to that owner; someone else's
        order is reported exactly like a missing one.
        """
        with self._uow_factory() as uow:
            order = uow.orders.get_by_id(order_id, user_id=user_id)
        if order is None:
            raise EntityNotFoundError("Order not found")
        return order_to_dto(order)
