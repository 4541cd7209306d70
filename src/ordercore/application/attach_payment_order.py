"""Application service: record the payment provider's order reference."""

from __future__ import annotations

from typing import Callable

from ordercore.domain.exceptions import ConcurrentModificationError, EntityNotFoundError
from ordercore.domain.repository.unit_of_work import UnitOfWork


class AttachPaymentOrderHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self, order_id: str, provider_order_id: str) -> None:
        with self._uow_factory() as uow:
            order = uow.orders.get_by_id(order_id, for_update=True)
            if order is None:
                raise EntityNotFoundError("Order not found")

            order.attach_provider_order(provider_order_id)
            if not uow.orders.update(order, expected_status=order.status):
                raise ConcurrentModificationError(
                    f"Order {order.order_number} was modified concurrently"
                )
            uow.commit()
