"""Application service: Cancel Order use case (customer-initiated).

A customer may cancel their own order while it is still PENDING or
CONFIRMED.  The stock every item took is given back in the same unit of
work as the status write, so either both happen or neither does.
"""

from __future__ import annotations

from typing import Callable

import structlog

from ordercore.application.dto import OrderDTO, order_to_dto
from ordercore.domain.exceptions import ConcurrentModificationError, EntityNotFoundError
from ordercore.domain.repository.unit_of_work import UnitOfWork
from ordercore.domain.service.stock_ledger import StockLedger

logger = structlog.get_logger(__name__)


class CancelOrderHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self, order_id: str, user_id: int) -> OrderDTO:
        with self._uow_factory() as uow:
            order = uow.orders.get_by_id(order_id, user_id=user_id, for_update=True)
            if order is None:
                raise EntityNotFoundError("Order not found")

            previous = order.status
            order.cancel_by_customer()
            StockLedger(uow.products).restore_for_order(order)

            if not uow.orders.update(order, expected_status=previous):
                raise ConcurrentModificationError(
                    f"Order {order.order_number} was modified concurrently"
                )
            uow.commit()

        logger.info(
            "Order cancelled by customer",
            order_number=order.order_number,
            user_id=user_id,
            previous_status=previous.value,
        )
        return order_to_dto(order)
