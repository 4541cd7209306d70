"""Application service: Update Order Status use case (admin).

Applies one step of the order state machine.  Illegal steps are rejected
with the current and requested status named.  Moving to CANCELLED gives
the stock back in the same unit of work as the status write.

The write is a compare-and-set on the status read at the start, so a
concurrent transition on the same order makes this one fail instead of
being applied on top of a stale state.
"""

from __future__ import annotations

from typing import Callable

import structlog

from ordercore.application.dto import OrderDTO, order_to_dto
from ordercore.domain.exceptions import (
    ConcurrentModificationError,
    EntityNotFoundError,
    ValidationError,
)
from ordercore.domain.model.order import OrderStatus
from ordercore.domain.repository.unit_of_work import UnitOfWork
from ordercore.domain.service.stock_ledger import StockLedger

logger = structlog.get_logger(__name__)


def parse_order_status(value: str | OrderStatus) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown order status: {value!r}") from exc


class UpdateOrderStatusHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(
        self,
        order_id: str,
        status: str | OrderStatus,
        admin_notes: str | None = None,
    ) -> OrderDTO:
        target = parse_order_status(status)

        with self._uow_factory() as uow:
            order = uow.orders.get_by_id(order_id, for_update=True)
            if order is None:
                raise EntityNotFoundError("Order not found")

            previous = order.status
            order.transition_to(target, admin_notes=admin_notes)

            if target == OrderStatus.CANCELLED:
                StockLedger(uow.products).restore_for_order(order)

            if not uow.orders.update(order, expected_status=previous):
                raise ConcurrentModificationError(
                    f"Order {order.order_number} was modified concurrently"
                )
            uow.commit()

        logger.info(
            "Order status updated",
            order_number=order.order_number,
            from_status=previous.value,
            to_status=target.value,
        )
        return order_to_dto(order)
