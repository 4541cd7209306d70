"""Application service: Update Payment Status use case.

Entry point for payment-provider callbacks.  Marking an order PAID also
confirms it; other payment statuses are recorded as-is.
"""

from __future__ import annotations

from typing import Callable

import structlog

from ordercore.domain.exceptions import (
    ConcurrentModificationError,
    EntityNotFoundError,
    ValidationError,
)
from ordercore.domain.model.order import PaymentStatus
from ordercore.domain.repository.unit_of_work import UnitOfWork

logger = structlog.get_logger(__name__)


def parse_payment_status(value: str | PaymentStatus) -> PaymentStatus:
    if isinstance(value, PaymentStatus):
        return value
    try:
        return PaymentStatus(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown payment status: {value!r}") from exc


class UpdatePaymentStatusHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(
        self,
        order_id: str,
        payment_status: str | PaymentStatus,
        payment_id: str | None = None,
    ) -> None:
        target = parse_payment_status(payment_status)

        with self._uow_factory() as uow:
            order = uow.orders.get_by_id(order_id, for_update=True)
            if order is None:
                raise EntityNotFoundError("Order not found")

            previous = order.status
            order.record_payment(target, payment_id=payment_id)

            if not uow.orders.update(order, expected_status=previous):
                raise ConcurrentModificationError(
                    f"Order {order.order_number} was modified concurrently"
                )
            uow.commit()

        logger.info(
            "Payment status updated",
            order_number=order.order_number,
            payment_status=target.value,
            status=order.status.value,
        )
