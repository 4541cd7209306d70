"""Outbound notifications raised by the order use cases.

Delivery (email, SMS, queue) is an infrastructure concern; use cases only
see the ``OrderNotifier`` interface.  Notifications go out after the
order is committed, so a delivery failure is logged and never undoes or
fails the checkout.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import structlog

from ordercore.application.dto import OrderDTO

logger = structlog.get_logger(__name__)

# Online payments are confirmed by the payment flow once the money arrives.
CONFIRM_ON_CREATION = frozenset({"cod"})


class OrderNotifier(ABC):

    @abstractmethod
    def send_order_confirmation(self, recipient: str, order: OrderDTO) -> None:
        """Tell ``recipient`` that ``order`` has been placed."""


def confirms_on_creation(order: OrderDTO) -> bool:
    return (order.payment_method or "").lower() in CONFIRM_ON_CREATION


def send_confirmation(notifier: OrderNotifier, recipient: str | None, order: OrderDTO) -> bool:
    """Send the order confirmation; report whether it went out."""
    if not recipient:
        logger.warning("No recipient for order confirmation", order_number=order.order_number)
        return False
    try:
        notifier.send_order_confirmation(recipient, order)
    except Exception:
        logger.exception("Order confirmation failed", order_number=order.order_number)
        return False
    return True
