"""Order notifier that records confirmations in the application log.

Stands in for the mail service: each confirmation becomes one structured
log event carrying everything an email template would need.
"""

from __future__ import annotations

import structlog

from ordercore.application.dto import OrderDTO
from ordercore.application.notifications import OrderNotifier

logger = structlog.get_logger(__name__)


class LoggingOrderNotifier(OrderNotifier):

    def send_order_confirmation(self, recipient: str, order: OrderDTO) -> None:
        logger.info(
            "Order confirmation sent",
            recipient=recipient,
            order_number=order.order_number,
            customer_name=order.shipping_address.get("full_name"),
            items=[
                {"name": item.product_name, "variant": item.variant_name, "quantity": item.quantity}
                for item in order.items
            ],
            total=order.total_amount,
        )
