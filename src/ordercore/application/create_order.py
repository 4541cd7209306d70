"""Application service: Create Order use case.

Turns the user's active cart into an order.  Everything happens in one
unit of work:

1. Re-validate the cart (never trust an earlier preview).
2. Claim the order number from the day's counter.
3. Insert the order header, then its item snapshots.
4. Take stock with conditional decrements. This is the authoritative check.
5. Mark the cart converted, provided it is still active.

Any failure rolls back every write of the attempt.  A duplicate order
number restarts the attempt with a freshly generated number, a bounded
number of times.
"""

from __future__ import annotations

import uuid
from typing import Callable, TypeVar

import structlog

from ordercore.application.dto import OrderDTO, order_to_dto
from ordercore.application.notifications import (
    OrderNotifier,
    confirms_on_creation,
    send_confirmation,
)
from ordercore.application.validate_checkout import validate_in
from ordercore.domain.exceptions import (
    EntityNotFoundError,
    InsufficientStockError,
    OrderNumberConflictError,
)
from ordercore.domain.model.cart import Cart
from ordercore.domain.model.checkout import PricedLine, ValidationResult
from ordercore.domain.model.order import Order, OrderItem
from ordercore.domain.model.value_objects import Quantity
from ordercore.domain.repository.unit_of_work import UnitOfWork
from ordercore.domain.service.checkout_validator import CheckoutValidator
from ordercore.domain.service.order_number_generator import OrderNumberGenerator
from ordercore.domain.service.stock_ledger import StockLedger

logger = structlog.get_logger(__name__)

MAX_ORDER_NUMBER_ATTEMPTS = 3

T = TypeVar("T")


def retry_on_number_conflict(attempt: Callable[[], T]) -> T:
    """Run ``attempt`` again while it loses an order-number race."""
    number = 1
    while True:
        try:
            return attempt()
        except OrderNumberConflictError as exc:
            if number >= MAX_ORDER_NUMBER_ATTEMPTS:
                raise
            logger.warning(
                "Order number collision, retrying",
                order_number=exc.order_number,
                attempt=number,
            )
            number += 1


def place_order(
    uow: UnitOfWork,
    numbers: OrderNumberGenerator,
    cart: Cart,
    result: ValidationResult,
    payment_method: str,
    customer_notes: str | None = None,
    **owner,
) -> Order:
    """Steps 2-5 of checkout, then commit.

    ``owner`` carries the fields that differ between registered and guest
    orders: ``user_id`` and the saved address ids, or the guest contact.
    """
    if not result.valid:
        raise InsufficientStockError(
            f"Cannot create order: {result.describe_issues()}",
            result.issues,
        )

    now = numbers.now()
    totals = result.totals
    order = Order.place(
        id=str(uuid.uuid4()),
        order_number=numbers.next_number(uow.orders, now),
        subtotal=totals.subtotal,
        tax_amount=totals.tax,
        shipping_amount=totals.shipping,
        discount_amount=totals.discount,
        shipping_address=result.shipping_address,
        billing_address=result.billing_address,
        payment_method=payment_method,
        customer_notes=customer_notes,
        now=now,
        **owner,
    )
    order.items = [_snapshot(line) for line in result.lines]
    uow.orders.add(order)

    StockLedger(uow.products).decrement_for_lines(result.lines)

    cart.mark_converted()
    if not uow.carts.mark_converted(cart.id):
        logger.warning("Cart converted by a concurrent checkout", cart_id=cart.id)
        raise EntityNotFoundError("No active cart found")

    uow.commit()
    return order


def _snapshot(line: PricedLine) -> OrderItem:
    """Freeze what the customer sees now: name, variant, SKU, image, price."""
    return OrderItem(
        id=str(uuid.uuid4()),
        product_id=line.product_id,
        variant_id=line.priced.variant_id,
        product_name=line.product_name,
        variant_name=line.priced.variant_name,
        sku=line.priced.sku,
        product_image=line.product_image,
        quantity=Quantity(line.quantity),
        unit_price=line.priced.unit_price,
    )


def log_created(order: Order, **owner) -> None:
    logger.info(
        "Order created",
        order_id=order.id,
        order_number=order.order_number,
        total=str(order.total_amount),
        item_count=order.item_count,
        **owner,
    )


class CreateOrderHandler:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        validator: CheckoutValidator,
        number_generator: OrderNumberGenerator,
        notifier: OrderNotifier | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._validator = validator
        self._numbers = number_generator
        self._notifier = notifier

    def handle(
        self,
        user_id: int,
        shipping_address_id: str,
        payment_method: str,
        billing_address_id: str | None = None,
        use_same_address: bool = True,
        customer_notes: str | None = None,
    ) -> OrderDTO:
        """Create an order from the user's active cart.

        Raises:
            EntityNotFoundError: no active cart, including a cart another
                checkout converted while this one was running.
            ValidationError: empty cart or unknown address.
            InsufficientStockError: any line cannot be fulfilled, either at
                re-validation or when the stock is actually taken.
        """

        def attempt() -> Order:
            with self._uow_factory() as uow:
                cart, result = validate_in(
                    uow,
                    self._validator,
                    user_id,
                    shipping_address_id,
                    billing_address_id,
                    use_same_address,
                )
                return place_order(
                    uow,
                    self._numbers,
                    cart,
                    result,
                    payment_method,
                    customer_notes,
                    user_id=user_id,
                    shipping_address_id=shipping_address_id,
                    billing_address_id=(
                        shipping_address_id
                        if use_same_address
                        else billing_address_id or shipping_address_id
                    ),
                )

        order = retry_on_number_conflict(attempt)
        log_created(order, user_id=user_id)
        dto = order_to_dto(order)
        if self._notifier is not None and confirms_on_creation(dto):
            send_confirmation(self._notifier, self._account_email(user_id), dto)
        return dto

    def _account_email(self, user_id: int) -> str | None:
        with self._uow_factory() as uow:
            customer = uow.customers.get_by_id(user_id)
        return customer.email if customer else None
