"""Application service: Create Guest Order use case.

Checkout without an account.  The cart belongs to a guest session, the
addresses are typed in rather than picked from an address book, and the
order carries the guest's email and phone instead of a user id.  Stock,
numbering, atomicity and the single-use cart rule are exactly those of
the registered checkout (see ``create_order``).
"""

from __future__ import annotations

from typing import Callable

from ordercore.application.create_order import (
    log_created,
    place_order,
    retry_on_number_conflict,
)
from ordercore.application.dto import OrderDTO, order_to_dto
from ordercore.application.notifications import (
    OrderNotifier,
    confirms_on_creation,
    send_confirmation,
)
from ordercore.application.validate_checkout import validate_guest_in
from ordercore.domain.model.address import GuestAddress
from ordercore.domain.model.customer import require_email
from ordercore.domain.model.order import Order
from ordercore.domain.repository.unit_of_work import UnitOfWork
from ordercore.domain.service.checkout_validator import CheckoutValidator
from ordercore.domain.service.order_number_generator import OrderNumberGenerator


class CreateGuestOrderHandler:

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
        guest_id: str,
        guest_email: str,
        shipping_address: GuestAddress,
        payment_method: str,
        billing_address: GuestAddress | None = None,
        use_same_address: bool = True,
        customer_notes: str | None = None,
    ) -> OrderDTO:
        """Create an order from the guest session's active cart.

        Raises:
            ValidationError: bad email, incomplete address or empty cart.
            EntityNotFoundError: the guest has no active cart.
            InsufficientStockError: any line cannot be fulfilled.
        """
        email = require_email(guest_email)

        def attempt() -> Order:
            with self._uow_factory() as uow:
                cart, result = validate_guest_in(
                    uow,
                    self._validator,
                    guest_id,
                    shipping_address,
                    billing_address,
                    use_same_address,
                )
                return place_order(
                    uow,
                    self._numbers,
                    cart,
                    result,
                    payment_method,
                    customer_notes,
                    user_id=None,
                    guest_email=email,
                    guest_phone=result.shipping_address.phone,
                )

        order = retry_on_number_conflict(attempt)
        log_created(order, guest_id=guest_id)
        dto = order_to_dto(order)
        if self._notifier is not None and confirms_on_creation(dto):
            send_confirmation(self._notifier, email, dto)
        return dto
