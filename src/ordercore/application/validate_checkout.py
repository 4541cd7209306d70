"""Application service: Validate Checkout use case (query).

Loads the active cart, the catalog rows it refers to and the chosen
addresses, then lets the pure CheckoutValidator price the cart.
Nothing is written; stock problems are reported, not raised.

Registered users pick saved addresses by id.  Guests type their
addresses in and are identified by the guest session that owns the cart.
"""

from __future__ import annotations

import uuid
from typing import Callable

import structlog

from ordercore.application.dto import CheckoutValidationDTO, validation_to_dto
from ordercore.domain.exceptions import EntityNotFoundError, ValidationError
from ordercore.domain.model.address import AddressSnapshot, GuestAddress
from ordercore.domain.model.cart import Cart
from ordercore.domain.model.checkout import ValidationResult
from ordercore.domain.repository.unit_of_work import UnitOfWork
from ordercore.domain.service.address_snapshot_resolver import AddressSnapshotResolver
from ordercore.domain.service.checkout_validator import CheckoutValidator

logger = structlog.get_logger(__name__)


def _require_items(cart: Cart | None) -> Cart:
    if cart is None:
        raise EntityNotFoundError("No active cart found")
    if cart.is_empty:
        raise ValidationError("Cart is empty")
    return cart


def price_cart(
    uow: UnitOfWork,
    validator: CheckoutValidator,
    cart: Cart,
    shipping: AddressSnapshot,
    billing: AddressSnapshot,
) -> ValidationResult:
    # Batched reads: one query for products, one for variants
    product_ids = sorted({item.product_id for item in cart.items})
    variant_ids = sorted({item.variant_id for item in cart.items if item.variant_id})
    products = uow.products.get_products(product_ids)
    variants = uow.products.get_variants(variant_ids) if variant_ids else {}
    return validator.evaluate(cart, products, variants, shipping, billing)


def validate_in(
    uow: UnitOfWork,
    validator: CheckoutValidator,
    user_id: int,
    shipping_address_id: str,
    billing_address_id: str | None = None,
    use_same_address: bool = True,
) -> tuple[Cart, ValidationResult]:
    """Run checkout validation against an open unit of work.

    Shared by the preview (this module) and by order creation, which
    re-validates inside its own transaction.
    """
    cart = _require_items(uow.carts.get_active_for_user(user_id))
    resolver = AddressSnapshotResolver(uow.addresses)
    shipping, billing = resolver.resolve_pair(
        user_id, shipping_address_id, billing_address_id, use_same_address
    )
    return cart, price_cart(uow, validator, cart, shipping, billing)


def guest_snapshots(
    shipping_address: GuestAddress,
    billing_address: GuestAddress | None = None,
    use_same_address: bool = True,
) -> tuple[AddressSnapshot, AddressSnapshot]:
    """Snapshot typed-in addresses; billing reuses shipping when asked to."""
    shipping = shipping_address.snapshot(str(uuid.uuid4()), "Shipping")
    if use_same_address or billing_address is None:
        return shipping, shipping
    return shipping, billing_address.snapshot(str(uuid.uuid4()), "Billing")


def validate_guest_in(
    uow: UnitOfWork,
    validator: CheckoutValidator,
    guest_id: str,
    shipping_address: GuestAddress,
    billing_address: GuestAddress | None = None,
    use_same_address: bool = True,
) -> tuple[Cart, ValidationResult]:
    """Guest counterpart of ``validate_in``."""
    cart = _require_items(uow.carts.get_active_for_guest(guest_id))
    shipping, billing = guest_snapshots(shipping_address, billing_address, use_same_address)
    return cart, price_cart(uow, validator, cart, shipping, billing)


def _log_result(result: ValidationResult, **owner) -> None:
    logger.info(
        "Checkout validated",
        cart_id=result.cart_id,
        valid=result.valid,
        issue_count=len(result.issues),
        total=str(result.totals.total),
        **owner,
    )


class ValidateCheckoutHandler:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        validator: CheckoutValidator,
    ) -> None:
        self._uow_factory = uow_factory
        self._validator = validator

    def handle(
        self,
        user_id: int,
        shipping_address_id: str,
        billing_address_id: str | None = None,
        use_same_address: bool = True,
    ) -> CheckoutValidationDTO:
        with self._uow_factory() as uow:
            _, result = validate_in(
                uow,
                self._validator,
                user_id,
                shipping_address_id,
                billing_address_id,
                use_same_address,
            )

        _log_result(result, user_id=user_id)
        return validation_to_dto(result)


class ValidateGuestCheckoutHandler:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        validator: CheckoutValidator,
    ) -> None:
        self._uow_factory = uow_factory
        self._validator = validator

    def handle(
        self,
        guest_id: str,
        shipping_address: GuestAddress,
        billing_address: GuestAddress | None = None,
        use_same_address: bool = True,
    ) -> CheckoutValidationDTO:
        with self._uow_factory() as uow:
            _, result = validate_guest_in(
                uow,
                self._validator,
                guest_id,
                shipping_address,
                billing_address,
                use_same_address,
            )

        _log_result(result, guest_id=guest_id)
        return validation_to_dto(result)
