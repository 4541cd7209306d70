"""Order aggregate, the core of the domain.

The Order is an aggregate root that owns its line items.  Orders are
placed only through ``Order.place()`` (called by the order-creation use
case) and afterwards only change status or payment details.  Line items
are frozen snapshots: they never change once the order exists.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from ordercore.domain.exceptions import InvalidTransitionError, ValidationError
from ordercore.domain.model.address import AddressSnapshot
from ordercore.domain.model.customer import normalize_email
from ordercore.domain.model.product import StockKind, StockRef
from ordercore.domain.model.value_objects import Money, Quantity


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.REFUNDED}),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.REFUNDED: frozenset(),
}

# Statuses a customer may still cancel from on their own.
CUSTOMER_CANCELLABLE = frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class OrderItem:
    """Snapshot of what was bought, at the price it was bought for.

    ``product_id`` / ``variant_id`` are kept for traceability only and may
    point at catalog rows that no longer exist.
    """

    id: str
    product_id: str
    product_name: str
    quantity: Quantity
    unit_price: Money  # locked at order-creation time
    variant_id: str | None = None
    variant_name: str | None = None
    sku: str | None = None
    product_image: str | None = None

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity.value

    @property
    def stock_ref(self) -> StockRef:
        """The stock counter this item was drawn from."""
        if self.variant_id is not None:
            return StockRef(StockKind.VARIANT, self.variant_id)
        return StockRef(StockKind.PRODUCT, self.product_id)


@dataclass
class Order:
    """Aggregate root for customer orders.

    Use ``Order.place()`` for new orders.  The ``__init__`` is intentionally
    simple so the repository can reconstitute persisted orders without
    re-validating.
    """

    id: str
    order_number: str
    user_id: int | None
    items: list[OrderItem]
    subtotal: Money
    tax_amount: Money
    shipping_amount: Money
    discount_amount: Money
    total_amount: Money
    shipping_address: AddressSnapshot
    billing_address: AddressSnapshot
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    shipping_address_id: str | None = None
    billing_address_id: str | None = None
    payment_method: str | None = None
    provider_order_id: str | None = None
    provider_payment_id: str | None = None
    customer_notes: str | None = None
    admin_notes: str | None = None
    is_guest: bool = False
    guest_email: str | None = None
    guest_phone: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def place(
        id: str,
        order_number: str,
        user_id: int | None,
        subtotal: Money,
        tax_amount: Money,
        shipping_amount: Money,
        shipping_address: AddressSnapshot,
        billing_address: AddressSnapshot,
        discount_amount: Money | None = None,
        shipping_address_id: str | None = None,
        billing_address_id: str | None = None,
        payment_method: str | None = None,
        customer_notes: str | None = None,
        guest_email: str | None = None,
        guest_phone: str | None = None,
        now: datetime | None = None,
    ) -> Order:
        """Create a new pending order with its totals frozen.

        Amounts are rounded to cents here, the point where they are stored,
        and the total is derived from the rounded parts so that
        ``total = subtotal + tax + shipping - discount`` holds exactly.
        Orders without a user are guest orders and must carry the guest's
        email.
        """
        if not order_number:
            raise ValidationError("Order number is required")
        if user_id is None and not guest_email:
            raise ValidationError("Guest orders need a contact email")

        subtotal = subtotal.quantized()
        tax_amount = tax_amount.quantized()
        shipping_amount = shipping_amount.quantized()
        discount_amount = (discount_amount or Money.zero(subtotal.currency)).quantized()
        total = subtotal + tax_amount + shipping_amount - discount_amount

        created = now or _utcnow()
        return Order(
            id=id,
            order_number=order_number,
            user_id=user_id,
            items=[],
            subtotal=subtotal,
            tax_amount=tax_amount,
            shipping_amount=shipping_amount,
            discount_amount=discount_amount,
            total_amount=total,
            shipping_address=shipping_address,
            billing_address=billing_address,
            shipping_address_id=shipping_address_id,
            billing_address_id=billing_address_id,
            payment_method=payment_method,
            customer_notes=customer_notes,
            is_guest=user_id is None,
            guest_email=guest_email if user_id is None else None,
            guest_phone=guest_phone if user_id is None else None,
            created_at=created,
            updated_at=created,
        )

    # --- State transitions ----------------------------------------------------

    def can_transition_to(self, target: OrderStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self.status]

    def transition_to(self, target: OrderStatus, admin_notes: str | None = None) -> None:
        """Move to ``target`` if the transition table allows it.

        Stock restoration for cancellations must happen in the same unit of
        work (coordinated by the application handler via the StockLedger).
        """
        if not self.can_transition_to(target):
            raise InvalidTransitionError(
                f'Cannot transition from "{self.status.value}" to "{target.value}"'
            )
        self.status = target
        if admin_notes:
            self.admin_notes = admin_notes
        self.updated_at = _utcnow()

    def cancel_by_customer(self) -> None:
        """Transition PENDING|CONFIRMED -> CANCELLED on the customer's request."""
        if self.status not in CUSTOMER_CANCELLABLE:
            raise ValidationError(
                f'Cannot cancel order with status "{self.status.value}"'
            )
        self.transition_to(OrderStatus.CANCELLED)

    def record_payment(
        self, payment_status: PaymentStatus, payment_id: str | None = None
    ) -> None:
        """Apply a payment-provider callback.

        A successful payment also confirms the order; every other payment
        status is a plain field update.
        """
        self.payment_status = payment_status
        if payment_id:
            self.provider_payment_id = payment_id
        if payment_status == PaymentStatus.PAID:
            self.status = OrderStatus.CONFIRMED
        self.updated_at = _utcnow()

    def attach_provider_order(self, provider_order_id: str) -> None:
        if not provider_order_id or not provider_order_id.strip():
            raise ValidationError("Payment provider order id is required")
        self.provider_order_id = provider_order_id.strip()
        self.updated_at = _utcnow()

    # --- Computed properties --------------------------------------------------

    @property
    def item_count(self) -> int:
        return sum(item.quantity.value for item in self.items)

    def placed_by_guest_email(self, email: str) -> bool:
        """True for a guest order whose contact email matches ``email``."""
        return (
            self.is_guest
            and self.guest_email is not None
            and normalize_email(self.guest_email) == normalize_email(email)
        )

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self.status]
