"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the outer layers (CLI, HTTP) and the
application layer without exposing domain internals.  Money is rendered
as a two-decimal string and enums as their wire values.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from ordercore.domain.model.checkout import StockIssue, ValidationResult
from ordercore.domain.model.order import Order, OrderItem


@dataclass(frozen=True)
class OrderItemDTO:
    id: str
    product_id: str
    variant_id: str | None
    product_name: str
    variant_name: str | None
    sku: str | None
    product_image: str | None
    price: str  # formatted, e.g. "1499.00"
    quantity: int
    total_price: str


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to the user."""

    id: str
    order_number: str
    user_id: int | None
    status: str
    payment_status: str
    subtotal: str
    tax_amount: str
    shipping_amount: str
    discount_amount: str
    total_amount: str
    payment_method: str | None
    provider_order_id: str | None
    provider_payment_id: str | None
    customer_notes: str | None
    admin_notes: str | None
    is_guest: bool
    guest_email: str | None
    guest_phone: str | None
    shipping_address: dict
    billing_address: dict
    items: list[OrderItemDTO]
    created_at: str
    updated_at: str

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)


@dataclass(frozen=True)
class OrderSummaryDTO:
    """Output: one row of an order listing."""

    id: str
    order_number: str
    is_guest: bool
    status: str
    payment_status: str
    total_amount: str
    item_count: int
    created_at: str


@dataclass(frozen=True)
class PaginationDTO:
    page: int
    limit: int
    total: int
    total_pages: int


@dataclass(frozen=True)
class OrderPageDTO:
    orders: list[OrderSummaryDTO]
    pagination: PaginationDTO


@dataclass(frozen=True)
class TrackedOrderDTO:
    """Output: the public view of an order found by number and email."""

    order_number: str
    status: str
    payment_status: str
    total_amount: str
    payment_method: str | None
    shipping_address: dict
    items: list[OrderItemDTO]
    created_at: str
    updated_at: str


@dataclass(frozen=True)
class StockIssueDTO:
    item_id: str
    product_id: str
    variant_id: str | None
    product_name: str
    requested: int
    available: int
    issue: str


@dataclass(frozen=True)
class CheckoutValidationDTO:
    """Output: checkout preview, always carrying totals and issues."""

    valid: bool
    cart_id: str
    item_count: int
    unique_item_count: int
    subtotal: str
    shipping: str
    is_free_shipping: bool
    free_shipping_threshold: str
    tax_rate: str  # e.g. "18%"
    tax: str
    discount: str
    total: str
    issues: list[StockIssueDTO]
    shipping_address: dict
    billing_address: dict


# --- Mapping -----------------------------------------------------------------


def order_item_to_dto(item: OrderItem) -> OrderItemDTO:
    return OrderItemDTO(
        id=item.id,
        product_id=item.product_id,
        variant_id=item.variant_id,
        product_name=item.product_name,
        variant_name=item.variant_name,
        sku=item.sku,
        product_image=item.product_image,
        price=str(item.unit_price),
        quantity=item.quantity.value,
        total_price=str(item.line_total),
    )


def order_to_dto(order: Order) -> OrderDTO:
    return OrderDTO(
        id=order.id,
        order_number=order.order_number,
        user_id=order.user_id,
        status=order.status.value,
        payment_status=order.payment_status.value,
        subtotal=str(order.subtotal),
        tax_amount=str(order.tax_amount),
        shipping_amount=str(order.shipping_amount),
        discount_amount=str(order.discount_amount),
        total_amount=str(order.total_amount),
        payment_method=order.payment_method,
        provider_order_id=order.provider_order_id,
        provider_payment_id=order.provider_payment_id,
        customer_notes=order.customer_notes,
        admin_notes=order.admin_notes,
        is_guest=order.is_guest,
        guest_email=order.guest_email,
        guest_phone=order.guest_phone,
        shipping_address=order.shipping_address.to_dict(),
        billing_address=order.billing_address.to_dict(),
        items=[order_item_to_dto(item) for item in order.items],
        created_at=order.created_at.isoformat(),
        updated_at=order.updated_at.isoformat(),
    )


def order_to_summary(order: Order, item_count: int) -> OrderSummaryDTO:
    return OrderSummaryDTO(
        id=order.id,
        order_number=order.order_number,
        is_guest=order.is_guest,
        status=order.status.value,
        payment_status=order.payment_status.value,
        total_amount=str(order.total_amount),
        item_count=item_count,
        created_at=order.created_at.isoformat(),
    )


def pagination(page: int, limit: int, total: int) -> PaginationDTO:
    return PaginationDTO(
        page=page,
        limit=limit,
        total=total,
        total_pages=math.ceil(total / limit) if limit else 0,
    )


def stock_issue_to_dto(issue: StockIssue) -> StockIssueDTO:
    return StockIssueDTO(
        item_id=issue.item_id,
        product_id=issue.product_id,
        variant_id=issue.variant_id,
        product_name=issue.product_name,
        requested=issue.requested,
        available=issue.available,
        issue=issue.reason.value,
    )


def validation_to_dto(result: ValidationResult) -> CheckoutValidationDTO:
    totals = result.totals
    return CheckoutValidationDTO(
        valid=result.valid,
        cart_id=result.cart_id,
        item_count=result.item_count,
        unique_item_count=result.unique_item_count,
        subtotal=str(totals.subtotal),
        shipping=str(totals.shipping),
        is_free_shipping=totals.is_free_shipping,
        free_shipping_threshold=str(totals.free_shipping_threshold),
        tax_rate=f"{(totals.tax_rate * 100).normalize():f}%",
        tax=str(totals.tax),
        discount=str(totals.discount),
        total=str(totals.total),
        issues=[stock_issue_to_dto(issue) for issue in result.issues],
        shipping_address=result.shipping_address.to_dict(),
        billing_address=result.billing_address.to_dict(),
    )
