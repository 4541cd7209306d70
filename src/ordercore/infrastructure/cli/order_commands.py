"""CLI commands for the Order aggregate."""

from __future__ import annotations

from datetime import datetime, timezone

import click

from ordercore.application.dto import OrderDTO
from ordercore.application.update_order_status import parse_order_status
from ordercore.application.update_payment_status import parse_payment_status
from ordercore.domain.exceptions import DomainException
from ordercore.domain.model.order import OrderStatus, PaymentStatus
from ordercore.domain.repository.order_repository import OrderSearch
from ordercore.infrastructure.bootstrap import (
    attach_payment_order_handler,
    cancel_order_handler,
    claim_guest_orders_handler,
    list_orders_handler,
    show_guest_order_handler,
    show_order_handler,
    track_order_handler,
    update_order_status_handler,
    update_payment_status_handler,
)

_ORDER_STATUSES = [s.value for s in OrderStatus]
_PAYMENT_STATUSES = [s.value for s in PaymentStatus]


def _utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order {dto.order_number}  (status={dto.status}, payment={dto.payment_status})")
    click.echo(f"ID:       {dto.id}")
    click.echo(f"Created:  {dto.created_at}")
    if dto.is_guest:
        click.echo(f"Guest:    {dto.guest_email}")
    ship = dto.shipping_address
    click.echo(f"Ship to:  {ship['full_name']}, {ship['address_line1']}, {ship['city']} {ship['postal_code']}")
    click.echo()
    click.echo(f"  {'Product':<30} {'Qty':>5} {'Price':>10} {'Total':>10}")
    click.echo(f"  {'-'*58}")
    for item in dto.items:
        name = item.product_name
        if item.variant_name:
            name = f"{name} ({item.variant_name})"
        click.echo(f"  {name:<30} {item.quantity:>5} {item.price:>10} {item.total_price:>10}")
    click.echo(f"  {'-'*58}")
    click.echo(f"  {'Subtotal':<38} {dto.subtotal:>20}")
    click.echo(f"  {'Shipping':<38} {dto.shipping_amount:>20}")
    click.echo(f"  {'Tax':<38} {dto.tax_amount:>20}")
    if dto.discount_amount != "0.00":
        click.echo(f"  {'Discount':<38} {dto.discount_amount:>20}")
    click.echo(f"  {'Order Total':<38} {dto.total_amount:>20}")


@click.command("show")
@click.option("--id", "order_id", required=True, help="Order ID to display.")
@click.option("--user", "user_id", default=None, type=int, help="Restrict to this owner.")
def order_show(order_id: str, user_id: int | None) -> None:
    """Show details of an existing order."""
    handler = show_order_handler()

    try:
        dto = handler.handle(order_id, user_id=user_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    display_order(dto)


@click.command("list")
@click.option("--user", "user_id", default=None, type=int, help="Only this user's orders.")
@click.option("--status", type=click.Choice(_ORDER_STATUSES), default=None)
@click.option("--payment-status", type=click.Choice(_PAYMENT_STATUSES), default=None)
@click.option("--from", "start_date", type=click.DateTime(), default=None, help="Created on or after (UTC).")
@click.option("--to", "end_date", type=click.DateTime(), default=None, help="Created on or before (UTC).")
@click.option("--search", default=None, help="Order-number substring.")
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--limit", type=int, default=20, show_default=True)
def order_list(
    user_id: int | None,
    status: str | None,
    payment_status: str | None,
    start_date: datetime | None,
    end_date: datetime | None,
    search: str | None,
    page: int,
    limit: int,
) -> None:
    """List orders, newest first."""
    handler = list_orders_handler()
    criteria = OrderSearch(
        status=OrderStatus(status) if status else None,
        payment_status=PaymentStatus(payment_status) if payment_status else None,
        start_date=_utc(start_date),
        end_date=_utc(end_date),
        search=search,
        page=page,
        limit=limit,
    )

    try:
        if user_id is None:
            result = handler.list_all(criteria)
        else:
            result = handler.list_for_user(user_id, criteria)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not result.orders:
        click.echo("No orders found.")
        return

    click.echo(f"{'Order':<20} {'Status':<11} {'Payment':<9} {'Items':>5} {'Total':>12}  Created")
    click.echo("-" * 84)
    for o in result.orders:
        click.echo(
            f"{o.order_number:<20} {o.status:<11} {o.payment_status:<9} "
            f"{o.item_count:>5} {o.total_amount:>12}  {o.created_at}"
        )
    p = result.pagination
    click.echo(f"Page {p.page}/{p.total_pages} ({p.total} orders)")


@click.command("cancel")
@click.option("--id", "order_id", required=True, help="Order ID to cancel.")
@click.option("--user", "user_id", required=True, type=int, help="Owner of the order.")
def order_cancel(order_id: str, user_id: int) -> None:
    """Cancel your own pending or confirmed order (restores stock)."""
    handler = cancel_order_handler()

    try:
        dto = handler.handle(order_id, user_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.order_number} cancelled.")


@click.command("status")
@click.option("--id", "order_id", required=True, help="Order ID.")
@click.option("--to", "target", required=True, type=click.Choice(_ORDER_STATUSES), help="New status.")
@click.option("--notes", default=None, help="Admin notes.")
def order_status(order_id: str, target: str, notes: str | None) -> None:
    """Move an order to a new status (admin)."""
    handler = update_order_status_handler()

    try:
        dto = handler.handle(order_id, parse_order_status(target), admin_notes=notes)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.order_number} is now {dto.status}.")


@click.command("payment")
@click.option("--id", "order_id", required=True, help="Order ID.")
@click.option("--status", "payment_status", required=True, type=click.Choice(_PAYMENT_STATUSES))
@click.option("--payment-id", default=None, help="Payment provider's payment ID.")
def order_payment(order_id: str, payment_status: str, payment_id: str | None) -> None:
    """Record a payment status reported by the payment provider."""
    handler = update_payment_status_handler()

    try:
        handler.handle(order_id, parse_payment_status(payment_status), payment_id=payment_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Payment status of order {order_id} set to {payment_status}.")


@click.command("attach-payment")
@click.option("--id", "order_id", required=True, help="Order ID.")
@click.option("--provider-order-id", required=True, help="Payment provider's order reference.")
def order_attach_payment(order_id: str, provider_order_id: str) -> None:
    """Store the payment provider's order reference on an order."""
    handler = attach_payment_order_handler()

    try:
        handler.handle(order_id, provider_order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {order_id} linked to provider order {provider_order_id}.")


@click.command("track")
@click.option("--number", "order_number", required=True, help="Order number, e.g. SC-20260107-00001.")
@click.option("--email", required=True, help="Email of the account that placed the order.")
def order_track(order_number: str, email: str) -> None:
    """Look up an order's progress by number and email."""
    handler = track_order_handler()

    try:
        dto = handler.handle(order_number, email)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.order_number}")
    click.echo(f"  Status:   {dto.status}")
    click.echo(f"  Payment:  {dto.payment_status}")
    click.echo(f"  Total:    {dto.total_amount}")
    click.echo(f"  Placed:   {dto.created_at}")
    click.echo(f"  Updated:  {dto.updated_at}")
    for item in dto.items:
        click.echo(f"    {item.quantity} x {item.product_name}")


@click.command("guest-show")
@click.option("--id", "order_id", required=True, help="Order ID.")
@click.option("--email", required=True, help="Email the guest checked out with.")
def order_guest_show(order_id: str, email: str) -> None:
    """Show a guest order, e.g. to take its payment."""
    handler = show_guest_order_handler()

    try:
        dto = handler.handle(order_id, email)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    display_order(dto)


@click.command("claim")
@click.option("--user", "user_id", required=True, type=int, help="Account that takes the orders over.")
def order_claim(user_id: int) -> None:
    """Move guest orders placed with the account's email onto the account."""
    handler = claim_guest_orders_handler()

    try:
        claimed = handler.handle(user_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Claimed {claimed} guest order(s) for user {user_id}.")
