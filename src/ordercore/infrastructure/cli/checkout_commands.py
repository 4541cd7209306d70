"""CLI commands for checkout."""

from __future__ import annotations

import click

from ordercore.application.dto import CheckoutValidationDTO
from ordercore.domain.exceptions import DomainException, InsufficientStockError
from ordercore.domain.model.address import GuestAddress
from ordercore.infrastructure.bootstrap import (
    create_guest_order_handler,
    create_order_handler,
    validate_checkout_handler,
    validate_guest_checkout_handler,
)
from ordercore.infrastructure.cli.order_commands import display_order


@click.command("validate")
@click.option("--user", "user_id", required=True, type=int, help="User ID.")
@click.option("--shipping", "shipping_id", required=True, help="Shipping address ID.")
@click.option("--billing", "billing_id", default=None, help="Billing address ID (defaults to shipping).")
def checkout_validate(user_id: int, shipping_id: str, billing_id: str | None) -> None:
    """Preview the totals and stock issues of the user's active cart."""
    handler = validate_checkout_handler()

    try:
        dto = handler.handle(
            user_id=user_id,
            shipping_address_id=shipping_id,
            billing_address_id=billing_id,
            use_same_address=billing_id is None,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_preview(dto)


def _display_preview(dto: CheckoutValidationDTO) -> None:
    click.echo(f"Cart {dto.cart_id}: {dto.item_count} item(s), {dto.unique_item_count} line(s)")
    click.echo(f"  {'Subtotal':<12} {dto.subtotal:>12}")
    shipping = "FREE" if dto.is_free_shipping else dto.shipping
    click.echo(f"  {'Shipping':<12} {shipping:>12}")
    click.echo(f"  {'Tax ' + dto.tax_rate:<12} {dto.tax:>12}")
    click.echo(f"  {'Discount':<12} {dto.discount:>12}")
    click.echo(f"  {'Total':<12} {dto.total:>12}")

    if dto.valid:
        click.echo("Ready to check out.")
        return

    click.echo()
    click.echo("Issues:")
    for issue in dto.issues:
        click.echo(
            f"  {issue.product_name}: {issue.issue} "
            f"(requested {issue.requested}, available {issue.available})"
        )
    click.get_current_context().exit(1)


@click.command("create")
@click.option("--user", "user_id", required=True, type=int, help="User ID.")
@click.option("--shipping", "shipping_id", required=True, help="Shipping address ID.")
@click.option("--billing", "billing_id", default=None, help="Billing address ID (defaults to shipping).")
@click.option("--payment-method", required=True, help="Payment method, e.g. 'razorpay' or 'cod'.")
@click.option("--notes", default=None, help="Customer notes.")
def checkout_create(
    user_id: int,
    shipping_id: str,
    billing_id: str | None,
    payment_method: str,
    notes: str | None,
) -> None:
    """Turn the user's active cart into an order."""
    handler = create_order_handler()

    try:
        dto = handler.handle(
            user_id=user_id,
            shipping_address_id=shipping_id,
            payment_method=payment_method,
            billing_address_id=billing_id,
            use_same_address=billing_id is None,
            customer_notes=notes,
        )
    except InsufficientStockError as exc:
        for issue in exc.issues:
            click.echo(f"  {issue.product_name}: {issue.reason.value}", err=True)
        raise click.ClickException(str(exc))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.order_number} created.")
    display_order(dto)


def _guest_address_options(command):
    """Shipping address typed in on the command line (guests have no address book)."""
    options = [
        click.option("--guest", "guest_id", required=True, help="Guest session ID that owns the cart."),
        click.option("--name", "full_name", required=True, help="Recipient's full name."),
        click.option("--phone", required=True, help="Recipient's phone number."),
        click.option("--line1", "address_line1", required=True, help="Address line 1."),
        click.option("--line2", "address_line2", default=None, help="Address line 2."),
        click.option("--city", required=True),
        click.option("--state", required=True),
        click.option("--postal-code", required=True),
        click.option("--country", default="US", show_default=True),
    ]
    for option in reversed(options):
        command = option(command)
    return command


def _guest_address(fields: dict) -> GuestAddress:
    return GuestAddress(
        full_name=fields["full_name"],
        phone=fields["phone"],
        address_line1=fields["address_line1"],
        address_line2=fields["address_line2"],
        city=fields["city"],
        state=fields["state"],
        postal_code=fields["postal_code"],
        country=fields["country"],
    )


@click.command("guest-validate")
@_guest_address_options
def checkout_guest_validate(guest_id: str, **address) -> None:
    """Preview the totals and stock issues of a guest's active cart."""
    handler = validate_guest_checkout_handler()

    try:
        dto = handler.handle(guest_id, _guest_address(address))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_preview(dto)


@click.command("guest-create")
@_guest_address_options
@click.option("--email", required=True, help="Guest's contact email.")
@click.option("--payment-method", required=True, help="Payment method, e.g. 'razorpay' or 'cod'.")
@click.option("--notes", default=None, help="Customer notes.")
def checkout_guest_create(
    guest_id: str, email: str, payment_method: str, notes: str | None, **address
) -> None:
    """Turn a guest's active cart into an order."""
    handler = create_guest_order_handler()

    try:
        dto = handler.handle(
            guest_id=guest_id,
            guest_email=email,
            shipping_address=_guest_address(address),
            payment_method=payment_method,
            customer_notes=notes,
        )
    except InsufficientStockError as exc:
        for issue in exc.issues:
            click.echo(f"  {issue.product_name}: {issue.reason.value}", err=True)
        raise click.ClickException(str(exc))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.order_number} created for {dto.guest_email}.")
    display_order(dto)
