import click

from ordercore.domain.exceptions import DomainException
from ordercore.infrastructure import bootstrap
from ordercore.infrastructure.cli.checkout_commands import (
    checkout_create,
    checkout_guest_create,
    checkout_guest_validate,
    checkout_validate,
)
from ordercore.infrastructure.cli.db_commands import db_init
from ordercore.infrastructure.cli.order_commands import (
    order_attach_payment,
    order_cancel,
    order_claim,
    order_guest_show,
    order_list,
    order_payment,
    order_show,
    order_status,
    order_track,
)


@click.group()
def cli() -> None:
    """ordercore: checkout and order lifecycle"""
    try:
        bootstrap.init_logging()
    except DomainException as exc:
        raise click.ClickException(str(exc))


@cli.group()
def db() -> None:
    """Manage the database."""


@cli.group()
def checkout() -> None:
    """Validate carts and place orders."""


@cli.group()
def order() -> None:
    """Manage orders."""


# Register subcommands
db.add_command(db_init)
checkout.add_command(checkout_validate)
checkout.add_command(checkout_create)
checkout.add_command(checkout_guest_validate)
checkout.add_command(checkout_guest_create)
order.add_command(order_show)
order.add_command(order_list)
order.add_command(order_cancel)
order.add_command(order_status)
order.add_command(order_payment)
order.add_command(order_attach_payment)
order.add_command(order_track)
order.add_command(order_guest_show)
order.add_command(order_claim)
