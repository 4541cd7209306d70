"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Callable

from sqlalchemy import Engine
from sqlalchemy.engine import make_url

from ordercore.application.attach_payment_order import AttachPaymentOrderHandler
from ordercore.application.cancel_order import CancelOrderHandler
from ordercore.application.claim_guest_orders import ClaimGuestOrdersHandler
from ordercore.application.create_guest_order import CreateGuestOrderHandler
from ordercore.application.create_order import CreateOrderHandler
from ordercore.application.list_orders import ListOrdersHandler
from ordercore.application.notifications import OrderNotifier
from ordercore.application.show_guest_order import ShowGuestOrderHandler
from ordercore.application.show_order import ShowOrderHandler
from ordercore.application.track_order import TrackOrderHandler
from ordercore.application.update_order_status import UpdateOrderStatusHandler
from ordercore.application.update_payment_status import UpdatePaymentStatusHandler
from ordercore.application.validate_checkout import (
    ValidateCheckoutHandler,
    ValidateGuestCheckoutHandler,
)
from ordercore.domain.repository.unit_of_work import UnitOfWork
from ordercore.domain.service.checkout_validator import CheckoutValidator
from ordercore.domain.service.order_number_generator import OrderNumberGenerator
from ordercore.infrastructure.config import Settings
from ordercore.infrastructure.logging import configure_logging
from ordercore.infrastructure.notifications import LoggingOrderNotifier
from ordercore.infrastructure.persistence.database import (
    create_database_engine,
    create_session_factory,
)
from ordercore.infrastructure.persistence.unit_of_work import SqlAlchemyUnitOfWork


@lru_cache(maxsize=1)
def settings() -> Settings:
    return Settings.from_env()


@lru_cache(maxsize=1)
def engine() -> Engine:
    url = settings().database_url
    database = make_url(url).database
    if url.startswith("sqlite") and database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)
    return create_database_engine(url)


def init_logging() -> None:
    current = settings()
    configure_logging(current.environment, current.log_level)


def uow_factory() -> Callable[[], UnitOfWork]:
    session_factory = create_session_factory(engine())
    return lambda: SqlAlchemyUnitOfWork(session_factory)


def checkout_validator() -> CheckoutValidator:
    return CheckoutValidator(settings().pricing)


def order_notifier() -> OrderNotifier:
    return LoggingOrderNotifier()


def order_number_generator() -> OrderNumberGenerator:
    return OrderNumberGenerator(prefix=settings().order_prefix)


def validate_checkout_handler() -> ValidateCheckoutHandler:
    return ValidateCheckoutHandler(uow_factory(), checkout_validator())


def validate_guest_checkout_handler() -> ValidateGuestCheckoutHandler:
    return ValidateGuestCheckoutHandler(uow_factory(), checkout_validator())


def create_order_handler() -> CreateOrderHandler:
    return CreateOrderHandler(
        uow_factory(),
        checkout_validator(),
        order_number_generator(),
        order_notifier(),
    )


def create_guest_order_handler() -> CreateGuestOrderHandler:
    return CreateGuestOrderHandler(
        uow_factory(),
        checkout_validator(),
        order_number_generator(),
        order_notifier(),
    )


def show_order_handler() -> ShowOrderHandler:
    return ShowOrderHandler(uow_factory())


def show_guest_order_handler() -> ShowGuestOrderHandler:
    return ShowGuestOrderHandler(uow_factory())


def claim_guest_orders_handler() -> ClaimGuestOrdersHandler:
    return ClaimGuestOrdersHandler(uow_factory())


def list_orders_handler() -> ListOrdersHandler:
    return ListOrdersHandler(uow_factory())


def cancel_order_handler() -> CancelOrderHandler:
    return CancelOrderHandler(uow_factory())


def update_order_status_handler() -> UpdateOrderStatusHandler:
    return UpdateOrderStatusHandler(uow_factory())


def update_payment_status_handler() -> UpdatePaymentStatusHandler:
    return UpdatePaymentStatusHandler(uow_factory())


def attach_payment_order_handler() -> AttachPaymentOrderHandler:
    return AttachPaymentOrderHandler(uow_factory())


def track_order_handler() -> TrackOrderHandler:
    return TrackOrderHandler(uow_factory())
