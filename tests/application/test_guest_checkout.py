"""Integration tests for checkout without an account.

Covers the guest preview, guest order creation, looking a guest order up
for payment, tracking it, and claiming guest orders into an account.
"""

import pytest

from ordercore.application.claim_guest_orders import ClaimGuestOrdersHandler
from ordercore.application.create_guest_order import CreateGuestOrderHandler
from ordercore.application.list_orders import ListOrdersHandler
from ordercore.application.show_guest_order import ShowGuestOrderHandler
from ordercore.application.track_order import TrackOrderHandler
from ordercore.application.validate_checkout import ValidateGuestCheckoutHandler
from ordercore.domain.exceptions import (
    EntityNotFoundError,
    InsufficientStockError,
    ValidationError,
)
from ordercore.domain.model.address import GuestAddress
from ordercore.domain.model.cart import CartStatus
from ordercore.domain.model.customer import Customer
from ordercore.domain.repository.order_repository import OrderSearch
from ordercore.domain.service.checkout_validator import CheckoutValidator
from ordercore.domain.service.order_number_generator import OrderNumberGenerator
from tests.fakes import (
    FakeStore,
    FakeUnitOfWorkFactory,
    RecordingNotifier,
    fixed_clock,
    make_cart,
    make_guest_address,
    make_order,
    make_product,
)

GUEST = "guest-7f3a"
EMAIL = "Meera@Example.com"


def _setup(
    shirt_stock: int = 10, notifier: RecordingNotifier | None = None
) -> tuple[CreateGuestOrderHandler, FakeStore, FakeUnitOfWorkFactory]:
    """Two products and one guest cart; user 5 has an account with the guest's email."""
    store = FakeStore()
    store.add_product(make_product("p-1", "Linen Shirt", "1499.00", stock=shirt_stock))
    store.add_product(make_product("p-2", "Canvas Tote", "599.00"))
    store.add_cart(make_cart([("p-1", 2), ("p-2", 1)], cart_id="gcart-1", user_id=None, guest_id=GUEST))
    store.add_customer(Customer(id=5, email="meera@example.com"))
    factory = FakeUnitOfWorkFactory(store)
    handler = CreateGuestOrderHandler(
        factory, CheckoutValidator(), OrderNumberGenerator(clock=fixed_clock), notifier
    )
    return handler, store, factory


def _place(handler: CreateGuestOrderHandler, **kwargs):
    kwargs.setdefault("guest_id", GUEST)
    kwargs.setdefault("guest_email", EMAIL)
    kwargs.setdefault("shipping_address", make_guest_address())
    kwargs.setdefault("payment_method", "razorpay")
    return handler.handle(**kwargs)


class TestValidateGuestCheckout:

    def test_preview_of_guest_cart(self):
        _, _, factory = _setup()
        dto = ValidateGuestCheckoutHandler(factory, CheckoutValidator()).handle(
            GUEST, make_guest_address()
        )
        assert dto.valid
        assert dto.cart_id == "gcart-1"
        assert dto.subtotal == "3597.00"
        assert dto.total == "4244.46"

    def test_reports_stock_issues(self):
        _, _, factory = _setup(shirt_stock=1)
        dto = ValidateGuestCheckoutHandler(factory, CheckoutValidator()).handle(
            GUEST, make_guest_address()
        )
        assert not dto.valid
        assert [i.issue for i in dto.issues] == ["insufficient_stock"]

    def test_unknown_guest(self):
        _, _, factory = _setup()
        with pytest.raises(EntityNotFoundError, match="No active cart found"):
            ValidateGuestCheckoutHandler(factory, CheckoutValidator()).handle(
                "guest-other", make_guest_address()
            )

    def test_account_cart_is_not_a_guest_cart(self):
        _, store, factory = _setup()
        store.carts["gcart-1"].user_id = 5
        with pytest.raises(EntityNotFoundError, match="No active cart found"):
            ValidateGuestCheckoutHandler(factory, CheckoutValidator()).handle(
                GUEST, make_guest_address()
            )

    def test_incomplete_address(self):
        _, _, factory = _setup()
        with pytest.raises(ValidationError, match="Shipping address: City is required"):
            ValidateGuestCheckoutHandler(factory, CheckoutValidator()).handle(
                GUEST, make_guest_address(city="  ")
            )


class TestCreateGuestOrder:

    def test_creates_guest_order(self):
        handler, store, _ = _setup()
        dto = _place(handler)
        assert dto.order_number == "SC-20260107-00001"
        assert dto.user_id is None
        assert dto.is_guest
        assert dto.guest_email == EMAIL
        assert dto.guest_phone == "+91 99000 11111"
        assert dto.total_amount == "4244.46"
        assert store.orders[dto.id].is_guest

    def test_takes_stock_and_converts_cart(self):
        handler, store, _ = _setup(shirt_stock=5)
        _place(handler)
        assert store.products["p-1"].stock_quantity == 3
        assert store.products["p-2"].stock_quantity == 9
        assert store.carts["gcart-1"].status == CartStatus.CONVERTED

    def test_address_is_trimmed_into_snapshot(self):
        handler, _, _ = _setup()
        dto = _place(handler, shipping_address=make_guest_address(city=" Mysuru "))
        assert dto.shipping_address["city"] == "Mysuru"
        assert dto.billing_address == dto.shipping_address

    def test_separate_billing_address(self):
        handler, _, _ = _setup()
        dto = _place(
            handler,
            billing_address=make_guest_address(full_name="Accounts Dept", city="Chennai"),
            use_same_address=False,
        )
        assert dto.shipping_address["city"] == "Bengaluru"
        assert dto.billing_address["full_name"] == "Accounts Dept"
        assert dto.billing_address["city"] == "Chennai"

    def test_country_defaults_to_us(self):
        handler, _, _ = _setup()
        address = GuestAddress(
            full_name="Meera Iyer",
            phone="+91 99000 11111",
            address_line1="4 Church Street",
            city="Bengaluru",
            state="Karnataka",
            postal_code="560001",
        )
        dto = _place(handler, shipping_address=address)
        assert dto.shipping_address["country"] == "US"

    @pytest.mark.parametrize("email", ["", "   ", "meera", "meera@example", "me era@example.com"])
    def test_invalid_email(self, email):
        handler, store, _ = _setup()
        with pytest.raises(ValidationError, match="Valid email is required"):
            _place(handler, guest_email=email)
        assert store.orders == {}
        assert store.carts["gcart-1"].status == CartStatus.ACTIVE

    def test_missing_phone(self):
        handler, store, _ = _setup()
        with pytest.raises(ValidationError, match="Shipping address: Phone number is required"):
            _place(handler, shipping_address=make_guest_address(phone=""))
        assert store.orders == {}

    def test_insufficient_stock_leaves_nothing_behind(self):
        handler, store, _ = _setup(shirt_stock=1)
        with pytest.raises(InsufficientStockError, match="Linen Shirt - insufficient_stock"):
            _place(handler)
        assert store.orders == {}
        assert store.products["p-2"].stock_quantity == 10
        assert store.carts["gcart-1"].status == CartStatus.ACTIVE

    def test_cart_cannot_be_checked_out_twice(self):
        handler, store, _ = _setup()
        _place(handler)
        with pytest.raises(EntityNotFoundError, match="No active cart found"):
            _place(handler)
        assert len(store.orders) == 1

    def test_shares_the_day_counter_with_account_orders(self):
        handler, store, _ = _setup()
        account_order = make_order(order_id="o-1", order_number="SC-20260107-00004")
        store.orders[account_order.id] = account_order
        dto = _place(handler)
        assert dto.order_number == "SC-20260107-00005"

    def test_cash_on_delivery_confirmed_to_guest_email(self):
        notifier = RecordingNotifier()
        handler, _, _ = _setup(notifier=notifier)
        dto = _place(handler, payment_method="cod")
        [(recipient, sent)] = notifier.sent
        assert recipient == EMAIL
        assert sent.id == dto.id

    def test_online_payment_not_confirmed_yet(self):
        notifier = RecordingNotifier()
        handler, _, _ = _setup(notifier=notifier)
        _place(handler)
        assert notifier.sent == []


class TestShowGuestOrder:

    def test_found_with_checkout_email(self):
        handler, _, factory = _setup()
        placed = _place(handler)
        dto = ShowGuestOrderHandler(factory).handle(placed.id, " meera@EXAMPLE.com ")
        assert dto.order_number == placed.order_number
        assert dto.total_amount == "4244.46"

    def test_wrong_email_looks_like_missing_order(self):
        handler, _, factory = _setup()
        placed = _place(handler)
        with pytest.raises(EntityNotFoundError, match="Order not found"):
            ShowGuestOrderHandler(factory).handle(placed.id, "someone@example.com")

    def test_account_orders_are_not_guest_orders(self):
        _, store, factory = _setup()
        store.orders["o-1"] = make_order(user_id=5)
        with pytest.raises(EntityNotFoundError, match="Order not found"):
            ShowGuestOrderHandler(factory).handle("o-1", "meera@example.com")


class TestTrackGuestOrder:

    def test_tracked_with_checkout_email(self):
        handler, _, factory = _setup()
        placed = _place(handler)
        dto = TrackOrderHandler(factory).handle(placed.order_number, "MEERA@example.com")
        assert dto.status == "pending"

    def test_other_email_rejected(self):
        handler, _, factory = _setup()
        placed = _place(handler)
        with pytest.raises(EntityNotFoundError, match="Order not found"):
            TrackOrderHandler(factory).handle(placed.order_number, "asha@example.com")


class TestClaimGuestOrders:

    def test_moves_matching_orders_to_account(self):
        handler, store, factory = _setup()
        placed = _place(handler)

        claimed = ClaimGuestOrdersHandler(factory).handle(5)

        assert claimed == 1
        order = store.orders[placed.id]
        assert order.user_id == 5
        assert not order.is_guest
        page = ListOrdersHandler(factory).list_for_user(5, OrderSearch())
        assert [o.id for o in page.orders] == [placed.id]

    def test_claimed_order_no_longer_shown_as_guest_order(self):
        handler, _, factory = _setup()
        placed = _place(handler)
        ClaimGuestOrdersHandler(factory).handle(5)
        with pytest.raises(EntityNotFoundError):
            ShowGuestOrderHandler(factory).handle(placed.id, EMAIL)

    def test_other_guests_orders_stay(self):
        handler, store, factory = _setup()
        placed = _place(handler, guest_email="someone@example.com")
        assert ClaimGuestOrdersHandler(factory).handle(5) == 0
        assert store.orders[placed.id].is_guest
        assert store.orders[placed.id].user_id is None

    def test_claim_commits(self):
        handler, _, factory = _setup()
        _place(handler)
        ClaimGuestOrdersHandler(factory).handle(5)
        assert factory.created[-1].committed

    def test_unknown_user(self):
        _, _, factory = _setup()
        with pytest.raises(EntityNotFoundError, match="User not found"):
            ClaimGuestOrdersHandler(factory).handle(404)
