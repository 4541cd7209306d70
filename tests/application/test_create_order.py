"""Integration tests for the CreateOrder use case.

Uses the in-memory fake unit of work, no database.
"""

import pytest

from ordercore.application.create_order import MAX_ORDER_NUMBER_ATTEMPTS, CreateOrderHandler
from ordercore.domain.exceptions import (
    EntityNotFoundError,
    InsufficientStockError,
    OrderNumberConflictError,
    ValidationError,
)
from ordercore.domain.model.cart import CartStatus
from ordercore.domain.model.checkout import StockIssueReason
from ordercore.domain.model.customer import Customer
from ordercore.domain.model.product import ProductVariant
from ordercore.domain.model.value_objects import Money
from ordercore.domain.service.checkout_validator import CheckoutValidator
from ordercore.domain.service.order_number_generator import OrderNumberGenerator
from tests.fakes import (
    FakeStore,
    FakeUnitOfWorkFactory,
    RecordingNotifier,
    fixed_clock,
    make_address,
    make_cart,
    make_product,
)


def _setup(
    shirt_stock: int = 10, tote_stock: int = 10
) -> tuple[CreateOrderHandler, FakeStore, FakeUnitOfWorkFactory]:
    """Build handler over a store holding two products, one address and one cart."""
    store = FakeStore()
    store.add_product(make_product("p-1", "Linen Shirt", "1499.00", stock=shirt_stock))
    store.add_product(make_product("p-2", "Canvas Tote", "599.00", stock=tote_stock))
    store.add_address(make_address("addr-1", user_id=1))
    store.add_cart(make_cart([("p-1", 2), ("p-2", 1)]))
    factory = FakeUnitOfWorkFactory(store)
    handler = CreateOrderHandler(
        factory, CheckoutValidator(), OrderNumberGenerator(clock=fixed_clock)
    )
    return handler, store, factory


def _place(handler: CreateOrderHandler, user_id: int = 1, **kwargs):
    kwargs.setdefault("shipping_address_id", f"addr-{user_id}")
    kwargs.setdefault("payment_method", "razorpay")
    return handler.handle(user_id=user_id, **kwargs)


class TestCreateOrderHappyPath:

    def test_creates_order_with_correct_totals(self):
        handler, _, _ = _setup()
        dto = _place(handler)
        assert dto.status == "pending"
        assert dto.payment_status == "pending"
        assert dto.subtotal == "3597.00"
        assert dto.shipping_amount == "0.00"
        assert dto.tax_amount == "647.46"
        assert dto.discount_amount == "0.00"
        assert dto.total_amount == "4244.46"
        assert dto.item_count == 3

    def test_assigns_order_number(self):
        handler, _, _ = _setup()
        dto = _place(handler)
        assert dto.order_number == "SC-20260107-00001"

    def test_persists_order_with_items(self):
        handler, store, _ = _setup()
        dto = _place(handler)
        saved = store.orders[dto.id]
        assert saved.order_number == dto.order_number
        assert sorted(i.product_name for i in saved.items) == ["Canvas Tote", "Linen Shirt"]

    def test_decrements_stock(self):
        handler, store, _ = _setup(shirt_stock=5, tote_stock=1)
        _place(handler)
        assert store.products["p-1"].stock_quantity == 3
        assert store.products["p-2"].stock_quantity == 0

    def test_converts_cart(self):
        handler, store, _ = _setup()
        _place(handler)
        assert store.carts["cart-1"].status == CartStatus.CONVERTED

    def test_commits_once(self):
        handler, _, factory = _setup()
        _place(handler)
        assert [uow.committed for uow in factory.created] == [True]

    def test_records_payment_method_and_notes(self):
        handler, _, _ = _setup()
        dto = _place(handler, payment_method="cod", customer_notes="Ring the bell")
        assert dto.payment_method == "cod"
        assert dto.customer_notes == "Ring the bell"

    def test_snapshots_address(self):
        handler, store, _ = _setup()
        dto = _place(handler)
        store.addresses["addr-1"].city = "Hubballi"
        assert store.orders[dto.id].shipping_address.city == "Bengaluru"
        assert dto.billing_address == dto.shipping_address

    def test_separate_billing_address(self):
        handler, store, _ = _setup()
        store.add_address(make_address("addr-9", user_id=1, city="Mysuru"))
        dto = _place(handler, billing_address_id="addr-9", use_same_address=False)
        assert dto.billing_address["city"] == "Mysuru"
        assert store.orders[dto.id].billing_address_id == "addr-9"

    def test_sequential_numbers(self):
        handler, store, _ = _setup()
        first = _place(handler)
        store.add_cart(make_cart([("p-1", 1)], cart_id="cart-2"))
        second = _place(handler)
        assert first.order_number == "SC-20260107-00001"
        assert second.order_number == "SC-20260107-00002"


class TestCreateOrderPriceLock:

    def test_price_snapshot_at_creation(self):
        handler, store, _ = _setup()
        dto = _place(handler)

        store.products["p-1"].price = Money.of("9999.00")
        store.products["p-1"].name = "Renamed Shirt"

        saved = store.orders[dto.id]
        shirt = next(i for i in saved.items if i.product_id == "p-1")
        assert shirt.unit_price == Money.of("1499.00")
        assert shirt.product_name == "Linen Shirt"
        assert str(saved.total_amount) == "4244.46"

    def test_variant_snapshot(self):
        handler, store, _ = _setup()
        store.add_variant(
            ProductVariant(
                id="v-1",
                product_id="p-1",
                stock_quantity=3,
                price=Money.of("1599.00"),
                sku="SHIRT-L",
                options={"Size": "L"},
            )
        )
        store.carts["cart-1"] = make_cart([("p-1", 2, "v-1")])
        dto = _place(handler)

        [item] = dto.items
        assert item.variant_id == "v-1"
        assert item.variant_name == "Size: L"
        assert item.sku == "SHIRT-L"
        assert item.price == "1599.00"
        assert store.variants["v-1"].stock_quantity == 1
        assert store.products["p-1"].stock_quantity == 10


class TestCreateOrderValidation:

    def test_no_active_cart(self):
        handler, _, _ = _setup()
        with pytest.raises(EntityNotFoundError, match="No active cart found"):
            _place(handler, user_id=2, shipping_address_id="addr-1")

    def test_empty_cart(self):
        handler, store, _ = _setup()
        store.carts["cart-1"] = make_cart([])
        with pytest.raises(ValidationError, match="Cart is empty"):
            _place(handler)

    def test_unknown_shipping_address(self):
        handler, _, _ = _setup()
        with pytest.raises(ValidationError, match="Shipping address not found"):
            _place(handler, shipping_address_id="addr-404")

    def test_unknown_billing_address(self):
        handler, _, _ = _setup()
        with pytest.raises(ValidationError, match="Billing address not found"):
            _place(handler, billing_address_id="addr-404", use_same_address=False)

    def test_insufficient_stock_lists_issues(self):
        handler, _, _ = _setup(shirt_stock=1, tote_stock=0)
        with pytest.raises(InsufficientStockError) as exc_info:
            _place(handler)
        assert str(exc_info.value) == (
            "Cannot create order: Linen Shirt - insufficient_stock, "
            "Canvas Tote - out_of_stock"
        )
        assert [i.reason for i in exc_info.value.issues] == [
            StockIssueReason.INSUFFICIENT_STOCK,
            StockIssueReason.OUT_OF_STOCK,
        ]

    def test_unavailable_product_blocks_order(self):
        handler, store, _ = _setup()
        store.products["p-2"].is_active = False
        with pytest.raises(InsufficientStockError, match="Canvas Tote - product_unavailable"):
            _place(handler)


class TestCreateOrderAtomicity:

    def test_failed_checkout_leaves_nothing_behind(self):
        handler, store, factory = _setup(shirt_stock=5, tote_stock=0)
        with pytest.raises(InsufficientStockError):
            _place(handler)
        assert store.orders == {}
        assert store.products["p-1"].stock_quantity == 5
        assert store.carts["cart-1"].status == CartStatus.ACTIVE
        assert not any(uow.committed for uow in factory.created)

    def test_decrement_refusal_rolls_back_earlier_lines(self):
        _, store, _ = _setup(shirt_stock=5, tote_stock=1)

        # Stock vanishes between validation and the decrement of the second line
        class ShrinkingValidator(CheckoutValidator):
            def evaluate(self, *args, **kwargs):
                result = super().evaluate(*args, **kwargs)
                store.products["p-2"].stock_quantity = 0
                return result

        handler = CreateOrderHandler(
            FakeUnitOfWorkFactory(store),
            ShrinkingValidator(),
            OrderNumberGenerator(clock=fixed_clock),
        )
        with pytest.raises(InsufficientStockError, match="Canvas Tote - insufficient_stock"):
            _place(handler)

        assert store.orders == {}
        assert store.products["p-1"].stock_quantity == 5
        assert store.products["p-2"].stock_quantity == 1
        assert store.carts["cart-1"].status == CartStatus.ACTIVE

    def test_cart_cannot_be_checked_out_twice(self):
        handler, store, _ = _setup()
        _place(handler)
        with pytest.raises(EntityNotFoundError, match="No active cart found"):
            _place(handler)
        assert len(store.orders) == 1
        assert store.products["p-1"].stock_quantity == 8


class TestOrderNumberRetry:

    def _handler(self, store: FakeStore, generator: OrderNumberGenerator) -> CreateOrderHandler:
        return CreateOrderHandler(FakeUnitOfWorkFactory(store), CheckoutValidator(), generator)

    def test_collision_is_retried_with_a_fresh_number(self):
        _, store, _ = _setup()
        store.add_cart(make_cart([("p-2", 1)], cart_id="cart-x", user_id=7))
        store.add_address(make_address("addr-7", user_id=7))
        first = _place(self._handler(store, OrderNumberGenerator(clock=fixed_clock)), user_id=7)

        class StaleGenerator(OrderNumberGenerator):
            calls = 0

            def next_number(self, order_repo, now=None):
                StaleGenerator.calls += 1
                if StaleGenerator.calls == 1:
                    return first.order_number
                return super().next_number(order_repo, now)

        dto = _place(self._handler(store, StaleGenerator(clock=fixed_clock)))
        assert StaleGenerator.calls == 2
        assert dto.order_number == "SC-20260107-00002"
        assert store.products["p-1"].stock_quantity == 8
        assert store.products["p-2"].stock_quantity == 8

    def test_repeated_collisions_give_up(self):
        _, store, _ = _setup()
        store.add_cart(make_cart([("p-2", 1)], cart_id="cart-x", user_id=7))
        store.add_address(make_address("addr-7", user_id=7))
        first = _place(self._handler(store, OrderNumberGenerator(clock=fixed_clock)), user_id=7)

        class StuckGenerator(OrderNumberGenerator):
            calls = 0

            def next_number(self, order_repo, now=None):
                StuckGenerator.calls += 1
                return first.order_number

        with pytest.raises(OrderNumberConflictError):
            _place(self._handler(store, StuckGenerator(clock=fixed_clock)))
        assert StuckGenerator.calls == MAX_ORDER_NUMBER_ATTEMPTS
        assert len(store.orders) == 1
        assert store.products["p-1"].stock_quantity == 10
        assert store.carts["cart-1"].status == CartStatus.ACTIVE


class TestOrderConfirmation:

    def _handler(self, notifier: RecordingNotifier) -> tuple[CreateOrderHandler, FakeStore]:
        _, store, _ = _setup()
        store.add_customer(Customer(id=1, email="asha@example.com"))
        handler = CreateOrderHandler(
            FakeUnitOfWorkFactory(store),
            CheckoutValidator(),
            OrderNumberGenerator(clock=fixed_clock),
            notifier,
        )
        return handler, store

    def test_cash_on_delivery_is_confirmed_to_the_account_email(self):
        notifier = RecordingNotifier()
        handler, _ = self._handler(notifier)
        dto = _place(handler, payment_method="cod")
        [(recipient, sent)] = notifier.sent
        assert recipient == "asha@example.com"
        assert sent.order_number == dto.order_number

    def test_online_payment_waits_for_the_payment(self):
        notifier = RecordingNotifier()
        handler, _ = self._handler(notifier)
        _place(handler, payment_method="razorpay")
        assert notifier.sent == []

    def test_delivery_failure_does_not_fail_checkout(self):
        handler, store = self._handler(RecordingNotifier(fail=True))
        dto = _place(handler, payment_method="cod")
        assert store.orders[dto.id].order_number == dto.order_number
        assert store.carts["cart-1"].status == CartStatus.CONVERTED

    def test_failed_checkout_sends_nothing(self):
        notifier = RecordingNotifier()
        handler, store = self._handler(notifier)
        store.products["p-1"].stock_quantity = 0
        with pytest.raises(InsufficientStockError):
            _place(handler, payment_method="cod")
        assert notifier.sent == []
