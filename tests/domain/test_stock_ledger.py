"""Unit tests for the StockLedger domain service."""

import pytest

from ordercore.domain.exceptions import InsufficientStockError, ValidationError
from ordercore.domain.model.checkout import PricedLine, StockIssueReason
from ordercore.domain.model.product import (
    ProductVariant,
    StockKind,
    StockRef,
    resolve_priced_entity,
)
from ordercore.domain.model.value_objects import Money
from ordercore.domain.service.stock_ledger import StockLedger
from tests.fakes import FakeProductRepository, FakeStore, make_order, make_product

SHIRT = StockRef(StockKind.PRODUCT, "p-1")


def _setup(stock: int = 5) -> tuple[StockLedger, FakeStore]:
    store = FakeStore()
    store.add_product(make_product("p-1", "Linen Shirt", stock=stock))
    store.add_product(make_product("p-2", "Canvas Tote", "599.00", stock=1))
    return StockLedger(FakeProductRepository(store)), store


def _line(store: FakeStore, product_id: str, quantity: int) -> PricedLine:
    product = store.products[product_id]
    return PricedLine(
        item_id=f"item-{product_id}",
        product_id=product_id,
        product_name=product.name,
        quantity=quantity,
        priced=resolve_priced_entity(product, None),
    )


class TestDecrement:

    def test_decrement_reduces_stock(self):
        ledger, store = _setup(stock=5)
        ledger.decrement(SHIRT, 3)
        assert store.stock(SHIRT) == 2

    def test_decrement_to_exactly_zero(self):
        ledger, store = _setup(stock=2)
        ledger.decrement(SHIRT, 2)
        assert store.stock(SHIRT) == 0

    def test_decrement_past_zero_refused(self):
        ledger, store = _setup(stock=2)
        with pytest.raises(InsufficientStockError, match="need 3, have 2"):
            ledger.decrement(SHIRT, 3)
        assert store.stock(SHIRT) == 2

    def test_missing_row_refused(self):
        ledger, _ = _setup()
        with pytest.raises(InsufficientStockError):
            ledger.decrement(StockRef(StockKind.PRODUCT, "p-404"), 1)

    def test_non_positive_quantity_rejected(self):
        ledger, _ = _setup()
        with pytest.raises(ValidationError, match="must be positive"):
            ledger.decrement(SHIRT, 0)

    def test_variant_counter_is_the_one_decremented(self):
        ledger, store = _setup(stock=5)
        store.add_variant(
            ProductVariant(id="v-1", product_id="p-1", stock_quantity=4, price=Money.of("1"))
        )
        ref = StockRef(StockKind.VARIANT, "v-1")
        ledger.decrement(ref, 3)
        assert store.stock(ref) == 1
        assert store.stock(SHIRT) == 5


class TestDecrementForLines:

    def test_all_lines_taken(self):
        ledger, store = _setup(stock=5)
        ledger.decrement_for_lines([_line(store, "p-1", 2), _line(store, "p-2", 1)])
        assert store.products["p-1"].stock_quantity == 3
        assert store.products["p-2"].stock_quantity == 0

    def test_refusal_names_the_line(self):
        ledger, store = _setup(stock=5)
        with pytest.raises(InsufficientStockError) as exc_info:
            ledger.decrement_for_lines([_line(store, "p-1", 2), _line(store, "p-2", 2)])

        assert str(exc_info.value) == "Cannot create order: Canvas Tote - insufficient_stock"
        [issue] = exc_info.value.issues
        assert issue.product_id == "p-2"
        assert issue.reason == StockIssueReason.INSUFFICIENT_STOCK
        assert issue.requested == 2
        assert issue.available == 1


class TestRestore:

    def test_restore_for_order_gives_back_every_item(self):
        ledger, store = _setup(stock=0)
        order = make_order()  # 2 + 1 units of p-1
        ledger.restore_for_order(order)
        assert store.stock(SHIRT) == 3

    def test_restore_for_deleted_row_is_ignored(self):
        ledger, store = _setup()
        ledger.restore(StockRef(StockKind.PRODUCT, "p-404"), 2)
        assert "p-404" not in store.products
