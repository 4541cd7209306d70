"""Domain service: Stock Ledger.

Owns every change to the per-product / per-variant stock counters.  The
decrement is the authoritative stock check of checkout: it is a
conditional update that refuses to go below zero, so two concurrent
checkouts for the last unit can never both succeed.  Callers run it
inside the same unit of work as the order writes, so a refusal rolls
everything back.
"""

from __future__ import annotations

import structlog

from ordercore.domain.exceptions import InsufficientStockError, ValidationError
from ordercore.domain.model.checkout import PricedLine, StockIssue, StockIssueReason
from ordercore.domain.model.order import Order
from ordercore.domain.model.product import StockRef
from ordercore.domain.repository.product_repository import ProductRepository

logger = structlog.get_logger(__name__)


class StockLedger:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def available(self, ref: StockRef) -> int:
        stock = self._product_repo.get_stock(ref)
        return stock if stock is not None else 0

    def decrement(self, ref: StockRef, quantity: int) -> None:
        """Take ``quantity`` units; raise InsufficientStockError if not possible."""
        if quantity <= 0:
            raise ValidationError("Decrement quantity must be positive")
        if not self._product_repo.decrement_stock(ref, quantity):
            available = self.available(ref)
            logger.warning(
                "Stock decrement refused",
                stock_ref=str(ref),
                requested=quantity,
                available=available,
            )
            raise InsufficientStockError(
                f"Insufficient stock for {ref} (need {quantity}, have {available})"
            )

    def restore(self, ref: StockRef, quantity: int) -> None:
        if quantity <= 0:
            raise ValidationError("Restore quantity must be positive")
        self._product_repo.restore_stock(ref, quantity)

    def decrement_for_lines(self, lines: list[PricedLine]) -> None:
        """Take stock for every priced cart line.

        The first refusal aborts; the caller's unit of work undoes the
        decrements already applied.
        """
        for line in lines:
            try:
                self.decrement(line.priced.ref, line.quantity)
            except InsufficientStockError as exc:
                issue = StockIssue(
                    item_id=line.item_id,
                    product_id=line.product_id,
                    variant_id=line.priced.variant_id,
                    product_name=line.product_name,
                    requested=line.quantity,
                    available=self.available(line.priced.ref),
                    reason=StockIssueReason.INSUFFICIENT_STOCK,
                )
                raise InsufficientStockError(
                    f"Cannot create order: {issue}", [issue]
                ) from exc

    def restore_for_order(self, order: Order) -> None:
        """Give back the stock every item of the order took."""
        for item in order.items:
            self.restore(item.stock_ref, item.quantity.value)
        logger.info(
            "Stock restored",
            order_number=order.order_number,
            units=order.item_count,
        )
