"""Results of checkout validation.

Nothing here is persisted: a ValidationResult is recomputed every time
the cart is validated, and StockIssues only describe why a line cannot be
fulfilled right now.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from ordercore.domain.model.address import AddressSnapshot
from ordercore.domain.model.product import PricedEntity
from ordercore.domain.model.value_objects import Money


class StockIssueReason(Enum):
    OUT_OF_STOCK = "out_of_stock"
    INSUFFICIENT_STOCK = "insufficient_stock"
    PRODUCT_UNAVAILABLE = "product_unavailable"


@dataclass(frozen=True)
class StockIssue:
    item_id: str
    product_id: str
    variant_id: str | None
    product_name: str
    requested: int
    available: int
    reason: StockIssueReason

    def __str__(self) -> str:
        return f"{self.product_name} - {self.reason.value}"


@dataclass(frozen=True)
class PricedLine:
    """A cart line joined with its product and the entity that prices it."""

    item_id: str
    product_id: str
    product_name: str
    quantity: int
    priced: PricedEntity
    product_image: str | None = None

    @property
    def line_total(self) -> Money:
        return self.priced.unit_price * self.quantity


@dataclass(frozen=True)
class CheckoutTotals:
    subtotal: Money
    shipping: Money
    tax: Money
    discount: Money
    total: Money
    tax_rate: Decimal
    free_shipping_threshold: Money

    @property
    def is_free_shipping(self) -> bool:
        return self.shipping.amount == 0


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a checkout validation.

    Totals and issues are always populated, even when ``valid`` is False,
    so the caller can show partial feedback.
    """

    cart_id: str
    item_count: int
    unique_item_count: int
    totals: CheckoutTotals
    shipping_address: AddressSnapshot
    billing_address: AddressSnapshot
    issues: list[StockIssue] = field(default_factory=list)
    lines: list[PricedLine] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.issues

    def describe_issues(self) -> str:
        return ", ".join(str(issue) for issue in self.issues)


@dataclass(frozen=True)
class PricingConfig:
    """Flat pricing constants applied at checkout.

    Tax is a single percentage of the subtotal; shipping is a flat fee
    waived once the subtotal reaches ``free_shipping_threshold``.
    """

    tax_rate: Decimal = Decimal("0.18")
    shipping_cost: Money = Money(Decimal("49.00"))
    free_shipping_threshold: Money = Money(Decimal("999.00"))
