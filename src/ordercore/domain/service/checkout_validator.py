"""Domain service: Checkout Validator.

Pure computation over already-loaded data: given a cart, the catalog rows
its lines refer to and the resolved addresses, it prices every line,
collects every stock problem and computes the totals.  It never mutates
anything and never raises for stock problems; those are reported in
the result so the caller can show per-item feedback.

Money is accumulated at full precision; rounding happens when the
totals are displayed or stored.
"""

from __future__ import annotations

from ordercore.domain.model.address import AddressSnapshot
from ordercore.domain.model.cart import Cart, CartItem
from ordercore.domain.model.checkout import (
    CheckoutTotals,
    PricedLine,
    PricingConfig,
    StockIssue,
    StockIssueReason,
    ValidationResult,
)
from ordercore.domain.model.product import (
    Product,
    ProductVariant,
    resolve_priced_entity,
)
from ordercore.domain.model.value_objects import Money

UNKNOWN_PRODUCT = "Unknown product"


class CheckoutValidator:

    def __init__(self, pricing: PricingConfig | None = None) -> None:
        self._pricing = pricing or PricingConfig()

    @property
    def pricing(self) -> PricingConfig:
        return self._pricing

    def evaluate(
        self,
        cart: Cart,
        products: dict[str, Product],
        variants: dict[str, ProductVariant],
        shipping_address: AddressSnapshot,
        billing_address: AddressSnapshot,
    ) -> ValidationResult:
        issues: list[StockIssue] = []
        lines: list[PricedLine] = []
        currency = self._pricing.shipping_cost.currency
        subtotal = Money.zero(currency)
        item_count = 0

        for item in cart.items:
            product = products.get(item.product_id)
            if product is None or not product.is_available:
                issues.append(
                    self._issue(
                        item,
                        product.name if product else UNKNOWN_PRODUCT,
                        available=0,
                        reason=StockIssueReason.PRODUCT_UNAVAILABLE,
                    )
                )
                continue

            variant = variants.get(item.variant_id) if item.variant_id else None
            priced = resolve_priced_entity(product, variant)

            if priced.available <= 0:
                issues.append(
                    self._issue(item, product.name, 0, StockIssueReason.OUT_OF_STOCK)
                )
            elif priced.available < item.quantity:
                issues.append(
                    self._issue(
                        item,
                        product.name,
                        priced.available,
                        StockIssueReason.INSUFFICIENT_STOCK,
                    )
                )

            line = PricedLine(
                item_id=item.id,
                product_id=product.id,
                product_name=product.name,
                quantity=item.quantity,
                priced=priced,
                product_image=product.primary_image_url,
            )
            lines.append(line)
            subtotal = subtotal + line.line_total
            item_count += item.quantity

        return ValidationResult(
            cart_id=cart.id,
            item_count=item_count,
            unique_item_count=len(cart.items),
            totals=self.compute_totals(subtotal),
            shipping_address=shipping_address,
            billing_address=billing_address,
            issues=issues,
            lines=lines,
        )

    def compute_totals(self, subtotal: Money) -> CheckoutTotals:
        pricing = self._pricing
        if subtotal >= pricing.free_shipping_threshold:
            shipping = Money.zero(subtotal.currency)
        else:
            shipping = pricing.shipping_cost
        tax = subtotal.scaled(pricing.tax_rate)
        discount = Money.zero(subtotal.currency)
        return CheckoutTotals(
            subtotal=subtotal,
            shipping=shipping,
            tax=tax,
            discount=discount,
            total=subtotal + shipping + tax - discount,
            tax_rate=pricing.tax_rate,
            free_shipping_threshold=pricing.free_shipping_threshold,
        )

    @staticmethod
    def _issue(
        item: CartItem, product_name: str, available: int, reason: StockIssueReason
    ) -> StockIssue:
        return StockIssue(
            item_id=item.id,
            product_id=item.product_id,
            variant_id=item.variant_id,
            product_name=product_name,
            requested=item.quantity,
            available=available,
            reason=reason,
        )
