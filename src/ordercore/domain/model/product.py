"""Catalog entities as seen by checkout.

Products and variants live independently of orders.  Checkout only reads
them (price, stock, availability) and decrements/restores their stock
counters through the StockLedger.

A cart line is priced either by one of the product's variants or by the
bare product.  That choice is made once per line by ``resolve_priced_entity``
and carried as an explicit ``StockRef`` so no downstream code has to branch
on whether a variant happens to be present.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from ordercore.domain.model.value_objects import Money


class StockKind(Enum):
    PRODUCT = "product"
    VARIANT = "variant"


@dataclass(frozen=True)
class StockRef:
    """Points at the stock counter a cart line draws from."""

    kind: StockKind
    id: str

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}"


@dataclass
class Product:
    id: str
    name: str
    price: Money
    stock_quantity: int
    sku: str | None = None
    is_active: bool = True
    deleted_at: datetime | None = None
    primary_image_url: str | None = None

    @property
    def is_available(self) -> bool:
        """Soft-deleted or deactivated products cannot be purchased."""
        return self.is_active and self.deleted_at is None


@dataclass
class ProductVariant:
    id: str
    product_id: str
    stock_quantity: int
    price: Money | None = None  # falls back to the product price
    sku: str | None = None
    options: dict[str, str] = field(default_factory=dict)
    is_active: bool = True

    @property
    def display_name(self) -> str | None:
        """'Size: M, Color: Red' built from the option pairs, or None."""
        if not self.options:
            return None
        return ", ".join(f"{key}: {value}" for key, value in self.options.items())


@dataclass(frozen=True)
class PricedEntity:
    """What a cart line is priced and stocked against."""

    ref: StockRef
    unit_price: Money
    available: int
    sku: str | None
    variant_name: str | None

    @property
    def variant_id(self) -> str | None:
        return self.ref.id if self.ref.kind is StockKind.VARIANT else None


def resolve_priced_entity(
    product: Product, variant: ProductVariant | None
) -> PricedEntity:
    """Pick the variant when it exists and is active, otherwise the product."""
    if variant is not None and variant.is_active:
        return PricedEntity(
            ref=StockRef(StockKind.VARIANT, variant.id),
            unit_price=variant.price if variant.price is not None else product.price,
            available=variant.stock_quantity,
            sku=variant.sku or product.sku,
            variant_name=variant.display_name,
        )
    return PricedEntity(
        ref=StockRef(StockKind.PRODUCT, product.id),
        unit_price=product.price,
        available=product.stock_quantity,
        sku=product.sku,
        variant_name=None,
    )
