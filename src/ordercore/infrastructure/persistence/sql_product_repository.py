"""SQLAlchemy-backed implementation of ProductRepository.

Stock changes are single UPDATE statements, so the check and the write
cannot be interleaved by another transaction.
"""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ordercore.domain.model.product import Product, ProductVariant, StockKind, StockRef
from ordercore.domain.model.value_objects import Money
from ordercore.domain.repository.product_repository import ProductRepository
from ordercore.infrastructure.persistence.tables import (
    ProductImageRow,
    ProductRow,
    ProductVariantRow,
)


class SqlProductRepository(ProductRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_products(self, product_ids: list[str]) -> dict[str, Product]:
        if not product_ids:
            return {}
        rows = self._session.scalars(
            select(ProductRow).where(ProductRow.id.in_(product_ids))
        ).all()
        images = dict(
            self._session.execute(
                select(ProductImageRow.product_id, ProductImageRow.url).where(
                    ProductImageRow.product_id.in_(product_ids),
                    ProductImageRow.is_primary.is_(True),
                )
            ).all()
        )
        return {
            row.id: Product(
                id=row.id,
                name=row.name,
                price=Money(row.price),
                stock_quantity=row.stock_quantity,
                sku=row.sku,
                is_active=row.is_active,
                deleted_at=row.deleted_at,
                primary_image_url=images.get(row.id),
            )
            for row in rows
        }

    def get_variants(self, variant_ids: list[str]) -> dict[str, ProductVariant]:
        if not variant_ids:
            return {}
        rows = self._session.scalars(
            select(ProductVariantRow).where(ProductVariantRow.id.in_(variant_ids))
        ).all()
        return {
            row.id: ProductVariant(
                id=row.id,
                product_id=row.product_id,
                stock_quantity=row.stock_quantity,
                price=Money(row.price) if row.price is not None else None,
                sku=row.sku,
                options=dict(row.options or {}),
                is_active=row.is_active,
            )
            for row in rows
        }

    def get_stock(self, ref: StockRef) -> int | None:
        table = self._table(ref)
        return self._session.scalar(
            select(table.stock_quantity).where(table.id == ref.id)
        )

    def decrement_stock(self, ref: StockRef, quantity: int) -> bool:
        table = self._table(ref)
        result = self._session.execute(
            update(table)
            .where(table.id == ref.id, table.stock_quantity >= quantity)
            .values(stock_quantity=table.stock_quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def restore_stock(self, ref: StockRef, quantity: int) -> None:
        table = self._table(ref)
        self._session.execute(
            update(table)
            .where(table.id == ref.id)
            .values(stock_quantity=table.stock_quantity + quantity)
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    def _table(ref: StockRef) -> type[ProductRow] | type[ProductVariantRow]:
        return ProductVariantRow if ref.kind is StockKind.VARIANT else ProductRow
