"""Product repository: catalog lookups and conditional stock moves."""
from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select, update

from salonbook.infra.database.models.catalog import Product
from salonbook.infra.database.repositories.base import BaseRepository
from salonbook.scheduling.ports import ProductCatalog
from salonbook.scheduling.types import CatalogProduct


def to_catalog_product(row: Product) -> CatalogProduct:
    return CatalogProduct(id=row.id, name=row.name, price=row.price, stock=row.stock, unit=row.unit)


class ProductRepository(BaseRepository[Product], ProductCatalog):
    model = Product

    async def list(self, company_id: int) -> List[CatalogProduct]:
        stmt = (
            select(Product)
            .where(Product.company_id == company_id)
            .where(Product.active.is_(True))
            .order_by(Product.name)
        )
        result = await self.session.execute(stmt)
        return [to_catalog_product(row) for row in result.scalars().all()]

    async def get(self, product_id: int, *, company_id: int) -> Optional[CatalogProduct]:
        row = await self.get_by_id(product_id, company_id=company_id)
        return to_catalog_product(row) if row is not None else None

    async def check_stock(self, product_id: int, quantity: int, *, company_id: int) -> bool:
        stmt = (
            select(Product.stock)
            .where(Product.id == product_id)
            .where(Product.company_id == company_id)
        )
        stock = (await self.session.execute(stmt)).scalar_one_or_none()
        return stock is not None and stock >= quantity

    async def decrement(self, product_id: int, quantity: int, *, company_id: int) -> bool:
        """Take ``quantity`` units only if that many are on hand. False when short."""
        stmt = (
            update(Product)
            .where(Product.id == product_id)
            .where(Product.company_id == company_id)
            .where(Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def increment(self, product_id: int, quantity: int, *, company_id: int) -> None:
        stmt = (
            update(Product)
            .where(Product.id == product_id)
            .where(Product.company_id == company_id)
            .values(stock=Product.stock + quantity)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)
