"""
Product Repository - store catalog.
"""
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from partner_portal.models.product import Product


class ProductRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, product: Product) -> Product:
        self.db.add(product)
        await self.db.flush()
        await self.db.refresh(product)
        return product

    async def get_by_id(self, product_id: int) -> Optional[Product]:
        result = await self.db.execute(select(Product).where(Product.id == product_id))
        return result.scalar_one_or_none()

    async def get_all(
        self,
        approved: Optional[bool] = None,
        category: Optional[str] = None,
        include_inactive: bool = False,
    ) -> list[Product]:
        stmt = select(Product)
        if not include_inactive:
            stmt = stmt.where(Product.is_active.is_(True))
        if approved is not None:
            stmt = stmt.where(Product.is_approved.is_(approved))
        if category:
            stmt = stmt.where(Product.category == category)
        result = await self.db.execute(stmt.order_by(Product.name, Product.id))
        return list(result.scalars().all())

    async def get_existing_skus(self, skus: Iterable[str]) -> set[str]:
        """Which of ``skus`` are already in the catalog."""
        wanted = {s for s in skus if s}
        if not wanted:
            return set()
        result = await self.db.execute(select(Product.sku).where(Product.sku.in_(wanted)))
        return {row for row in result.scalars().all() if row}

    async def save(self, product: Product) -> Product:
        await self.db.flush()
        await self.db.refresh(product)
        return product
