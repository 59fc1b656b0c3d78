"""
Article Repository - blog posts.
"""
from typing import Optional

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from partner_portal.models.article import Article, ArticleStatus


class ArticleRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, article: Article) -> Article:
        self.db.add(article)
        await self.db.flush()
        await self.db.refresh(article)
        return article

    async def get_by_id(self, article_id: int) -> Optional[Article]:
        result = await self.db.execute(select(Article).where(Article.id == article_id))
        return result.scalar_one_or_none()

    async def get_all(
        self,
        status: Optional[ArticleStatus] = None,
        category: Optional[str] = None,
        query: Optional[str] = None,
    ) -> list[Article]:
        stmt = select(Article)
        if status:
            stmt = stmt.where(Article.status == status)
        if category:
            stmt = stmt.where(Article.category == category)
        if query:
            q_pattern = f"%{query}%"
            stmt = stmt.where(or_(Article.title.ilike(q_pattern), Article.excerpt.ilike(q_pattern)))
        result = await self.db.execute(stmt.order_by(Article.created_at.desc(), Article.id.desc()))
        return list(result.scalars().all())

    async def count_by_status(self) -> dict[str, int]:
        stmt = select(Article.status, func.count()).group_by(Article.status)
        rows = (await self.db.execute(stmt)).all()
        counts = {s.value: 0 for s in ArticleStatus}
        for status, count in rows:
            counts[ArticleStatus(status).value] = count
        return counts

    async def save(self, article: Article) -> Article:
        await self.db.flush()
        await self.db.refresh(article)
        return article

    async def delete(self, article: Article) -> None:
        await self.db.delete(article)
        await self.db.flush()
