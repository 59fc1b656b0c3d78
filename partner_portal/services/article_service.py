"""
ArticleService — blog submission and moderation.
"""
import re
import time
from datetime import datetime, UTC
from typing import Optional

from partner_portal.core.logging import get_logger
from partner_portal.models.article import Article, ArticleStatus
from partner_portal.repositories.article_repo import ArticleRepository
from partner_portal.schemas.article import ArticleCreate, ArticleUpdate

logger = get_logger(__name__)

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"

ACTION_STATUS = {
    "publish": ArticleStatus.PUBLISHED,
    "reject": ArticleStatus.REJECTED,
    "draft": ArticleStatus.DRAFT,
}


class ArticleNotFoundError(Exception):
    """Raised when article is not found."""
    pass


def _base36(number: int) -> str:
    digits = ""
    while number:
        number, rem = divmod(number, 36)
        digits = _BASE36[rem] + digits
    return digits or "0"


def make_slug(title: str, timestamp_ms: Optional[int] = None) -> str:
    """kebab-case title plus a base36 millisecond timestamp to keep slugs unique."""
    stem = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")[:80] or "article"
    stamp = _base36(timestamp_ms if timestamp_ms is not None else int(time.time() * 1000))
    return f"{stem}-{stamp}"


class ArticleService:
    def __init__(self, article_repo: ArticleRepository):
        self.repo = article_repo

    async def get_article(self, article_id: int) -> Article:
        article = await self.repo.get_by_id(article_id)
        if not article:
            raise ArticleNotFoundError(f"Article {article_id} not found")
        return article

    async def list_articles(
        self,
        status: Optional[ArticleStatus] = None,
        category: Optional[str] = None,
        query: Optional[str] = None,
    ) -> tuple[list[Article], dict[str, int]]:
        items = await self.repo.get_all(status=status, category=category, query=query)
        return items, await self.repo.count_by_status()

    async def create_article(self, data: ArticleCreate) -> Article:
        article = Article(slug=make_slug(data.title), **data.model_dump())
        if article.status == ArticleStatus.PUBLISHED:
            article.published_at = datetime.now(UTC)
        return await self.repo.create(article)

    async def update_article(self, article: Article, data: ArticleUpdate, reviewer: str) -> Article:
        fields = data.model_dump(exclude_unset=True, exclude={"id", "action", "status"})
        for key, value in fields.items():
            setattr(article, key, value)

        new_status = ACTION_STATUS[data.action] if data.action else data.status
        if new_status is not None and new_status != article.status:
            now = datetime.now(UTC)
            article.status = new_status
            article.reviewed_at = now
            article.reviewed_by = reviewer
            if new_status == ArticleStatus.PUBLISHED:
                article.published_at = now
            logger.info("article_moderated", article_id=article.id, status=new_status.value, reviewer=reviewer)

        return await self.repo.save(article)

    async def delete_article(self, article: Article) -> None:
        await self.repo.delete(article)
        logger.info("article_deleted", article_id=article.id)
