"""
Blog article model.
"""
import enum
from typing import Optional
from datetime import datetime, UTC

from sqlalchemy import JSON, String, Integer, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from partner_portal.core.base import Base, str_enum


class ArticleStatus(str, enum.Enum):
    PENDING = "pending"
    PUBLISHED = "published"
    DRAFT = "draft"
    REJECTED = "rejected"


class Article(Base):
    __tablename__ = "articles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    slug: Mapped[str] = mapped_column(String(256), unique=True, nullable=False, index=True)
    excerpt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    tags: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True)
    featured_image: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    author_name: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)
    author_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    status: Mapped[ArticleStatus] = mapped_column(
        str_enum(ArticleStatus), nullable=False, default=ArticleStatus.PENDING, index=True
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    review_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )
