"""
Pydantic schemas for blog articles.
"""
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from partner_portal.core.sanitization import sanitize_html, sanitize_long, sanitize_short
from partner_portal.models.article import ArticleStatus


# ──────────────────────────────────────────────
# Request Schemas
# ──────────────────────────────────────────────

class ArticleCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=512)
    excerpt: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = Field(None, max_length=64)
    tags: Optional[list[str]] = None
    featured_image: Optional[str] = Field(None, max_length=1024)
    author_name: Optional[str] = Field(None, max_length=256)
    author_email: Optional[str] = Field(None, max_length=255)
    status: ArticleStatus = ArticleStatus.PENDING

    @field_validator("title", "category", "author_name", mode="before")
    @classmethod
    def clean_short(cls, v):
        return sanitize_short(v) if isinstance(v, str) else v

    @field_validator("excerpt", mode="before")
    @classmethod
    def clean_excerpt(cls, v):
        return sanitize_long(v) if isinstance(v, str) else v

    @field_validator("content", mode="before")
    @classmethod
    def clean_content(cls, v):
        return sanitize_html(v) if isinstance(v, str) else v


class ArticleUpdate(BaseModel):
    """Either a moderation ``action``, a direct ``status`` or plain field edits."""
    id: int
    action: Optional[Literal["publish", "reject", "draft"]] = None
    status: Optional[ArticleStatus] = None
    review_notes: Optional[str] = None
    title: Optional[str] = Field(None, min_length=1, max_length=512)
    excerpt: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = Field(None, max_length=64)
    tags: Optional[list[str]] = None
    featured_image: Optional[str] = Field(None, max_length=1024)

    @field_validator("title", "category", mode="before")
    @classmethod
    def clean_short(cls, v):
        return sanitize_short(v) if isinstance(v, str) else v

    @field_validator("excerpt", "review_notes", mode="before")
    @classmethod
    def clean_long(cls, v):
        return sanitize_long(v) if isinstance(v, str) else v

    @field_validator("content", mode="before")
    @classmethod
    def clean_content(cls, v):
        return sanitize_html(v) if isinstance(v, str) else v


# ──────────────────────────────────────────────
# Response Schemas
# ──────────────────────────────────────────────

class ArticleResponse(BaseModel):
    id: int
    title: str
    slug: str
    excerpt: Optional[str]
    content: Optional[str]
    category: Optional[str]
    tags: Optional[list[str]] = None
    featured_image: Optional[str]
    author_name: Optional[str]
    author_email: Optional[str]
    status: ArticleStatus
    reviewed_at: Optional[datetime]
    reviewed_by: Optional[str]
    review_notes: Optional[str]
    published_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ArticleListResponse(BaseModel):
    items: list[ArticleResponse]
    counts: dict[str, int]
