"""
Blog article endpoints.
"""
from fastapi import APIRouter, Depends, Query
from starlette import status

from partner_portal.api.errors import not_found
from partner_portal.core.deps import get_article_service
from partner_portal.core.security import Principal, Role, require_role
from partner_portal.models.article import ArticleStatus
from partner_portal.schemas.article import ArticleCreate, ArticleListResponse, ArticleResponse, ArticleUpdate
from partner_portal.services.article_service import ArticleNotFoundError, ArticleService


router = APIRouter(dependencies=[Depends(require_role(Role.EMPLOYEE))])


@router.get("", response_model=ArticleListResponse)
async def list_articles(
    status: ArticleStatus | None = Query(default=None),
    category: str | None = Query(default=None),
    search: str | None = Query(default=None),
    svc: ArticleService = Depends(get_article_service),
):
    """Articles plus a count per status for the moderation tabs."""
    items, counts = await svc.list_articles(status=status, category=category, query=search)
    return {"items": items, "counts": counts}


@router.post("", response_model=ArticleResponse, status_code=status.HTTP_201_CREATED)
async def create_article(
    data: ArticleCreate,
    svc: ArticleService = Depends(get_article_service),
):
    return await svc.create_article(data)


@router.put("", response_model=ArticleResponse)
async def update_article(
    data: ArticleUpdate,
    svc: ArticleService = Depends(get_article_service),
    user: Principal = Depends(require_role(Role.EMPLOYEE)),
):
    """Edit fields, or moderate with ``action`` (publish, reject, draft)."""
    try:
        article = await svc.get_article(data.id)
        return await svc.update_article(article, data, reviewer=user.email or user.subject)
    except ArticleNotFoundError:
        not_found("article", data.id)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def delete_article(
    id: int = Query(..., description="Article id"),
    svc: ArticleService = Depends(get_article_service),
    _: Principal = Depends(require_role(Role.ADMIN)),
):
    try:
        article = await svc.get_article(id)
        await svc.delete_article(article)
    except ArticleNotFoundError:
        not_found("article", id)
