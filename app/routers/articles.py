from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.dependencies import PaginationParams, get_admin_user, get_current_user
from app.models import ArticleStatus, User
from app.permissions import is_admin
from app.schemas import (
    ArticleCreate,
    ArticleCreated,
    ArticleDetail,
    ArticleListResponse,
    ArticleStats,
    ArticleUpdate,
    MutationResult,
)
from app.services import article_service, stats_service

router = APIRouter(prefix="/api/v1/articles", tags=["articles"])


async def _parse_body(request: Request, model: type[BaseModel]) -> BaseModel:
    """
    Validate the JSON body against *model*.

    Mutation routes read the body themselves, after ``get_admin_user`` has
    run, so a non-admin is refused before the payload is looked at.
    """
    try:
        return model.model_validate_json(await request.body())
    except PydanticValidationError as exc:
        errors = [{**err, "loc": ("body", *err["loc"])} for err in exc.errors()]
        raise RequestValidationError(errors) from exc


def _visible_or_404(article: dict | None, user: User | None) -> dict:
    """Hide missing articles, and drafts from non-admins unless configured."""
    if article is None:
        raise HTTPException(status_code=404, detail="Article not found")
    if (
        article["status"] == ArticleStatus.DRAFT.value
        and not settings.EXPOSE_DRAFTS_BY_LOOKUP
        and not is_admin(user)
    ):
        raise HTTPException(status_code=404, detail="Article not found")
    return article


@router.get("", response_model=ArticleListResponse)
async def list_articles(
    pagination: PaginationParams = Depends(),
    category_id: int | None = None,
    tag_id: int | None = None,
    db: AsyncSession | None = Depends(get_db),
):
    items = await article_service.list_articles(
        db,
        limit=pagination.limit,
        offset=pagination.offset,
        category_id=category_id,
        status=ArticleStatus.PUBLISHED,
        tag_id=tag_id,
    )
    total = await article_service.count_articles(
        db, category_id=category_id, status=ArticleStatus.PUBLISHED, tag_id=tag_id
    )
    return {"items": items, "total": total}

@router.get("/stats", response_model=ArticleStats)
async def get_stats(db: AsyncSession | None = Depends(get_db)):
    return await stats_service.get_article_stats(db)

@router.get("/slug/{slug}", response_model=ArticleDetail)
async def get_article_by_slug(
    slug: str,
    user: User | None = Depends(get_current_user),
    db: AsyncSession | None = Depends(get_db),
):
    return _visible_or_404(await article_service.get_article_by_slug(db, slug), user)

@router.get("/{article_id}", response_model=ArticleDetail)
async def get_article(
    article_id: int,
    user: User | None = Depends(get_current_user),
    db: AsyncSession | None = Depends(get_db),
):
    return _visible_or_404(await article_service.get_article_by_id(db, article_id), user)

@router.post("", status_code=201, response_model=ArticleCreated)
async def create_article(
    request: Request,
    user: User = Depends(get_admin_user),
    db: AsyncSession | None = Depends(get_db),
):
    data = await _parse_body(request, ArticleCreate)
    return await article_service.create_article(db, data, author_id=user.id)

@router.put("/{article_id}", response_model=MutationResult)
async def update_article(
    article_id: int,
    request: Request,
    user: User = Depends(get_admin_user),
    db: AsyncSession | None = Depends(get_db),
):
    data = await _parse_body(request, ArticleUpdate)
    return await article_service.update_article(db, article_id, data)

@router.delete("/{article_id}", response_model=MutationResult)
async def delete_article(
    article_id: int,
    user: User = Depends(get_admin_user),
    db: AsyncSession | None = Depends(get_db),
):
    return await article_service.delete_article(db, article_id)
