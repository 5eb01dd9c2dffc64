from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import PaginationParams, get_admin_user
from app.models import ArticleStatus, User
from app.schemas import ArticleListResponse
from app.services import article_service

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])

@router.get("/articles", response_model=ArticleListResponse)
async def list_all_articles(
    pagination: PaginationParams = Depends(),
    category_id: int | None = None,
    tag_id: int | None = None,
    status: ArticleStatus | None = None,
    user: User = Depends(get_admin_user),
    db: AsyncSession | None = Depends(get_db),
):
    """Dashboard listing: drafts included unless a status is given."""
    items = await article_service.list_articles(
        db,
        limit=pagination.limit,
        offset=pagination.offset,
        category_id=category_id,
        status=status,
        tag_id=tag_id,
    )
    total = await article_service.count_articles(
        db, category_id=category_id, status=status, tag_id=tag_id
    )
    return {"items": items, "total": total}
