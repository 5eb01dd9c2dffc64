"""
Stats service — the dashboard/sidebar summary of published content.

Three independent reads, recomputed on every call:

1. total published articles (``count_articles``),
2. published count per category, as categories LEFT OUTER JOIN
   published articles so categories with nothing published still
   appear with a zero count,
3. the most recently published articles.
"""
from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import storage_read
from app.models import Article, ArticleStatus, Category
from app.services import article_service


def _empty_stats() -> dict:
    return {"total_articles": 0, "categories": [], "recent_articles": []}


@storage_read(_empty_stats)
async def get_article_stats(db: AsyncSession) -> dict:
    total = await article_service.count_articles(db, status=ArticleStatus.PUBLISHED)

    q = (
        select(Category.id, Category.name, func.count(Article.id))
        .outerjoin(
            Article,
            and_(Article.category_id == Category.id, Article.status == ArticleStatus.PUBLISHED),
        )
        .group_by(Category.id, Category.name)
        .order_by(Category.name.asc())
    )
    rows = (await db.execute(q)).all()

    recent = await article_service.list_articles(
        db, limit=settings.RECENT_ARTICLES_LIMIT, offset=0, status=ArticleStatus.PUBLISHED
    )

    return {
        "total_articles": total,
        "categories": [
            {"category_id": category_id, "category_name": name, "count": count}
            for category_id, name, count in rows
        ],
        "recent_articles": recent,
    }
