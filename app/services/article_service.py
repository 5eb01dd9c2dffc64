"""
Article service — queries and mutations for the Article aggregate.

Design notes
------------
- Read functions are wrapped with ``storage_read``: without a session
  they return an empty/default result (or raise, depending on
  ``DEGRADE_READS_WITHOUT_DB``).  Mutations are wrapped with
  ``storage_write`` and always raise without a session.
- Filters are conjunctive.  A ``tag_id`` filter first resolves the
  tagged article ids from ``article_tags``; when there are none the
  article query is never issued.
- Reads use ``populate_existing`` so rows already in the session's
  identity map are refreshed from the database, including server-side
  defaults expired by an earlier flush.
- Tag associations are replaced wholesale (delete all, then insert)
  rather than diffed.
- Service functions flush but do not commit; the transaction boundary
  is owned by the ``get_db`` dependency in the router layer, so an
  article insert and its tag inserts commit or roll back together.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import storage_read, storage_write
from app.exceptions import NotFoundError, ValidationError
from app.models import Article, ArticleStatus, Tag, article_tags
from app.schemas import ArticleCreate, ArticleUpdate

logger = logging.getLogger(__name__)

# Update fields that may be cleared by sending an explicit null.
_NULLABLE_FIELDS: frozenset[str] = frozenset({"summary", "cover_image"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _article_to_dict(article: Article) -> dict:
    """Serialise an Article ORM instance to a plain dict (list view)."""
    return {
        "id": article.id,
        "title": article.title,
        "slug": article.slug,
        "summary": article.summary,
        "cover_image": article.cover_image,
        "category_id": article.category_id,
        "author_id": article.author_id,
        "status": article.status.value,
        "published_at": _isoformat(article.published_at),
        "view_count": article.view_count,
        "created_at": _isoformat(article.created_at),
        "updated_at": _isoformat(article.updated_at),
    }


def _article_detail_to_dict(article: Article, tags: list[Tag]) -> dict:
    """Serialise an Article ORM instance to a plain dict (detail view)."""
    data = _article_to_dict(article)
    data["content"] = article.content
    data["tags"] = [{"id": t.id, "name": t.name} for t in tags]
    return data


# ---------------------------------------------------------------------------
# Query helpers
# ---------------------------------------------------------------------------

def _article_conditions(category_id: int | None, status: ArticleStatus | None) -> list:
    conditions = []
    if category_id is not None:
        conditions.append(Article.category_id == category_id)
    if status is not None:
        conditions.append(Article.status == status)
    return conditions


async def _tagged_article_ids(db: AsyncSession, tag_id: int) -> list[int]:
    result = await db.execute(
        select(article_tags.c.article_id).where(article_tags.c.tag_id == tag_id)
    )
    return list(result.scalars().all())


async def _replace_article_tags(db: AsyncSession, article_id: int, tag_ids: list[int]) -> None:
    """Drop every tag link of *article_id*, then link it to *tag_ids*."""
    await db.execute(delete(article_tags).where(article_tags.c.article_id == article_id))
    await _insert_article_tags(db, article_id, tag_ids)


async def _insert_article_tags(db: AsyncSession, article_id: int, tag_ids: list[int]) -> None:
    # Repeated ids would violate the (article_id, tag_id) primary key.
    unique_ids = list(dict.fromkeys(tag_ids))
    if not unique_ids:
        return
    await db.execute(
        insert(article_tags),
        [{"article_id": article_id, "tag_id": tag_id} for tag_id in unique_ids],
    )


async def _flush(db: AsyncSession, action: str) -> None:
    try:
        await db.flush()
    except IntegrityError as exc:
        logger.warning("Article %s rejected by storage: %s", action, exc.orig)
        raise ValidationError(f"Article {action} violates a storage constraint") from exc


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

@storage_read(list)
async def list_articles(
    db: AsyncSession,
    limit: int = 10,
    offset: int = 0,
    category_id: int | None = None,
    status: ArticleStatus | None = None,
    tag_id: int | None = None,
) -> list[dict]:
    """
    Return articles matching every supplied filter, newest
    ``published_at`` first (drafts without a date sort last).

    *limit* and *offset* are trusted; the router enforces bounds.
    """
    conditions = _article_conditions(category_id, status)
    if tag_id is not None:
        article_ids = await _tagged_article_ids(db, tag_id)
        if not article_ids:
            return []
        conditions.append(Article.id.in_(article_ids))

    q = (
        select(Article)
        .where(*conditions)
        .order_by(Article.published_at.desc().nulls_last(), Article.id.desc())
        .offset(offset)
        .limit(limit)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(q)
    return [_article_to_dict(a) for a in result.scalars().all()]


@storage_read(int)
async def count_articles(
    db: AsyncSession,
    category_id: int | None = None,
    status: ArticleStatus | None = None,
    tag_id: int | None = None,
) -> int:
    """Count articles under the same filters ``list_articles`` accepts."""
    conditions = _article_conditions(category_id, status)
    if tag_id is not None:
        article_ids = await _tagged_article_ids(db, tag_id)
        if not article_ids:
            return 0
        conditions.append(Article.id.in_(article_ids))

    result = await db.execute(select(func.count()).select_from(Article).where(*conditions))
    return result.scalar_one()


@storage_read(list)
async def get_article_tags(db: AsyncSession, article_id: int) -> list[Tag]:
    q = (
        select(Tag)
        .join(article_tags, article_tags.c.tag_id == Tag.id)
        .where(article_tags.c.article_id == article_id)
        .order_by(Tag.name.asc())
    )
    result = await db.execute(q)
    return list(result.scalars().all())


async def _get_article_detail(db: AsyncSession, condition) -> dict | None:
    q = select(Article).where(condition).execution_options(populate_existing=True)
    article = (await db.execute(q)).scalar_one_or_none()
    if article is None:
        return None
    return _article_detail_to_dict(article, await get_article_tags(db, article.id))


@storage_read(lambda: None)
async def get_article_by_id(db: AsyncSession, article_id: int) -> dict | None:
    """
    Return the detail dict for *article_id*, or None.

    No status filter is applied: drafts are returned too.
    """
    return await _get_article_detail(db, Article.id == article_id)


@storage_read(lambda: None)
async def get_article_by_slug(db: AsyncSession, slug: str) -> dict | None:
    """Slug counterpart of ``get_article_by_id``; drafts included."""
    return await _get_article_detail(db, Article.slug == slug)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------

@storage_write
async def create_article(db: AsyncSession, data: ArticleCreate, author_id: int) -> dict:
    """
    Insert a new article and its tag links; return ``{"id": ...}``.

    ``published_at`` is stamped only when the article is created in the
    published state.  Slug uniqueness is left to the database.
    """
    article = Article(
        title=data.title,
        slug=data.slug,
        summary=data.summary,
        content=data.content,
        cover_image=data.cover_image,
        category_id=data.category_id,
        author_id=author_id,
        status=data.status,
        published_at=_utcnow() if data.status is ArticleStatus.PUBLISHED else None,
    )
    db.add(article)
    await _flush(db, "create")

    try:
        await _insert_article_tags(db, article.id, data.tag_ids)
    except IntegrityError as exc:
        logger.warning("Tag links for article %s rejected: %s", article.id, exc.orig)
        raise ValidationError("Article tags violate a storage constraint") from exc

    logger.info("Created article id=%s slug=%r status=%s", article.id, data.slug, data.status.value)
    return {"id": article.id}


@storage_write
async def update_article(db: AsyncSession, article_id: int, data: ArticleUpdate) -> dict:
    """
    Apply a partial update to *article_id*; return ``{"success": True}``.

    Only fields present in the payload change.  Publishing stamps
    ``published_at`` only while it is still null, using a conditional
    UPDATE so concurrent publishes cannot overwrite it.  A ``tag_ids``
    key, even an empty list, replaces the whole tag set.

    Raises NotFoundError when the article does not exist.
    """
    result = await db.execute(select(Article).where(Article.id == article_id))
    article = result.scalar_one_or_none()
    if article is None:
        raise NotFoundError("Article not found")

    fields = {
        key: value
        for key, value in data.model_dump(exclude_unset=True).items()
        if value is not None or key in _NULLABLE_FIELDS
    }
    tag_ids: list[int] | None = fields.pop("tag_ids", None)

    for field, value in fields.items():
        setattr(article, field, value)
    await _flush(db, "update")

    if fields.get("status") is ArticleStatus.PUBLISHED:
        await db.execute(
            update(Article)
            .where(Article.id == article_id, Article.published_at.is_(None))
            .values(published_at=_utcnow())
        )

    if tag_ids is not None:
        try:
            await _replace_article_tags(db, article_id, tag_ids)
        except IntegrityError as exc:
            logger.warning("Tag links for article %s rejected: %s", article_id, exc.orig)
            raise ValidationError("Article tags violate a storage constraint") from exc

    changed = sorted(fields)
    if tag_ids is not None:
        changed.append("tag_ids")
    logger.info("Updated article id=%s fields=%s", article_id, changed)
    return {"success": True}


@storage_write
async def delete_article(db: AsyncSession, article_id: int) -> dict:
    """
    Delete *article_id* and all its tag links; return ``{"success": True}``.

    Deleting an id that does not exist is not an error.
    """
    await db.execute(delete(article_tags).where(article_tags.c.article_id == article_id))
    await db.execute(delete(Article).where(Article.id == article_id))
    logger.info("Deleted article id=%s", article_id)
    return {"success": True}
