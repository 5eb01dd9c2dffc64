"""
Taxonomy service — read-only lookups for categories and tags.

Both are managed outside this API (seed script, direct SQL); here they
are only listed, ordered by name, or fetched by id.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import storage_read
from app.models import Category, Tag


def _category_to_dict(category: Category) -> dict:
    return {
        "id": category.id,
        "name": category.name,
        "description": category.description,
    }


def _tag_to_dict(tag: Tag) -> dict:
    return {"id": tag.id, "name": tag.name}


@storage_read(list)
async def list_categories(db: AsyncSession) -> list[dict]:
    result = await db.execute(select(Category).order_by(Category.name.asc()))
    return [_category_to_dict(c) for c in result.scalars().all()]


@storage_read(lambda: None)
async def get_category_by_id(db: AsyncSession, category_id: int) -> dict | None:
    category = await db.get(Category, category_id)
    return _category_to_dict(category) if category else None


@storage_read(list)
async def list_tags(db: AsyncSession) -> list[dict]:
    result = await db.execute(select(Tag).order_by(Tag.name.asc()))
    return [_tag_to_dict(t) for t in result.scalars().all()]


@storage_read(lambda: None)
async def get_tag_by_id(db: AsyncSession, tag_id: int) -> dict | None:
    tag = await db.get(Tag, tag_id)
    return _tag_to_dict(tag) if tag else None
