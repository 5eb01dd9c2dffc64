from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models import ArticleStatus, Role


# --- Category / Tag ---

class CategoryResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    model_config = ConfigDict(from_attributes=True)


class TagResponse(BaseModel):
    id: int
    name: str
    model_config = ConfigDict(from_attributes=True)


# --- User ---

class UserUpsert(BaseModel):
    open_id: str = Field(max_length=64)
    name: str | None = None
    email: str | None = Field(None, max_length=320)
    login_method: str | None = Field(None, max_length=64)
    last_signed_in: datetime | None = None
    role: Role | None = None


class UserResponse(BaseModel):
    id: int
    open_id: str
    name: str | None
    email: str | None
    login_method: str | None
    role: Role
    last_signed_in: datetime | None
    created_at: datetime | None
    model_config = ConfigDict(from_attributes=True)


# --- Article ---

class ArticleCreate(BaseModel):
    title: str = Field(max_length=255)
    slug: str = Field(max_length=255)
    content: str
    category_id: int
    summary: str | None = None
    cover_image: str | None = Field(None, max_length=500)
    status: ArticleStatus = ArticleStatus.DRAFT
    tag_ids: list[int] = []


class ArticleUpdate(BaseModel):
    title: str | None = Field(None, max_length=255)
    slug: str | None = Field(None, max_length=255)
    content: str | None = None
    category_id: int | None = None
    summary: str | None = None
    cover_image: str | None = Field(None, max_length=500)
    status: ArticleStatus | None = None
    tag_ids: list[int] | None = None


class ArticleResponse(BaseModel):
    id: int
    title: str
    slug: str
    summary: str | None
    cover_image: str | None
    category_id: int
    author_id: int
    status: ArticleStatus
    published_at: datetime | None
    view_count: int
    created_at: datetime | None
    updated_at: datetime | None = None


class ArticleDetail(ArticleResponse):
    content: str
    tags: list[TagResponse] = []


class ArticleCreated(BaseModel):
    id: int


class MutationResult(BaseModel):
    success: bool = True


# --- Pagination ---

class ArticleListResponse(BaseModel):
    items: list[ArticleResponse]
    total: int


# --- Stats ---

class CategoryCount(BaseModel):
    category_id: int
    category_name: str
    count: int


class ArticleStats(BaseModel):
    total_articles: int
    categories: list[CategoryCount]
    recent_articles: list[ArticleResponse]
