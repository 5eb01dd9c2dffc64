from fastapi import Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.exceptions import StorageUnavailableError
from app.models import User
from app.permissions import require_admin
from app.services import user_service


class PaginationParams:
    """
    Reusable FastAPI dependency that parses offset pagination query
    parameters.

    Usage in a router::

        @router.get("/articles")
        async def list_articles(pagination: PaginationParams = Depends()):
            ...

    Attributes
    ----------
    limit:
        Number of items to return, clamped to ``settings.MAX_PAGE_SIZE``
        regardless of the value supplied by the caller.
    offset:
        Number of matching items to skip.
    """

    def __init__(
        self,
        limit: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=0,
            le=100,
            description="Number of items to return (max 100).",
        ),
        offset: int = Query(
            0,
            ge=0,
            description="Number of items to skip.",
        ),
    ) -> None:
        # The service layer trusts these values; the ceiling lives here.
        self.limit = min(limit, settings.MAX_PAGE_SIZE)
        self.offset = offset


async def get_current_user(
    x_user_open_id: str | None = Header(
        None,
        description="Authenticated identity token forwarded by the auth layer.",
    ),
    db: AsyncSession | None = Depends(get_db),
) -> User | None:
    """Resolve the caller to a User row; None means anonymous."""
    if not x_user_open_id:
        return None
    return await user_service.get_user_by_open_id(db, x_user_open_id)


async def get_admin_user(
    x_user_open_id: str | None = Header(None),
    user: User | None = Depends(get_current_user),
    db: AsyncSession | None = Depends(get_db),
) -> User:
    """
    Authorization gate for admin routes.

    An anonymous caller is rejected outright.  Otherwise, without storage
    the caller cannot be resolved and nothing can be written, so
    StorageUnavailableError is raised before the role check.
    """
    if not x_user_open_id:
        return require_admin(None)
    if db is None:
        raise StorageUnavailableError()
    return require_admin(user)
