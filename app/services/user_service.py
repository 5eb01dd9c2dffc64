"""
User service — identity records keyed by the external ``open_id``.

Users are created or refreshed by the sign-in flow through
``upsert_user`` and are never deleted here.  The configured owner
identity is promoted to admin whenever no explicit role is supplied.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import storage_read, storage_write
from app.exceptions import ValidationError
from app.models import Role, User
from app.schemas import UserUpsert

logger = logging.getLogger(__name__)

_TEXT_FIELDS = ("name", "email", "login_method")


def user_to_dict(user: User) -> dict:
    """Serialise a User ORM instance to a plain dict."""
    return {
        "id": user.id,
        "open_id": user.open_id,
        "name": user.name,
        "email": user.email,
        "login_method": user.login_method,
        "role": user.role.value,
        "last_signed_in": user.last_signed_in.isoformat() if user.last_signed_in else None,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


@storage_read(lambda: None)
async def get_user_by_open_id(db: AsyncSession, open_id: str) -> User | None:
    q = select(User).where(User.open_id == open_id).execution_options(populate_existing=True)
    return (await db.execute(q)).scalar_one_or_none()


@storage_read(lambda: None)
async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    q = select(User).where(User.id == user_id).execution_options(populate_existing=True)
    return (await db.execute(q)).scalar_one_or_none()


@storage_write
async def upsert_user(db: AsyncSession, data: UserUpsert) -> User:
    """
    Insert the user for ``data.open_id`` or update the fields that were
    supplied; return the stored row.

    Fields left unset in *data* keep their stored value.  When nothing
    besides the id was supplied, ``last_signed_in`` is bumped so the
    upsert still records the sign-in.
    """
    if not data.open_id:
        raise ValidationError("User open_id is required for upsert")

    supplied = data.model_dump(exclude_unset=True)
    changes: dict = {field: supplied[field] for field in _TEXT_FIELDS if field in supplied}

    if supplied.get("last_signed_in") is not None:
        changes["last_signed_in"] = supplied["last_signed_in"]
    if supplied.get("role") is not None:
        changes["role"] = supplied["role"]
    elif settings.OWNER_OPEN_ID and data.open_id == settings.OWNER_OPEN_ID:
        changes["role"] = Role.ADMIN

    result = await db.execute(select(User).where(User.open_id == data.open_id))
    user = result.scalar_one_or_none()

    if user is None:
        changes.setdefault("last_signed_in", datetime.now(timezone.utc))
        user = User(open_id=data.open_id, **changes)
        db.add(user)
        logger.info("Created user open_id=%s role=%s", data.open_id, changes.get("role", Role.MEMBER).value)
    else:
        if not changes:
            changes["last_signed_in"] = datetime.now(timezone.utc)
        for field, value in changes.items():
            setattr(user, field, value)

    await db.flush()
    await db.refresh(user)
    return user
