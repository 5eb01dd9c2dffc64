"""
Authorization gate.

A single predicate decides every privileged action: the caller must
resolve to a user whose role is ``Role.ADMIN``.  Anonymous callers
(``None``) and members are rejected alike.
"""
import logging

from app.exceptions import ForbiddenError
from app.models import Role, User

logger = logging.getLogger(__name__)


def is_admin(user: User | None) -> bool:
    return user is not None and user.role is Role.ADMIN


def require_admin(user: User | None) -> User:
    """Return *user* when it is an admin, otherwise raise ForbiddenError."""
    if not is_admin(user):
        logger.info(
            "Forbidden: admin action attempted by %s",
            user.open_id if user is not None else "anonymous",
        )
        raise ForbiddenError()
    return user
