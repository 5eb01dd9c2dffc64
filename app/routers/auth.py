from fastapi import APIRouter, Depends

from app.dependencies import get_current_user
from app.models import User
from app.schemas import UserResponse
from app.services import user_service

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

@router.get("/me", response_model=UserResponse | None)
async def me(user: User | None = Depends(get_current_user)):
    """Return the caller resolved from the identity header, or null."""
    return user_service.user_to_dict(user) if user else None
