"""User API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from marketplace.api.dependencies import get_current_user, get_user_service
from marketplace.models.user import User
from marketplace.schemas.user import AdminStats, UserProfile
from marketplace.services.user_service import UserService

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("/profile", response_model=UserProfile)
def get_profile(
    current_user: Annotated[User, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
):
    """Get current user profile and stats."""
    return user_service.get_profile(current_user)


@router.get("/admin/stats", response_model=AdminStats)
def get_admin_stats(
    current_user: Annotated[User, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
):
    """Platform stats (admin only)."""
    return user_service.get_admin_stats(current_user)
