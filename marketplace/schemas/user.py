"""User profile schemas."""

from pydantic import BaseModel

from marketplace.schemas.auth import UserResponse


class UserProfile(UserResponse):
    """User projection with ownership counts."""

    task_count: int
    payment_count: int


class AdminStats(BaseModel):
    users: int
    tasks: int
    revenue: float
