"""Authentication schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserRegister(BaseModel):
    """User registration request."""

    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=6, max_length=128)
    name: str = Field(..., min_length=1, max_length=255)
    currency: str | None = Field(None, max_length=3)  # 'INR' -> INDIA region


class UserLogin(BaseModel):
    """User login request."""

    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., max_length=128)


class RefreshRequest(BaseModel):
    """Refresh token rotation request."""

    refresh_token: str = Field(..., min_length=1)


class LogoutRequest(BaseModel):
    """Logout request. Without a token every session of the user is revoked."""

    refresh_token: str | None = None


class UserResponse(BaseModel):
    """Public user projection."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str | None
    role: str
    region: str
    created_at: datetime | None = None


class AuthResponse(BaseModel):
    """Authentication response with a token pair and user info."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"  # noqa: S105
    user: UserResponse


class LogoutResponse(BaseModel):
    success: bool = True
    message: str = "Logged out successfully"
