"""Authentication API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from marketplace.api.dependencies import get_auth_service, get_current_user, get_optional_user
from marketplace.models.user import User
from marketplace.schemas.auth import (
    AuthResponse,
    LogoutRequest,
    LogoutResponse,
    RefreshRequest,
    UserLogin,
    UserRegister,
    UserResponse,
)
from marketplace.services.auth import AuthService, TokenBundle

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


def _auth_response(bundle: TokenBundle) -> AuthResponse:
    return AuthResponse(
        access_token=bundle.access_token,
        refresh_token=bundle.refresh_token,
        user=UserResponse.model_validate(bundle.user),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserRegister,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
):
    """Register a new user. Region is INDIA for INR, FOREIGN otherwise."""
    bundle = auth_service.register(
        user_data.email, user_data.password, user_data.name, user_data.currency
    )
    return _auth_response(bundle)


@router.post("/login", response_model=AuthResponse)
def login(
    credentials: UserLogin,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
):
    """Login with email and password."""
    return _auth_response(auth_service.login(credentials.email, credentials.password))


@router.post("/refresh", response_model=AuthResponse)
def refresh(
    body: RefreshRequest,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
):
    """Exchange a refresh token for a new pair. Each refresh token works once."""
    return _auth_response(auth_service.refresh_tokens(body.refresh_token))


@router.get("/me", response_model=UserResponse)
def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
):
    """Get current user information."""
    return auth_service.get_me(current_user.id)


@router.post("/logout", response_model=LogoutResponse)
def logout(
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
    current_user: Annotated[User | None, Depends(get_optional_user)],
    body: LogoutRequest | None = None,
):
    """Revoke refresh tokens.

    Authenticated callers revoke the given token, or all of their tokens when
    none is given. Callers with only a refresh token revoke that token.
    """
    refresh_token = body.refresh_token if body else None

    if current_user is not None:
        auth_service.logout(current_user.id, refresh_token)
    elif refresh_token:
        auth_service.logout_by_refresh_token(refresh_token)

    return LogoutResponse()
