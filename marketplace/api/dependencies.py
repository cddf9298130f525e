"""FastAPI dependencies for authentication, database and services."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from marketplace.database import get_db
from marketplace.models.user import User
from marketplace.services.auth import AuthService, decode_access_token
from marketplace.services.chat_service import ChatService
from marketplace.services.file_service import FileService
from marketplace.services.payment_service import PaymentService
from marketplace.services.task_service import TaskService
from marketplace.services.user_service import UserService

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_user_from_token(db: Session, token: str) -> User | None:
    """Resolve an access token to its user, or None."""
    payload = decode_access_token(token)
    if payload is None or payload.get("sub") is None:
        return None
    return db.query(User).filter(User.id == int(payload["sub"])).first()


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Get the current authenticated user from JWT token."""
    payload = decode_access_token(credentials.credentials)
    if payload is None or payload.get("sub") is None:
        raise _unauthorized("Invalid authentication credentials")

    user = db.query(User).filter(User.id == int(payload["sub"])).first()
    if user is None:
        raise _unauthorized("User not found")

    return user


def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(optional_security)],
    db: Annotated[Session, Depends(get_db)],
) -> User | None:
    """Like get_current_user, but None instead of 401 for missing or bad tokens."""
    if credentials is None:
        return None
    return get_user_from_token(db, credentials.credentials)


def get_auth_service(db: Annotated[Session, Depends(get_db)]) -> AuthService:
    return AuthService(db)


def get_task_service(db: Annotated[Session, Depends(get_db)]) -> TaskService:
    """Get task service with the default analysis dispatcher."""
    return TaskService(db)


def get_payment_service(db: Annotated[Session, Depends(get_db)]) -> PaymentService:
    return PaymentService(db)


def get_file_service(db: Annotated[Session, Depends(get_db)]) -> FileService:
    return FileService(db)


def get_chat_service(db: Annotated[Session, Depends(get_db)]) -> ChatService:
    return ChatService(db)


def get_user_service(db: Annotated[Session, Depends(get_db)]) -> UserService:
    return UserService(db)
