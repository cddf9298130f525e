"""Authentication service for JWT and password handling."""

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marketplace.config import get_settings
from marketplace.models.enums import Region, Role
from marketplace.models.refresh_token import RefreshToken
from marketplace.models.user import User
from marketplace.services.errors import ConflictError, UnauthorizedError

logger = logging.getLogger(__name__)
settings = get_settings()

ACCESS_TOKEN_TYPE = "access"  # noqa: S105
REFRESH_TOKEN_TYPE = "refresh"  # noqa: S105

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def _claims(user_id: int, email: str, role: str, token_type: str, expire: datetime) -> dict:
    return {
        "sub": str(user_id),
        "email": email,
        "role": Role(role).value,
        "type": token_type,
        "exp": expire,
    }


def create_access_token(user_id: int, email: str, role: str = Role.USER) -> str:
    """Create a short-lived JWT access token."""
    expire = datetime.now(UTC) + timedelta(minutes=settings.jwt_access_expiration_minutes)
    to_encode = _claims(user_id, email, role, ACCESS_TOKEN_TYPE, expire)
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_refresh_token(user_id: int, email: str, role: str = Role.USER) -> str:
    """Create a JWT refresh token. The ``jti`` keeps every issued token unique."""
    expire = datetime.now(UTC) + timedelta(days=settings.jwt_refresh_expiration_days)
    to_encode = _claims(user_id, email, role, REFRESH_TOKEN_TYPE, expire)
    to_encode["jti"] = uuid.uuid4().hex
    return jwt.encode(to_encode, settings.jwt_refresh_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict | None:
    """Decode and validate a JWT access token."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    if payload.get("type") != ACCESS_TOKEN_TYPE:
        return None
    return payload


def decode_refresh_token(token: str) -> dict | None:
    """Decode and validate a JWT refresh token."""
    try:
        payload = jwt.decode(
            token, settings.jwt_refresh_secret, algorithms=[settings.jwt_algorithm]
        )
    except JWTError:
        return None
    if payload.get("type") != REFRESH_TOKEN_TYPE:
        return None
    return payload


def get_user_by_email(db: Session, email: str) -> User | None:
    """Get a user by email."""
    return db.query(User).filter(User.email == email).first()


def _as_aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


@dataclass
class TokenBundle:
    """An access/refresh token pair plus the user it was issued for."""

    access_token: str
    refresh_token: str
    user: User


class AuthService:
    """Registration, login and refresh-token bookkeeping."""

    def __init__(self, db: Session):
        self.db = db

    def register(
        self,
        email: str,
        password: str,
        name: str | None = None,
        currency: str | None = None,
    ) -> TokenBundle:
        """Create a USER account and issue its first token pair."""
        if get_user_by_email(self.db, email):
            raise ConflictError("User already exists")

        user = User(
            email=email,
            password_hash=get_password_hash(password),
            name=name,
            role=Role.USER.value,
            region=Region.from_currency(currency).value,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            # Lost a race against a concurrent registration with the same email
            self.db.rollback()
            raise ConflictError("User already exists") from e
        self.db.refresh(user)

        logger.info(f"Registered user {user.id} ({user.region})")
        return self.generate_tokens(user)

    def authenticate(self, email: str, password: str) -> User | None:
        """Return the user for valid credentials, otherwise None."""
        user = get_user_by_email(self.db, email)
        if not user:
            return None
        if not verify_password(password, user.password_hash):
            return None
        return user

    def login(self, email: str, password: str) -> TokenBundle:
        """Login with email and password.

        Unknown emails and wrong passwords fail with the same error.
        """
        user = self.authenticate(email, password)
        if not user:
            raise UnauthorizedError("Invalid credentials")
        return self.generate_tokens(user)

    def generate_tokens(self, user: User) -> TokenBundle:
        """Issue an access/refresh pair and persist the refresh token."""
        access_token = create_access_token(user.id, user.email, user.role)
        refresh_token = create_refresh_token(user.id, user.email, user.role)

        self.db.add(
            RefreshToken(
                user_id=user.id,
                token=refresh_token,
                expires_at=datetime.now(UTC)
                + timedelta(days=settings.jwt_refresh_expiration_days),
            )
        )
        self.db.commit()

        return TokenBundle(access_token=access_token, refresh_token=refresh_token, user=user)

    def refresh_tokens(self, refresh_token: str) -> TokenBundle:
        """Rotate a refresh token: consume it and issue a fresh pair.

        The stored row is removed with a single DELETE and the affected row
        count decides the winner, so two callers presenting the same token
        cannot both succeed.
        """
        payload = decode_refresh_token(refresh_token)
        if payload is None or payload.get("sub") is None:
            raise UnauthorizedError("Invalid refresh token")

        user = self.db.query(User).filter(User.id == int(payload["sub"])).first()
        if user is None:
            raise UnauthorizedError("Invalid refresh token")

        stored = (
            self.db.query(RefreshToken)
            .filter(RefreshToken.token == refresh_token, RefreshToken.user_id == user.id)
            .first()
        )
        if stored is None or _as_aware(stored.expires_at) < datetime.now(UTC):
            logger.warning(f"Rejected unknown or expired refresh token for user {user.id}")
            raise UnauthorizedError("Invalid refresh token")

        deleted = (
            self.db.query(RefreshToken)
            .filter(RefreshToken.id == stored.id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        if deleted != 1:
            logger.warning(f"Refresh token for user {user.id} was already consumed")
            raise UnauthorizedError("Invalid refresh token")

        return self.generate_tokens(user)

    def logout(self, user_id: int, refresh_token: str | None = None) -> int:
        """Delete one of the user's refresh tokens, or all of them."""
        query = self.db.query(RefreshToken).filter(RefreshToken.user_id == user_id)
        if refresh_token:
            query = query.filter(RefreshToken.token == refresh_token)
        deleted = query.delete(synchronize_session=False)
        self.db.commit()
        return deleted

    def logout_by_refresh_token(self, refresh_token: str) -> int:
        """Delete a refresh token by value, without knowing its owner."""
        deleted = (
            self.db.query(RefreshToken)
            .filter(RefreshToken.token == refresh_token)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted

    def get_me(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise UnauthorizedError("User not found")
        return user

    def reset_admin(self, email: str, password: str, name: str = "Admin") -> User:
        """Create an admin account, or promote an existing one and reset its password."""
        user = get_user_by_email(self.db, email)
        if user is None:
            user = User(email=email, name=name, region=Region.INDIA.value)
            self.db.add(user)
        user.password_hash = get_password_hash(password)
        user.role = Role.ADMIN.value
        self.db.commit()
        self.db.refresh(user)
        return user
