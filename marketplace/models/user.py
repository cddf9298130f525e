"""User model."""

from sqlalchemy import Column, Integer, String

from marketplace.database import Base
from marketplace.models.enums import Region, Role
from marketplace.models.mixins import TimestampMixin


class User(Base, TimestampMixin):
    """User model for authentication and task ownership."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, default=Role.USER.value)
    region = Column(String(20), nullable=False, default=Region.FOREIGN.value)
