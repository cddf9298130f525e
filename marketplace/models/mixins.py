"""Column mixins shared by the marketplace models."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, func
from sqlalchemy.orm import declared_attr


class TimestampMixin:
    """``created_at`` / ``updated_at`` set by the database."""

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class ClientOwnedMixin:
    """Rows owned by a client user.

    ``authorize()`` compares ``client_id`` against the caller for ownership.
    """

    @declared_attr
    def client_id(cls):
        return Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
