"""ChatMessage model."""

from sqlalchemy import Column, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from marketplace.database import Base
from marketplace.models.mixins import TimestampMixin


class ChatMessage(Base, TimestampMixin):
    """A chat message exchanged on a task between its client and an admin."""

    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)

    # Relationships
    task = relationship("Task", back_populates="messages")
    sender = relationship("User")
