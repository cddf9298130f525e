"""Task model."""

from sqlalchemy import Column, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import relationship

from marketplace.database import Base
from marketplace.models.enums import TaskStatus
from marketplace.models.mixins import ClientOwnedMixin, TimestampMixin


class Task(Base, ClientOwnedMixin, TimestampMixin):
    """A unit of client-submitted work with a budget and lifecycle status."""

    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    suggested_budget = Column(Float, nullable=False)
    currency = Column(String(3), nullable=False)
    urgency = Column(String(50), nullable=False)
    target_date = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(20), nullable=False, default=TaskStatus.SUBMITTED.value, index=True)

    # Relationships
    client = relationship("User", backref="tasks")
    payments = relationship("Payment", back_populates="task", order_by="Payment.id")
    files = relationship("TaskFile", back_populates="task", order_by="TaskFile.id")
    messages = relationship("ChatMessage", back_populates="task", order_by="ChatMessage.id")
    analysis = relationship("TaskAIAnalysis", back_populates="task", uselist=False)
