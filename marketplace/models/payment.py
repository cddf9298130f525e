"""Payment model."""

from sqlalchemy import Column, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from marketplace.database import Base
from marketplace.models.enums import PaymentStatus
from marketplace.models.mixins import ClientOwnedMixin, TimestampMixin


class Payment(Base, ClientOwnedMixin, TimestampMixin):
    """One payment attempt for a task. Only the status changes after creation."""

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    currency = Column(String(3), nullable=False)
    provider = Column(String(20), nullable=False)  # 'upi'
    provider_payment_id = Column(String(64), unique=True, nullable=False, index=True)
    status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)

    # Relationships
    task = relationship("Task", back_populates="payments")
    client = relationship("User", backref="payments")
