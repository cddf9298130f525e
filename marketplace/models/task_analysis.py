"""TaskAIAnalysis model for LLM-generated task metadata."""

from sqlalchemy import JSON, Column, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from marketplace.database import Base
from marketplace.models.mixins import TimestampMixin


class TaskAIAnalysis(Base, TimestampMixin):
    """Advisory analysis of a task, produced in the background."""

    __tablename__ = "task_ai_analyses"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), unique=True, nullable=False, index=True)
    category = Column(String(100), nullable=False, default="Unknown")
    complexity = Column(String(20), nullable=False, default="Medium")  # Low, Medium, High
    recommended_price = Column(Float, nullable=False, default=0)
    priority_score = Column(Integer, nullable=False, default=5)  # 1-10
    risk_flags = Column(JSON, nullable=True)
    raw_analysis = Column(JSON, nullable=True)

    # Relationships
    task = relationship("Task", back_populates="analysis")
