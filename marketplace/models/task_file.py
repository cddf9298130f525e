"""TaskFile model."""

from sqlalchemy import Column, ForeignKey, Integer, LargeBinary, String
from sqlalchemy.orm import deferred, relationship

from marketplace.database import Base
from marketplace.models.mixins import TimestampMixin


class TaskFile(Base, TimestampMixin):
    """Binary attachment on a task. Immutable once stored."""

    __tablename__ = "task_files"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)
    file_name = Column(String(255), nullable=False)
    file_key = Column(String(512), unique=True, nullable=False, index=True)
    mime_type = Column(String(255), nullable=False)
    size = Column(Integer, nullable=False)
    data = deferred(Column(LargeBinary, nullable=False))

    # Relationships
    task = relationship("Task", back_populates="files")
