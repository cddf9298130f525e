"""SQLAlchemy models."""

from marketplace.models.chat_message import ChatMessage
from marketplace.models.payment import Payment
from marketplace.models.refresh_token import RefreshToken
from marketplace.models.task import Task
from marketplace.models.task_analysis import TaskAIAnalysis
from marketplace.models.task_file import TaskFile
from marketplace.models.user import User

__all__ = [
    "User",
    "RefreshToken",
    "Task",
    "Payment",
    "TaskFile",
    "TaskAIAnalysis",
    "ChatMessage",
]
