"""Per-task chat between a client and the admins."""

import logging

from sqlalchemy.orm import Session

from marketplace.models.chat_message import ChatMessage
from marketplace.models.task import Task
from marketplace.models.user import User
from marketplace.services.authorization import authorize
from marketplace.services.errors import BadRequestError, NotFoundError
from marketplace.services.realtime import TaskEventType, publish_task_event

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 4000


def serialize_message(message: ChatMessage) -> dict:
    return {
        "id": message.id,
        "task_id": message.task_id,
        "sender_id": message.sender_id,
        "sender_email": message.sender.email if message.sender else None,
        "content": message.content,
        "created_at": message.created_at.isoformat() if message.created_at else None,
    }


class ChatService:
    def __init__(self, db: Session):
        self.db = db

    def get_task(self, task_id: int, caller: User) -> Task:
        """Load a task the caller may chat on."""
        task = self.db.query(Task).filter(Task.id == task_id).first()
        if not task:
            raise NotFoundError("Task not found")
        authorize(caller, task)
        return task

    def save_message(self, task_id: int, sender: User, content: str) -> ChatMessage:
        """Persist a message and fan it out to the task's channel."""
        task = self.get_task(task_id, sender)

        content = (content or "").strip()
        if not content:
            raise BadRequestError("Message content is required")
        if len(content) > MAX_MESSAGE_LENGTH:
            raise BadRequestError(f"Message exceeds {MAX_MESSAGE_LENGTH} characters")

        message = ChatMessage(task_id=task.id, sender_id=sender.id, content=content)
        self.db.add(message)
        self.db.commit()
        self.db.refresh(message)

        publish_task_event(task.id, TaskEventType.MESSAGE_CREATED, serialize_message(message))
        return message

    def get_messages(self, task_id: int, caller: User) -> list[ChatMessage]:
        """All messages on a task, oldest first."""
        task = self.get_task(task_id, caller)
        return (
            self.db.query(ChatMessage)
            .filter(ChatMessage.task_id == task.id)
            .order_by(ChatMessage.created_at, ChatMessage.id)
            .all()
        )
