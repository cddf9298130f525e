"""Task lifecycle: creation, admin transitions and the derived read view."""

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from marketplace.config import get_settings
from marketplace.models.chat_message import ChatMessage
from marketplace.models.enums import PaymentStatus, Role, TaskAction, TaskStatus
from marketplace.models.payment import Payment
from marketplace.models.task import Task
from marketplace.models.user import User
from marketplace.services.authorization import Capability, authorize
from marketplace.services.errors import NotFoundError
from marketplace.services.realtime import TaskEventType, publish_task_event

logger = logging.getLogger(__name__)

DEFAULT_TARGET_DAYS = 7
RECENT_MESSAGES_LIMIT = 10


def allowed_actions(role: str, status: str, payment_status: str) -> list[TaskAction]:
    """UI hints for what the caller can do next. Not enforced server-side."""
    actions: list[TaskAction] = []
    if role == Role.ADMIN:
        if status == TaskStatus.SUBMITTED:
            actions.extend([TaskAction.ACCEPT, TaskAction.COUNTER, TaskAction.REJECT])
        if status in (TaskStatus.ACCEPTED, TaskStatus.IN_PROGRESS):
            actions.append(TaskAction.COMPLETE)
    elif payment_status in (PaymentStatus.UNPAID, PaymentStatus.FAILED):
        actions.append(TaskAction.PAY)
    return actions


def _default_dispatcher(task_id: int) -> None:
    from marketplace.tasks.task_analysis import enqueue_task_analysis

    enqueue_task_analysis(task_id)


class TaskService:
    """Owns a task's status field and the rules for changing it.

    Admin transitions are deliberately permissive: accept does not look at
    payments, counter and complete apply from any state, and the status
    override accepts any enum value.
    """

    def __init__(
        self,
        db: Session,
        dispatch_analysis: Callable[[int], None] | None = None,
    ):
        self.db = db
        self.dispatch_analysis = dispatch_analysis or _default_dispatcher

    def _get(self, task_id: int) -> Task:
        task = self.db.query(Task).filter(Task.id == task_id).first()
        if task is None:
            raise NotFoundError("Task not found")
        return task

    def _save_status(self, task: Task, previous: str) -> Task:
        self.db.commit()
        self.db.refresh(task)
        logger.info(f"Task {task.id}: {previous} -> {task.status}")
        publish_task_event(
            task.id,
            TaskEventType.TASK_STATUS_CHANGED,
            {"previous": previous, "status": task.status, "budget": task.suggested_budget},
        )
        return task

    def create(
        self,
        client: User,
        title: str,
        description: str,
        budget: float,
        currency: str,
        urgency: str,
        target_date: datetime | None = None,
    ) -> Task:
        """Create a task in SUBMITTED owned by ``client``.

        Analysis is submitted after the commit and its outcome is never
        awaited.
        """
        authorize(client)

        task = Task(
            title=title,
            description=description,
            suggested_budget=budget,
            currency=currency,
            urgency=urgency,
            target_date=target_date or datetime.now(UTC) + timedelta(days=DEFAULT_TARGET_DAYS),
            status=TaskStatus.SUBMITTED.value,
            client_id=client.id,
        )
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)

        if get_settings().task_analysis_enabled:
            try:
                self.dispatch_analysis(task.id)
            except Exception as e:
                logger.error(f"Analysis dispatch failed for task {task.id}: {e}")

        return task

    def accept_task(self, task_id: int, caller: User) -> Task:
        """Move a task to ACCEPTED. Accepting an ACCEPTED task is a no-op.

        No payment check happens here; verification and acceptance are
        sequenced by the operator.
        """
        authorize(caller, capability=Capability.ADMIN)
        task = self._get(task_id)
        if task.status == TaskStatus.ACCEPTED:
            return task

        previous = task.status
        task.status = TaskStatus.ACCEPTED.value
        return self._save_status(task, previous)

    def counter_offer(self, task_id: int, amount: float, caller: User) -> Task:
        """Replace the budget and send the task back to SUBMITTED."""
        authorize(caller, capability=Capability.ADMIN)
        task = self._get(task_id)

        previous = task.status
        task.suggested_budget = amount
        task.status = TaskStatus.SUBMITTED.value
        return self._save_status(task, previous)

    def complete_task(self, task_id: int, caller: User) -> Task:
        authorize(caller, capability=Capability.ADMIN)
        task = self._get(task_id)

        previous = task.status
        task.status = TaskStatus.COMPLETED.value
        return self._save_status(task, previous)

    def unsafe_override_status(self, task_id: int, status: TaskStatus, caller: User) -> Task:
        """Set any status with no transition check. Admin escape hatch."""
        authorize(caller, capability=Capability.ADMIN)
        task = self._get(task_id)

        previous = task.status
        task.status = TaskStatus(status).value
        logger.warning(f"Status override on task {task_id} by user {caller.id}")
        return self._save_status(task, previous)

    def find_all(self, caller: User) -> list[dict[str, Any]]:
        """All tasks for admins, the caller's own tasks otherwise."""
        authorize(caller)
        query = self.db.query(Task)
        if caller.role != Role.ADMIN:
            query = query.filter(Task.client_id == caller.id)
        return [self.format_task(task, caller.role) for task in query.order_by(Task.id).all()]

    def find_user_tasks(self, caller: User) -> list[dict[str, Any]]:
        """The caller's own tasks, newest first, always with the client view."""
        authorize(caller)
        tasks = (
            self.db.query(Task)
            .filter(Task.client_id == caller.id)
            .order_by(Task.created_at.desc(), Task.id.desc())
            .all()
        )
        return [self.format_task(task, Role.USER) for task in tasks]

    def find_one(self, task_id: int, caller: User) -> dict[str, Any]:
        task = self._get(task_id)
        authorize(caller, task)

        view = self.format_task(task, caller.role)
        view["files"] = list(task.files)
        view["payments"] = list(task.payments)
        view["messages"] = (
            self.db.query(ChatMessage)
            .filter(ChatMessage.task_id == task.id)
            .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
            .limit(RECENT_MESSAGES_LIMIT)
            .all()
        )
        return view

    def latest_payment_status(self, task: Task) -> str:
        payment = (
            self.db.query(Payment)
            .filter(Payment.task_id == task.id)
            .order_by(Payment.created_at.desc(), Payment.id.desc())
            .first()
        )
        return payment.status if payment else PaymentStatus.UNPAID.value

    def format_task(self, task: Task, role: str) -> dict[str, Any]:
        """Task columns plus the derived payment status, actions and AI metadata."""
        payment_status = self.latest_payment_status(task)
        analysis = task.analysis

        return {
            "id": task.id,
            "title": task.title,
            "description": task.description,
            "suggested_budget": task.suggested_budget,
            "currency": task.currency,
            "urgency": task.urgency,
            "target_date": task.target_date,
            "status": task.status,
            "client_id": task.client_id,
            "client": task.client,
            "created_at": task.created_at,
            "updated_at": task.updated_at,
            "payment_status": payment_status,
            "allowed_actions": allowed_actions(role, task.status, payment_status),
            "ai_metadata": analysis,
            "priority_score": analysis.priority_score if analysis else 0,
        }
