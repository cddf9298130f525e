"""User profile and platform statistics."""

from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from marketplace.models.enums import PaymentStatus
from marketplace.models.payment import Payment
from marketplace.models.task import Task
from marketplace.models.user import User
from marketplace.services.authorization import Capability, authorize


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def get_profile(self, user: User) -> dict[str, Any]:
        """Public projection of the user plus how many tasks and payments they own."""
        task_count = self.db.query(func.count(Task.id)).filter(Task.client_id == user.id).scalar()
        payment_count = (
            self.db.query(func.count(Payment.id)).filter(Payment.client_id == user.id).scalar()
        )
        return {
            "id": user.id,
            "email": user.email,
            "name": user.name,
            "role": user.role,
            "region": user.region,
            "created_at": user.created_at,
            "task_count": task_count or 0,
            "payment_count": payment_count or 0,
        }

    def get_admin_stats(self, caller: User) -> dict[str, Any]:
        """Counts of users and tasks, and revenue from verified payments."""
        authorize(caller, capability=Capability.ADMIN)
        revenue = (
            self.db.query(func.sum(Payment.amount))
            .filter(Payment.status == PaymentStatus.SUCCESS.value)
            .scalar()
        )
        return {
            "users": self.db.query(func.count(User.id)).scalar() or 0,
            "tasks": self.db.query(func.count(Task.id)).scalar() or 0,
            "revenue": float(revenue or 0),
        }
