"""Manual UPI payment intents and verification."""

import logging
import secrets
import string
import time
from typing import Any
from urllib.parse import quote

from sqlalchemy.orm import Session

from marketplace.config import get_settings
from marketplace.models.enums import PaymentStatus
from marketplace.models.payment import Payment
from marketplace.models.task import Task
from marketplace.models.user import User
from marketplace.services.authorization import authorize
from marketplace.services.errors import BadRequestError, ForbiddenError, NotFoundError
from marketplace.services.realtime import TaskEventType, publish_task_event

logger = logging.getLogger(__name__)

UPI_PROVIDER = "upi"

# Placeholder acceptance rule until settlement is checked against a real gateway
DEMO_TRANSACTION_IDS = frozenset({"TEST123", "DEMO456", "DEV789"})
MIN_TRANSACTION_ID_LENGTH = 10

PAYMENT_INSTRUCTIONS = (
    "Please scan the QR code or use the UPI ID to make the payment. "
    "After payment, contact admin with the transaction ID for verification."
)


def is_acceptable_transaction_id(transaction_id: str) -> bool:
    if transaction_id in DEMO_TRANSACTION_IDS:
        return True
    return len(transaction_id) >= MIN_TRANSACTION_ID_LENGTH


def new_provider_payment_id() -> str:
    """``pay_<epoch ms>_<9 random chars>``."""
    alphabet = string.ascii_lowercase + string.digits
    suffix = "".join(secrets.choice(alphabet) for _ in range(9))
    return f"pay_{int(time.time() * 1000)}_{suffix}"


def _format_amount(amount: float) -> str:
    return str(int(amount)) if float(amount).is_integer() else str(amount)


def build_upi_link(upi_id: str, upi_name: str, amount: float, note: str) -> str:
    """UPI deep link. Settlement is always in INR."""
    return (
        f"upi://pay?pa={upi_id}&pn={quote(upi_name)}&am={_format_amount(amount)}"
        f"&cu=INR&tn={quote(note)}"
    )


class PaymentService:
    """Tracks payment attempts per task. No external gateway is called."""

    def __init__(self, db: Session):
        self.db = db
        settings = get_settings()
        self.upi_id = settings.upi_id
        self.upi_name = settings.upi_name

    def create_payment_intent(self, user_id: int, task_id: int | None) -> dict[str, Any]:
        """Record a PENDING payment for a task and return UPI instructions."""
        if not task_id:
            raise BadRequestError("taskId is required")

        user = self.db.query(User).filter(User.id == user_id).first()
        task = self.db.query(Task).filter(Task.id == task_id).first()
        if not user:
            raise BadRequestError("User not found")
        if not task:
            raise BadRequestError("Task not found")

        amount = task.suggested_budget
        payment_id = new_provider_payment_id()
        upi_link = build_upi_link(
            self.upi_id, self.upi_name, amount, f"Payment for Task: {task.title}"
        )

        self.db.add(
            Payment(
                task_id=task.id,
                client_id=user.id,
                amount=amount,
                currency=task.currency,
                provider=UPI_PROVIDER,
                provider_payment_id=payment_id,
                status=PaymentStatus.PENDING.value,
            )
        )
        self.db.commit()
        logger.info(f"Created payment {payment_id} for task {task.id}")

        return {
            "provider": UPI_PROVIDER,
            "payment_id": payment_id,
            "upi_id": self.upi_id,
            "upi_name": self.upi_name,
            "upi_link": upi_link,
            "amount": amount,
            "currency": task.currency,
            "message": PAYMENT_INSTRUCTIONS,
        }

    def verify_manual_payment(
        self, payment_id: str, transaction_id: str, caller: User
    ) -> dict[str, Any]:
        """Mark a payment SUCCESS after a human-supplied transaction id.

        Only the payment's client or an admin may verify. Every failure is a
        BadRequestError. The task's status is left alone.
        """
        payment = (
            self.db.query(Payment).filter(Payment.provider_payment_id == payment_id).first()
        )
        if not payment:
            raise BadRequestError("Payment not found")

        try:
            authorize(caller, payment)
        except ForbiddenError as e:
            raise BadRequestError("Only admin or task owner can verify payments") from e

        if not is_acceptable_transaction_id(transaction_id):
            raise BadRequestError(
                "Invalid transaction ID. For testing, use: TEST123, DEMO456, or DEV789"
            )

        payment.status = PaymentStatus.SUCCESS.value
        self.db.commit()
        logger.info(f"Payment {payment_id} verified by user {caller.id}")
        publish_task_event(
            payment.task_id,
            TaskEventType.PAYMENT_VERIFIED,
            {"payment_id": payment_id, "status": payment.status},
        )

        return {
            "success": True,
            "message": "Payment verified successfully",
            "transaction_id": transaction_id,
        }

    def list_task_payments(self, task_id: int, caller: User) -> list[Payment]:
        task = self.db.query(Task).filter(Task.id == task_id).first()
        if not task:
            raise NotFoundError("Task not found")
        authorize(caller, task)
        return (
            self.db.query(Payment)
            .filter(Payment.task_id == task_id)
            .order_by(Payment.created_at.desc(), Payment.id.desc())
            .all()
        )
