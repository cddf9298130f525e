"""Enums for model fields."""

from enum import Enum


class Role(str, Enum):
    """User roles."""

    USER = "USER"
    ADMIN = "ADMIN"


class Region(str, Enum):
    """Billing region, derived from the currency hint given at registration."""

    INDIA = "INDIA"
    FOREIGN = "FOREIGN"

    @classmethod
    def from_currency(cls, currency: str | None) -> "Region":
        """INR maps to INDIA, everything else (including no currency) to FOREIGN."""
        return cls.INDIA if currency == "INR" else cls.FOREIGN


class TaskStatus(str, Enum):
    """Lifecycle states of a task."""

    SUBMITTED = "SUBMITTED"
    ACCEPTED = "ACCEPTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    """Stored payment states, plus UNPAID for tasks without any payment."""

    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    UNPAID = "UNPAID"


class TaskAction(str, Enum):
    """UI hints returned alongside a task."""

    ACCEPT = "ACCEPT"
    COUNTER = "COUNTER"
    REJECT = "REJECT"
    COMPLETE = "COMPLETE"
    PAY = "PAY"
