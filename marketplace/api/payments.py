"""Payment API endpoints (manual UPI flow)."""

from typing import Annotated

from fastapi import APIRouter, Depends

from marketplace.api.dependencies import get_current_user, get_payment_service
from marketplace.models.user import User
from marketplace.schemas.payment import (
    PaymentCreate,
    PaymentIntentResponse,
    PaymentResponse,
    PaymentVerify,
    PaymentVerifyResponse,
)
from marketplace.services.payment_service import PaymentService

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


@router.post("/create", response_model=PaymentIntentResponse)
def create_payment(
    payment_data: PaymentCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    payment_service: Annotated[PaymentService, Depends(get_payment_service)],
):
    """Create a pending payment and return UPI payment details."""
    return payment_service.create_payment_intent(current_user.id, payment_data.task_id)


@router.post("/verify", response_model=PaymentVerifyResponse)
def verify_payment(
    verification: PaymentVerify,
    current_user: Annotated[User, Depends(get_current_user)],
    payment_service: Annotated[PaymentService, Depends(get_payment_service)],
):
    """Verify a UPI payment (admin or the paying client)."""
    return payment_service.verify_manual_payment(
        verification.payment_id, verification.transaction_id, current_user
    )


@router.get("/task/{task_id}", response_model=list[PaymentResponse])
def get_task_payments(
    task_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    payment_service: Annotated[PaymentService, Depends(get_payment_service)],
):
    """Payment attempts for a task, newest first."""
    return payment_service.list_task_payments(task_id, current_user)
