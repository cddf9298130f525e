"""Payment schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from marketplace.models.enums import PaymentStatus


class PaymentCreate(BaseModel):
    task_id: int | None = None


class PaymentVerify(BaseModel):
    payment_id: str = Field(..., min_length=1)
    transaction_id: str = Field(..., min_length=1, max_length=255)


class PaymentIntentResponse(BaseModel):
    """Manual UPI payment instructions."""

    provider: str
    payment_id: str
    upi_id: str
    upi_name: str
    upi_link: str
    amount: float
    currency: str
    message: str


class PaymentVerifyResponse(BaseModel):
    success: bool
    message: str
    transaction_id: str


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    task_id: int
    client_id: int
    amount: float
    currency: str
    provider: str
    provider_payment_id: str
    status: PaymentStatus
    created_at: datetime
