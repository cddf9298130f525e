"""Task schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from marketplace.models.enums import PaymentStatus, TaskAction, TaskStatus
from marketplace.schemas.chat import ChatMessageResponse
from marketplace.schemas.file import TaskFileResponse
from marketplace.schemas.payment import PaymentResponse


class TaskCreate(BaseModel):
    """Create a new task."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    budget: float
    currency: str = Field(..., min_length=3, max_length=3)  # 'INR', 'USD', 'EUR'
    urgency: str = Field(..., max_length=50)
    target_date: datetime | None = None


class CounterOffer(BaseModel):
    """Admin counter-offer. The amount is not range-checked."""

    amount: float
    message: str | None = Field(None, max_length=2000)


class TaskStatusUpdate(BaseModel):
    status: TaskStatus


class TaskClient(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    email: str
    region: str


class AIMetadata(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category: str
    complexity: str
    risk_flags: list[str] | None = None
    recommended_price: float


class TaskResponse(BaseModel):
    """Task as stored, for mutation endpoints."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    suggested_budget: float
    currency: str
    urgency: str
    target_date: datetime | None
    status: TaskStatus
    client_id: int
    created_at: datetime
    updated_at: datetime


class TaskView(TaskResponse):
    """Task with the derived fields used by list and detail views."""

    client: TaskClient | None = None
    payment_status: PaymentStatus
    allowed_actions: list[TaskAction]
    ai_metadata: AIMetadata | None = None
    priority_score: int = 0


class TaskDetail(TaskView):
    files: list[TaskFileResponse] = []
    payments: list[PaymentResponse] = []
    messages: list[ChatMessageResponse] = []
