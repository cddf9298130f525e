"""Pydantic schemas for API requests and responses."""

from marketplace.schemas.auth import (
    AuthResponse,
    LogoutRequest,
    LogoutResponse,
    RefreshRequest,
    UserLogin,
    UserRegister,
    UserResponse,
)
from marketplace.schemas.chat import ChatMessageCreate, ChatMessageResponse
from marketplace.schemas.file import DownloadURLResponse, TaskFileResponse
from marketplace.schemas.payment import (
    PaymentCreate,
    PaymentIntentResponse,
    PaymentResponse,
    PaymentVerify,
    PaymentVerifyResponse,
)
from marketplace.schemas.task import (
    CounterOffer,
    TaskCreate,
    TaskDetail,
    TaskResponse,
    TaskStatusUpdate,
    TaskView,
)
from marketplace.schemas.user import AdminStats, UserProfile

__all__ = [
    "UserRegister",
    "UserLogin",
    "RefreshRequest",
    "LogoutRequest",
    "LogoutResponse",
    "UserResponse",
    "AuthResponse",
    "TaskCreate",
    "CounterOffer",
    "TaskStatusUpdate",
    "TaskResponse",
    "TaskView",
    "TaskDetail",
    "PaymentCreate",
    "PaymentVerify",
    "PaymentIntentResponse",
    "PaymentVerifyResponse",
    "PaymentResponse",
    "TaskFileResponse",
    "DownloadURLResponse",
    "ChatMessageCreate",
    "ChatMessageResponse",
    "UserProfile",
    "AdminStats",
]
