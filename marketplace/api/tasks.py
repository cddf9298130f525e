"""Task API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Response, UploadFile, status

from marketplace.api.dependencies import (
    get_chat_service,
    get_current_user,
    get_file_service,
    get_task_service,
)
from marketplace.models.user import User
from marketplace.schemas.chat import ChatMessageCreate, ChatMessageResponse
from marketplace.schemas.file import TaskFileResponse
from marketplace.schemas.task import (
    CounterOffer,
    TaskCreate,
    TaskDetail,
    TaskResponse,
    TaskStatusUpdate,
    TaskView,
)
from marketplace.services.chat_service import ChatService
from marketplace.services.file_service import FileService, content_disposition
from marketplace.services.task_service import TaskService

router = APIRouter(prefix="/api/v1/tasks", tags=["tasks"])


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    task_data: TaskCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    task_service: Annotated[TaskService, Depends(get_task_service)],
):
    """Create a new task. Target date defaults to a week from now."""
    return task_service.create(
        current_user,
        title=task_data.title,
        description=task_data.description,
        budget=task_data.budget,
        currency=task_data.currency,
        urgency=task_data.urgency,
        target_date=task_data.target_date,
    )


@router.get("", response_model=list[TaskView])
def get_tasks(
    current_user: Annotated[User, Depends(get_current_user)],
    task_service: Annotated[TaskService, Depends(get_task_service)],
):
    """Get all tasks (clients get their own, admins get every task)."""
    return task_service.find_all(current_user)


@router.get("/user", response_model=list[TaskView])
def get_user_tasks(
    current_user: Annotated[User, Depends(get_current_user)],
    task_service: Annotated[TaskService, Depends(get_task_service)],
):
    """Get the current user's own tasks, newest first."""
    return task_service.find_user_tasks(current_user)


@router.get("/{task_id}", response_model=TaskDetail)
def get_task(
    task_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    task_service: Annotated[TaskService, Depends(get_task_service)],
):
    """Get task details with files, payments and recent messages."""
    return task_service.find_one(task_id, current_user)


@router.post("/{task_id}/accept", response_model=TaskResponse)
def accept_task(
    task_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    task_service: Annotated[TaskService, Depends(get_task_service)],
):
    """Admin accepts a task."""
    return task_service.accept_task(task_id, current_user)


@router.post("/{task_id}/counter", response_model=TaskResponse)
def counter_offer(
    task_id: int,
    offer: CounterOffer,
    current_user: Annotated[User, Depends(get_current_user)],
    task_service: Annotated[TaskService, Depends(get_task_service)],
):
    """Admin makes a counter offer."""
    return task_service.counter_offer(task_id, offer.amount, current_user)


@router.post("/{task_id}/complete", response_model=TaskResponse)
def complete_task(
    task_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    task_service: Annotated[TaskService, Depends(get_task_service)],
):
    """Admin marks a task as completed."""
    return task_service.complete_task(task_id, current_user)


@router.patch("/{task_id}/status", response_model=TaskResponse)
def update_task_status(
    task_id: int,
    status_data: TaskStatusUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    task_service: Annotated[TaskService, Depends(get_task_service)],
):
    """Admin sets any status, bypassing the normal transitions."""
    return task_service.unsafe_override_status(task_id, status_data.status, current_user)


@router.post(
    "/{task_id}/files", response_model=TaskFileResponse, status_code=status.HTTP_201_CREATED
)
async def upload_file(
    task_id: int,
    file: Annotated[UploadFile, File(description="Attachment for the task")],
    current_user: Annotated[User, Depends(get_current_user)],
    file_service: Annotated[FileService, Depends(get_file_service)],
):
    """Upload a file for a task.

    Note: This endpoint must remain async because UploadFile.read() is async.
    """
    content = await file.read()
    return file_service.upload(task_id, file.filename, file.content_type, content, current_user)


@router.get("/{task_id}/files", response_model=list[TaskFileResponse])
def get_files(
    task_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    file_service: Annotated[FileService, Depends(get_file_service)],
):
    """Get all files for a task."""
    return file_service.list_files(task_id, current_user)


@router.get("/{task_id}/files/{file_id}/download")
def download_file(
    task_id: int,
    file_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    file_service: Annotated[FileService, Depends(get_file_service)],
):
    """Download a file."""
    task_file = file_service.download(task_id, file_id, current_user)
    return Response(
        content=task_file.data,
        media_type=task_file.mime_type,
        headers={"Content-Disposition": content_disposition(task_file.file_name)},
    )


@router.get("/{task_id}/messages", response_model=list[ChatMessageResponse])
def get_messages(
    task_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    chat_service: Annotated[ChatService, Depends(get_chat_service)],
):
    """Chat history for a task, oldest first."""
    return chat_service.get_messages(task_id, current_user)


@router.post(
    "/{task_id}/messages",
    response_model=ChatMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
def post_message(
    task_id: int,
    message: ChatMessageCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    chat_service: Annotated[ChatService, Depends(get_chat_service)],
):
    """Post a chat message without an open WebSocket."""
    return chat_service.save_message(task_id, current_user, message.content)
