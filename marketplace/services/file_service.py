"""Task attachments: upload, listing, download and signed download URLs."""

import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from urllib.parse import quote

from jose import JWTError, jwt
from sqlalchemy.orm import Session

from marketplace.config import get_settings
from marketplace.models.task import Task
from marketplace.models.task_file import TaskFile
from marketplace.models.user import User
from marketplace.services.authorization import authorize
from marketplace.services.errors import BadRequestError, NotFoundError, UnauthorizedError
from marketplace.services.realtime import TaskEventType, publish_task_event

logger = logging.getLogger(__name__)

DOWNLOAD_TOKEN_TYPE = "file_download"  # noqa: S105


def download_path(task_id: int, file_id: int) -> str:
    return f"/api/v1/tasks/{task_id}/files/{file_id}/download"


def make_file_key(task_id: int, file_name: str) -> str:
    """``<task id>/<random>-<original name>``, unique per upload."""
    return f"{task_id}/{secrets.token_urlsafe(15)}-{file_name}"


def content_disposition(file_name: str) -> str:
    """Attachment header with an ASCII fallback and the RFC 5987 UTF-8 name."""
    ascii_name = file_name.encode("ascii", "replace").decode("ascii")
    fallback = "".join(
        "_" if char in '"\\' or not char.isprintable() else char for char in ascii_name
    )
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(file_name)}"


@dataclass
class SignedDownloadURL:
    url: str
    expires_at: datetime


class FileService:
    """Stores attachment bytes in the relational store, next to their metadata."""

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()

    def _get_task(self, task_id: int, caller: User) -> Task:
        task = self.db.query(Task).filter(Task.id == task_id).first()
        if not task:
            raise NotFoundError("Task not found")
        authorize(caller, task)
        return task

    def upload(
        self,
        task_id: int,
        file_name: str | None,
        mime_type: str | None,
        content: bytes,
        caller: User,
    ) -> TaskFile:
        """Attach a file to a task. Only the task's client or an admin may upload."""
        task = self._get_task(task_id, caller)

        if not file_name or not content:
            raise BadRequestError("No file provided")
        if len(content) > self.settings.max_upload_bytes:
            raise BadRequestError(
                f"File exceeds the {self.settings.max_upload_bytes} byte upload limit"
            )

        task_file = TaskFile(
            task_id=task.id,
            file_name=file_name,
            file_key=make_file_key(task.id, file_name),
            mime_type=mime_type or "application/octet-stream",
            size=len(content),
            data=content,
        )
        self.db.add(task_file)
        self.db.commit()
        self.db.refresh(task_file)

        logger.info(f"Stored file {task_file.file_key} ({task_file.size} bytes)")
        publish_task_event(
            task.id,
            TaskEventType.FILE_UPLOADED,
            {"file_id": task_file.id, "file_name": task_file.file_name},
        )
        return task_file

    def list_files(self, task_id: int, caller: User) -> list[TaskFile]:
        task = self._get_task(task_id, caller)
        return (
            self.db.query(TaskFile)
            .filter(TaskFile.task_id == task.id)
            .order_by(TaskFile.id)
            .all()
        )

    def download(self, task_id: int, file_id: int, caller: User) -> TaskFile:
        """Return the file with its bytes loaded."""
        task = self._get_task(task_id, caller)
        task_file = (
            self.db.query(TaskFile)
            .filter(TaskFile.id == file_id, TaskFile.task_id == task.id)
            .first()
        )
        if not task_file:
            raise NotFoundError("File not found")
        return task_file

    def issue_download_url(self, file_id: int, caller: User) -> SignedDownloadURL:
        """Sign a short-lived URL for a file the caller may read."""
        task_file = self.db.query(TaskFile).filter(TaskFile.id == file_id).first()
        if not task_file:
            raise NotFoundError("File not found")
        authorize(caller, task_file.task)

        expires_at = datetime.now(UTC) + timedelta(
            seconds=self.settings.file_url_expiration_seconds
        )
        token = jwt.encode(
            {
                "sub": task_file.file_key,
                "fid": task_file.id,
                "type": DOWNLOAD_TOKEN_TYPE,
                "exp": expires_at,
            },
            self.settings.jwt_secret,
            algorithm=self.settings.jwt_algorithm,
        )
        return SignedDownloadURL(
            url=f"/api/v1/files/download?token={token}", expires_at=expires_at
        )

    def resolve_signed_download(self, token: str) -> TaskFile:
        """Return the file a signed URL points at, if the signature is valid and unexpired."""
        try:
            payload = jwt.decode(
                token, self.settings.jwt_secret, algorithms=[self.settings.jwt_algorithm]
            )
        except JWTError as e:
            raise UnauthorizedError("Invalid or expired download link") from e
        if payload.get("type") != DOWNLOAD_TOKEN_TYPE:
            raise UnauthorizedError("Invalid or expired download link")

        task_file = (
            self.db.query(TaskFile)
            .filter(TaskFile.id == payload.get("fid"), TaskFile.file_key == payload.get("sub"))
            .first()
        )
        if not task_file:
            raise NotFoundError("File not found")
        return task_file
