"""Task file schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, computed_field

from marketplace.services.file_service import download_path


class TaskFileResponse(BaseModel):
    """Attachment metadata. Bytes are served by the download endpoints."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    task_id: int
    file_name: str
    mime_type: str
    size: int
    created_at: datetime

    @computed_field
    @property
    def download_url(self) -> str:
        return download_path(self.task_id, self.id)


class DownloadURLResponse(BaseModel):
    url: str
    expires_at: datetime
