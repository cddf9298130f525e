"""Signed download URL endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response

from marketplace.api.dependencies import get_current_user, get_file_service
from marketplace.models.user import User
from marketplace.schemas.file import DownloadURLResponse
from marketplace.services.file_service import FileService, content_disposition

router = APIRouter(prefix="/api/v1/files", tags=["files"])


@router.get("/{file_id}/download-url", response_model=DownloadURLResponse)
def get_download_url(
    file_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    file_service: Annotated[FileService, Depends(get_file_service)],
):
    """Get a short-lived signed download URL for a file."""
    signed = file_service.issue_download_url(file_id, current_user)
    return DownloadURLResponse(url=signed.url, expires_at=signed.expires_at)


@router.get("/download")
def download_signed(
    token: Annotated[str, Query(...)],
    file_service: Annotated[FileService, Depends(get_file_service)],
):
    """Serve a file through a signed URL. No bearer token needed."""
    task_file = file_service.resolve_signed_download(token)
    return Response(
        content=task_file.data,
        media_type=task_file.mime_type,
        headers={"Content-Disposition": content_disposition(task_file.file_name)},
    )
