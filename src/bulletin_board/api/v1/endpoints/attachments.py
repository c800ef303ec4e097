# src/bulletin_board/api/v1/endpoints/attachments.py
"""Announcement attachment endpoints."""

import logging

from fastapi import APIRouter, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import FileResponse
from jose import JWTError
from sqlalchemy.orm import Session

from bulletin_board.api.v1.dependencies import AdminDep, CurrentEmployeeDep, SessionDep
from bulletin_board.core.settings import settings
from bulletin_board.models import Announcement, Attachment
from bulletin_board.schemas.attachment import AttachmentResponse, DownloadUrlResponse
from bulletin_board.services import attachments as attachment_service
from bulletin_board.services.announcements import AnnouncementNotFoundError, get_announcement
from bulletin_board.services.attachments import (
    AttachmentNotFoundError,
    AttachmentRejectedError,
    AttachmentStorageError,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["attachments"])


def _announcement_or_404(db: Session, announcement_id: int) -> Announcement:
    try:
        return get_announcement(db, announcement_id)
    except AnnouncementNotFoundError as err:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(err)) from err


def _attachment_or_404(db: Session, attachment_id: int) -> Attachment:
    try:
        return attachment_service.get_attachment(db, attachment_id)
    except AttachmentNotFoundError as err:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(err)) from err


@router.post(
    "/announcements/{announcement_id}/attachments",
    response_model=list[AttachmentResponse],
    status_code=status.HTTP_201_CREATED,
)
async def upload_attachments(
    announcement_id: int,
    files: list[UploadFile],
    db: SessionDep,
    admin: AdminDep,
) -> list[Attachment]:
    """Attach files to an announcement.

    Every file is checked before any is stored, so a rejected batch leaves
    the announcement unchanged.
    """
    announcement = _announcement_or_404(db, announcement_id)
    existing = attachment_service.attachment_count(db, announcement_id)
    if existing + len(files) > settings.attachment_max_files:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"An announcement can have at most {settings.attachment_max_files} attachments",
        )

    batch: list[tuple[str, str | None, bytes]] = []
    for upload in files:
        # One byte past the limit is enough to reject without reading the rest.
        content = await upload.read(settings.attachment_max_bytes + 1)
        filename = upload.filename or ""
        try:
            attachment_service.validate_upload(filename, upload.content_type, len(content))
        except AttachmentRejectedError as err:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
        batch.append((filename, upload.content_type, content))

    stored: list[Attachment] = []
    for filename, content_type, content in batch:
        try:
            stored.append(
                await attachment_service.save_attachment(
                    db, announcement, filename, content_type, content, admin
                )
            )
        except AttachmentRejectedError as err:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
        except AttachmentStorageError as err:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(err)
            ) from err
    return stored


@router.get(
    "/announcements/{announcement_id}/attachments",
    response_model=list[AttachmentResponse],
)
async def list_attachments(
    announcement_id: int,
    db: SessionDep,
    _employee: CurrentEmployeeDep,
) -> list[Attachment]:
    _announcement_or_404(db, announcement_id)
    return attachment_service.list_attachments(db, announcement_id)


@router.get("/attachments/download", name="download_attachment")
async def download_attachment(db: SessionDep, token: str = Query(...)) -> FileResponse:
    """Serve a file for a signed download token; no bearer token needed."""
    try:
        attachment, path = attachment_service.resolve_download(db, token)
    except JWTError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired download link"
        ) from err
    except AttachmentNotFoundError as err:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(err)) from err
    return FileResponse(path, media_type=attachment.file_type, filename=attachment.original_name)


@router.get("/attachments/{attachment_id}/download-url", response_model=DownloadUrlResponse)
async def get_download_url(
    attachment_id: int,
    request: Request,
    db: SessionDep,
    _employee: CurrentEmployeeDep,
) -> DownloadUrlResponse:
    """Issue a signed link valid for ``ATTACHMENT_URL_EXPIRE_MINUTES``."""
    attachment = _attachment_or_404(db, attachment_id)
    token = attachment_service.download_token(attachment)
    url = request.url_for("download_attachment").include_query_params(token=token)
    return DownloadUrlResponse(url=str(url), expires_in=settings.attachment_url_expire_minutes * 60)


@router.delete("/attachments/{attachment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_attachment(attachment_id: int, db: SessionDep, _admin: AdminDep) -> None:
    try:
        attachment_service.delete_attachment(db, attachment_id)
    except AttachmentNotFoundError as err:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(err)) from err
    logger.info("Attachment %s deleted", attachment_id)
