"""Announcement attachments: validated uploads on local disk, signed downloads.

File bytes are written under ``ATTACHMENT_DIR`` as
``announcements/<announcement_id>/<unique name><ext>``; the database keeps
the metadata. Downloads go through short-lived signed tokens so links can be
handed to a browser without the employee's bearer token.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import timedelta
from pathlib import Path, PurePosixPath

from jose import JWTError
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bulletin_board.core.security import create_token, decode_token
from bulletin_board.core.settings import settings
from bulletin_board.models import Announcement, Attachment, Employee

logger = logging.getLogger(__name__)


class AttachmentNotFoundError(LookupError):
    """Raised when an attachment (or its file) does not exist."""


class AttachmentRejectedError(ValueError):
    """Raised when an upload breaks the size, type or count limits."""


class AttachmentStorageError(RuntimeError):
    """Raised when an upload could not be recorded."""


def storage_root() -> Path:
    return Path(settings.attachment_dir)


def _file_path(attachment: Attachment) -> Path:
    return storage_root() / PurePosixPath(attachment.storage_path)


def attachment_count(db: Session, announcement_id: int) -> int:
    return db.execute(
        select(func.count())
        .select_from(Attachment)
        .where(Attachment.announcement_id == announcement_id)
    ).scalar_one()


def validate_upload(filename: str, content_type: str | None, size: int) -> None:
    """Raise :class:`AttachmentRejectedError` when a single file is not acceptable."""
    if not filename:
        raise AttachmentRejectedError("File has no name")
    if size > settings.attachment_max_bytes:
        limit_mb = settings.attachment_max_bytes // (1024 * 1024)
        raise AttachmentRejectedError(f"{filename}: file exceeds {limit_mb}MB")
    if content_type not in settings.attachment_allowed_types:
        raise AttachmentRejectedError(f"{filename}: file type {content_type!r} is not allowed")


async def save_attachment(
    db: Session,
    announcement: Announcement,
    filename: str,
    content_type: str | None,
    content: bytes,
    uploader: Employee,
) -> Attachment:
    """Store one file for ``announcement`` and record it.

    The file is removed again when the database insert fails.
    """
    validate_upload(filename, content_type, len(content))
    if attachment_count(db, announcement.id) >= settings.attachment_max_files:
        raise AttachmentRejectedError(
            f"An announcement can have at most {settings.attachment_max_files} attachments"
        )

    unique_name = f"{uuid.uuid4().hex}{Path(filename).suffix.lower()}"
    storage_path = f"announcements/{announcement.id}/{unique_name}"
    destination = storage_root() / storage_path
    destination.parent.mkdir(parents=True, exist_ok=True)
    await asyncio.to_thread(destination.write_bytes, content)

    attachment = Attachment(
        announcement_id=announcement.id,
        file_name=unique_name,
        original_name=filename,
        file_size=len(content),
        file_type=content_type,
        storage_path=storage_path,
        uploaded_by=uploader.id,
    )
    try:
        db.add(attachment)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        destination.unlink(missing_ok=True)
        logger.error("Recording attachment %s failed: %s", filename, exc, exc_info=True)
        raise AttachmentStorageError(f"Could not store {filename}") from exc
    db.refresh(attachment)
    logger.info(
        "Stored attachment %s (%d bytes) for announcement %s",
        attachment.id,
        attachment.file_size,
        announcement.id,
    )
    return attachment


def list_attachments(db: Session, announcement_id: int) -> list[Attachment]:
    """Return an announcement's attachments in upload order."""
    return list(
        db.execute(
            select(Attachment)
            .where(Attachment.announcement_id == announcement_id)
            .order_by(Attachment.uploaded_at.asc(), Attachment.id.asc())
        ).scalars()
    )


def get_attachment(db: Session, attachment_id: int) -> Attachment:
    attachment = db.get(Attachment, attachment_id)
    if attachment is None:
        raise AttachmentNotFoundError(f"Attachment {attachment_id} not found")
    return attachment


def download_token(attachment: Attachment) -> str:
    return create_token(
        str(attachment.id),
        token_type="download",
        expires_delta=timedelta(minutes=settings.attachment_url_expire_minutes),
    )


def resolve_download(db: Session, token: str) -> tuple[Attachment, Path]:
    """Return the attachment and file path a download token points at.

    Raises:
        JWTError: If the token is invalid, expired or not a download token.
        AttachmentNotFoundError: If the attachment or its file is gone.
    """
    payload = decode_token(token, expected_type="download")
    try:
        attachment_id = int(payload["sub"])
    except ValueError as err:
        raise JWTError("Malformed download token") from err
    attachment = get_attachment(db, attachment_id)
    path = _file_path(attachment)
    if not path.is_file():
        raise AttachmentNotFoundError(f"File for attachment {attachment_id} is missing")
    return attachment, path


def _remove_file(attachment: Attachment) -> None:
    try:
        _file_path(attachment).unlink()
    except FileNotFoundError:
        logger.warning("File for attachment %s was already gone", attachment.id)


def delete_attachment(db: Session, attachment_id: int) -> None:
    """Remove the stored file, then the record."""
    attachment = get_attachment(db, attachment_id)
    _remove_file(attachment)
    db.delete(attachment)
    db.commit()


def delete_for_announcement(db: Session, announcement_id: int) -> int:
    """Remove every attachment of an announcement without committing.

    The caller commits together with the announcement's own deletion.
    """
    attachments = list_attachments(db, announcement_id)
    for attachment in attachments:
        _remove_file(attachment)
        db.delete(attachment)
    # Rows go before the announcement row they reference.
    db.flush()
    return len(attachments)
