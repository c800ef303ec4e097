# src/bulletin_board/schemas/attachment.py
"""Announcement attachment schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class AttachmentResponse(BaseModel):
    id: int
    announcement_id: int
    original_name: str
    file_size: int
    file_type: str
    uploaded_by: int
    uploaded_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DownloadUrlResponse(BaseModel):
    """A signed link that downloads the file without a bearer token."""

    url: str
    expires_in: int
