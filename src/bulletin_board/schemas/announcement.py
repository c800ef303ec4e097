# src/bulletin_board/schemas/announcement.py
"""Announcement schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Priority = Literal["urgent", "normal"]


class AnnouncementCreate(BaseModel):
    """Schema for publishing an announcement.

    Empty target lists address every active employee.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    priority: Priority = "normal"
    category_id: int | None = None
    target_departments: list[int] = Field(default_factory=list)
    target_positions: list[int] = Field(default_factory=list)


class AnnouncementUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str | None = Field(None, min_length=1, max_length=200)
    content: str | None = Field(None, min_length=1)
    priority: Priority | None = None
    category_id: int | None = None


class AnnouncementResponse(BaseModel):
    id: int
    title: str
    content: str
    priority: str
    category_id: int | None
    author_id: int
    target_departments: list[int]
    target_positions: list[int]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PublishResponse(BaseModel):
    """Published announcement plus the outcome of notifying its audience."""

    announcement: AnnouncementResponse
    fanout: dict[str, Any]
