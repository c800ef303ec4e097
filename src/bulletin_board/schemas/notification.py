# src/bulletin_board/schemas/notification.py
"""Notification, preference and keyword schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class NotificationResponse(BaseModel):
    id: int
    user_id: int
    type: str
    title: str
    content: str | None
    data: dict[str, Any] | None
    is_read: bool
    read_at: datetime | None
    priority: str
    related_id: int | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UnreadCountResponse(BaseModel):
    unread: int


class SettingsResponse(BaseModel):
    email_notifications: bool
    push_notifications: bool
    keyword_alerts: bool
    announcement_alerts: bool
    comment_alerts: bool

    model_config = ConfigDict(from_attributes=True)


class SettingsUpdate(BaseModel):
    """Partial update; omitted toggles keep their stored value."""

    email_notifications: bool | None = None
    push_notifications: bool | None = None
    keyword_alerts: bool | None = None
    announcement_alerts: bool | None = None
    comment_alerts: bool | None = None


class KeywordCreate(BaseModel):
    keyword: str = Field(..., min_length=1, max_length=50)


class KeywordResponse(BaseModel):
    id: int
    keyword: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SystemNotificationCreate(BaseModel):
    """Schema for an administrator broadcast; no recipients means everyone."""

    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    priority: Literal["urgent", "high", "normal", "low"] = "normal"
    recipients: list[int] | None = None


class FanoutResponse(BaseModel):
    attempted: int
    delivered: int
    succeeded: bool
    error: str | None = None
