"""SQLAlchemy models for in-app notifications and delivery preferences."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from bulletin_board.db.session import Base
from bulletin_board.db.time import utcnow

TYPE_ANNOUNCEMENT = "announcement"
TYPE_COMMENT = "comment"
TYPE_KEYWORD_ALERT = "keyword_alert"
TYPE_SYSTEM = "system"

PRIORITIES = ("urgent", "high", "normal", "low")


class Notification(Base):
    """One message addressed to one employee.

    Rows are only ever mutated to flip the read flag; retention is handled
    outside the application.
    """

    __tablename__ = "notification"
    __table_args__ = (
        CheckConstraint(
            "type IN ('announcement', 'comment', 'keyword_alert', 'system')",
            name="ck_notification_type",
        ),
        CheckConstraint(
            "priority IN ('urgent', 'high', 'normal', 'low')",
            name="ck_notification_priority",
        ),
        Index("ix_notification_user_id_is_read", "user_id", "is_read"),
        Index("ix_notification_user_id_created_at", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("employee.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    priority: Mapped[str] = mapped_column(String(8), nullable=False, default="normal")
    # Id of the announcement / post this notification points at, if any.
    related_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    def to_row(self) -> dict[str, Any]:
        """Return the row as a JSON-friendly mapping, as the change feed ships it."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type,
            "title": self.title,
            "content": self.content,
            "data": self.data,
            "is_read": self.is_read,
            "read_at": self.read_at.isoformat() if self.read_at else None,
            "priority": self.priority,
            "related_id": self.related_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class NotificationSettings(Base):
    """Per-employee delivery toggles."""

    __tablename__ = "notification_settings"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("employee.id", ondelete="CASCADE"), primary_key=True
    )
    email_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    push_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    keyword_alerts: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    announcement_alerts: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    comment_alerts: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class NotificationKeyword(Base):
    """A keyword an employee wants to be alerted about on new posts."""

    __tablename__ = "notification_keyword"
    __table_args__ = (
        UniqueConstraint("user_id", "keyword", name="uq_notification_keyword_user_keyword"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("employee.id", ondelete="CASCADE"), nullable=False
    )
    # Stored lower-cased; matching is case-insensitive.
    keyword: Mapped[str] = mapped_column(String(50), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
