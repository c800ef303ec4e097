"""SQLAlchemy model for official announcements."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from bulletin_board.db.session import Base
from bulletin_board.db.time import utcnow

PRIORITY_URGENT = "urgent"
PRIORITY_NORMAL = "normal"


class Announcement(Base):
    """Official notice published by an administrator.

    Target lists are empty when the announcement addresses every employee.
    """

    __tablename__ = "announcement"
    __table_args__ = (
        CheckConstraint("priority IN ('urgent', 'normal')", name="ck_announcement_priority"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default=PRIORITY_NORMAL)
    category_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("board_category.id"), nullable=True
    )
    author_id: Mapped[int] = mapped_column(Integer, ForeignKey("employee.id"), nullable=False)

    target_departments: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    target_positions: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    @property
    def is_urgent(self) -> bool:
        return self.priority == PRIORITY_URGENT
