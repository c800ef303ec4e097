"""Files attached to announcements."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from bulletin_board.db.session import Base
from bulletin_board.db.time import utcnow


class Attachment(Base):
    """Metadata for one stored file; the bytes live under ``ATTACHMENT_DIR``.

    ``storage_path`` is relative to the attachment directory, e.g.
    ``announcements/12/3f9c....pdf``.
    """

    __tablename__ = "announcement_attachment"
    __table_args__ = (
        CheckConstraint("file_size >= 0", name="ck_attachment_file_size"),
        Index("ix_announcement_attachment_announcement_id", "announcement_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    announcement_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("announcement.id", ondelete="CASCADE"), nullable=False
    )
    file_name: Mapped[str] = mapped_column(String(100), nullable=False)
    original_name: Mapped[str] = mapped_column(Text, nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    file_type: Mapped[str] = mapped_column(String(127), nullable=False)
    storage_path: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    uploaded_by: Mapped[int] = mapped_column(Integer, ForeignKey("employee.id"), nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
