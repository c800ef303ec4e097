"""SQLAlchemy models for the anonymous discussion board."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from bulletin_board.db.session import Base
from bulletin_board.db.time import utcnow


class BoardCategory(Base):
    """A board section such as free talk or suggestions."""

    __tablename__ = "board_category"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Anonymous sections accept employee posts; the rest are reserved for announcements.
    is_anonymous: Mapped[bool] = mapped_column(default=True, nullable=False)


class AnonymousPost(Base):
    """A post on the anonymous board.

    The author reference is stored for ownership checks only and is never
    returned by the API.
    """

    __tablename__ = "anonymous_post"
    __table_args__ = (
        CheckConstraint("likes >= 0 AND dislikes >= 0", name="ck_anonymous_post_counters"),
        Index("ix_anonymous_post_category_id", "category_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("board_category.id"), nullable=False
    )
    author_employee_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("employee.employee_id"), nullable=False
    )

    # Denormalized from post_vote; maintained by the vote engine.
    likes: Mapped[int] = mapped_column(default=0, nullable=False)
    dislikes: Mapped[int] = mapped_column(default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class Comment(Base):
    """A comment on an anonymous post."""

    __tablename__ = "comment"
    __table_args__ = (
        CheckConstraint("likes >= 0 AND dislikes >= 0", name="ck_comment_counters"),
        Index("ix_comment_post_id", "post_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("anonymous_post.id", ondelete="CASCADE"),
        nullable=False,
    )
    author_employee_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("employee.employee_id"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)

    # Denormalized from comment_vote; maintained by the vote engine.
    likes: Mapped[int] = mapped_column(default=0, nullable=False)
    dislikes: Mapped[int] = mapped_column(default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
