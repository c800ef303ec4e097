"""Models capturing like/dislike reactions on posts and comments."""

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from bulletin_board.db.session import Base

VOTE_TYPES = ("like", "dislike")


def _vote_type_check(name: str) -> CheckConstraint:
    allowed = ", ".join(f"'{vote_type}'" for vote_type in VOTE_TYPES)
    return CheckConstraint(f"vote_type IN ({allowed})", name=name)


class CommentVote(Base):
    """Per-employee reaction on a comment."""

    __tablename__ = "comment_vote"
    __table_args__ = (
        _vote_type_check("ck_comment_vote_type"),
        Index("ix_comment_vote_comment_id", "comment_id"),
    )

    # Composite primary key: at most one vote per (comment, employee).
    comment_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("comment.id", ondelete="CASCADE"),
        primary_key=True,
    )
    employee_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("employee.employee_id"),
        primary_key=True,
    )
    vote_type: Mapped[str] = mapped_column(String(8), nullable=False)


class PostVote(Base):
    """Per-employee reaction on an anonymous post."""

    __tablename__ = "post_vote"
    __table_args__ = (
        _vote_type_check("ck_post_vote_type"),
        Index("ix_post_vote_post_id", "post_id"),
    )

    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("anonymous_post.id", ondelete="CASCADE"),
        primary_key=True,
    )
    employee_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("employee.employee_id"),
        primary_key=True,
    )
    vote_type: Mapped[str] = mapped_column(String(8), nullable=False)
