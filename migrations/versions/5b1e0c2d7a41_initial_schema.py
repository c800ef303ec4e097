"""initial schema

Revision ID: 5b1e0c2d7a41
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5b1e0c2d7a41"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create employees, board, announcement, vote, notification and search tables."""
    op.create_table(
        "employee",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("employee_id", sa.String(length=32), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("department_id", sa.Integer(), nullable=True),
        sa.Column("position_id", sa.Integer(), nullable=True),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')", name="ck_employee_status"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("employee_id"),
    )
    op.create_index("ix_employee_department_id", "employee", ["department_id"])
    op.create_index("ix_employee_position_id", "employee", ["position_id"])

    op.create_table(
        "board_category",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_anonymous", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "announcement",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("priority", sa.String(length=16), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=True),
        sa.Column("author_id", sa.Integer(), nullable=False),
        sa.Column("target_departments", sa.JSON(), nullable=False),
        sa.Column("target_positions", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("priority IN ('urgent', 'normal')", name="ck_announcement_priority"),
        sa.ForeignKeyConstraint(["author_id"], ["employee.id"]),
        sa.ForeignKeyConstraint(["category_id"], ["board_category.id"]),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "anonymous_post",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=False),
        sa.Column("author_employee_id", sa.String(length=32), nullable=False),
        sa.Column("likes", sa.Integer(), nullable=False),
        sa.Column("dislikes", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("likes >= 0 AND dislikes >= 0", name="ck_anonymous_post_counters"),
        sa.ForeignKeyConstraint(["author_employee_id"], ["employee.employee_id"]),
        sa.ForeignKeyConstraint(["category_id"], ["board_category.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_anonymous_post_category_id", "anonymous_post", ["category_id"])

    op.create_table(
        "comment",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("post_id", sa.Integer(), nullable=False),
        sa.Column("author_employee_id", sa.String(length=32), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("likes", sa.Integer(), nullable=False),
        sa.Column("dislikes", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("likes >= 0 AND dislikes >= 0", name="ck_comment_counters"),
        sa.ForeignKeyConstraint(["author_employee_id"], ["employee.employee_id"]),
        sa.ForeignKeyConstraint(["post_id"], ["anonymous_post.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_comment_post_id", "comment", ["post_id"])

    op.create_table(
        "comment_vote",
        sa.Column("comment_id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.String(length=32), nullable=False),
        sa.Column("vote_type", sa.String(length=8), nullable=False),
        sa.CheckConstraint("vote_type IN ('like', 'dislike')", name="ck_comment_vote_type"),
        sa.ForeignKeyConstraint(["comment_id"], ["comment.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["employee_id"], ["employee.employee_id"]),
        sa.PrimaryKeyConstraint("comment_id", "employee_id"),
    )
    op.create_index("ix_comment_vote_comment_id", "comment_vote", ["comment_id"])

    op.create_table(
        "post_vote",
        sa.Column("post_id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.String(length=32), nullable=False),
        sa.Column("vote_type", sa.String(length=8), nullable=False),
        sa.CheckConstraint("vote_type IN ('like', 'dislike')", name="ck_post_vote_type"),
        sa.ForeignKeyConstraint(["post_id"], ["anonymous_post.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["employee_id"], ["employee.employee_id"]),
        sa.PrimaryKeyConstraint("post_id", "employee_id"),
    )
    op.create_index("ix_post_vote_post_id", "post_vote", ["post_id"])

    op.create_table(
        "notification",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("data", sa.JSON(), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("priority", sa.String(length=8), nullable=False),
        sa.Column("related_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "type IN ('announcement', 'comment', 'keyword_alert', 'system')",
            name="ck_notification_type",
        ),
        sa.CheckConstraint(
            "priority IN ('urgent', 'high', 'normal', 'low')",
            name="ck_notification_priority",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["employee.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notification_user_id_is_read", "notification", ["user_id", "is_read"])
    op.create_index(
        "ix_notification_user_id_created_at", "notification", ["user_id", "created_at"]
    )

    op.create_table(
        "notification_settings",
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("email_notifications", sa.Boolean(), nullable=False),
        sa.Column("push_notifications", sa.Boolean(), nullable=False),
        sa.Column("keyword_alerts", sa.Boolean(), nullable=False),
        sa.Column("announcement_alerts", sa.Boolean(), nullable=False),
        sa.Column("comment_alerts", sa.Boolean(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["employee.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id"),
    )

    op.create_table(
        "notification_keyword",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("keyword", sa.String(length=50), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["employee.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "keyword", name="uq_notification_keyword_user_keyword"),
    )

    op.create_table(
        "search_log",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("query", sa.String(length=100), nullable=False),
        sa.Column("employee_id", sa.String(length=32), nullable=True),
        sa.Column("searched_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_search_log_searched_at", "search_log", ["searched_at"])


def downgrade() -> None:
    """Drop every table created by :func:`upgrade`."""
    op.drop_index("ix_search_log_searched_at", table_name="search_log")
    op.drop_table("search_log")
    op.drop_table("notification_keyword")
    op.drop_table("notification_settings")
    op.drop_index("ix_notification_user_id_created_at", table_name="notification")
    op.drop_index("ix_notification_user_id_is_read", table_name="notification")
    op.drop_table("notification")
    op.drop_index("ix_post_vote_post_id", table_name="post_vote")
    op.drop_table("post_vote")
    op.drop_index("ix_comment_vote_comment_id", table_name="comment_vote")
    op.drop_table("comment_vote")
    op.drop_index("ix_comment_post_id", table_name="comment")
    op.drop_table("comment")
    op.drop_index("ix_anonymous_post_category_id", table_name="anonymous_post")
    op.drop_table("anonymous_post")
    op.drop_table("announcement")
    op.drop_table("board_category")
    op.drop_index("ix_employee_position_id", table_name="employee")
    op.drop_index("ix_employee_department_id", table_name="employee")
    op.drop_table("employee")
