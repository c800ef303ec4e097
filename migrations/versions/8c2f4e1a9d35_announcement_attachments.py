"""announcement attachments

Revision ID: 8c2f4e1a9d35
Revises: 5b1e0c2d7a41
Create Date: 2026-10-19 15:00:00.000000

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "8c2f4e1a9d35"
down_revision: Union[str, Sequence[str], None] = "5b1e0c2d7a41"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the announcement_attachment table."""
    op.create_table(
        "announcement_attachment",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("announcement_id", sa.Integer(), nullable=False),
        sa.Column("file_name", sa.String(length=100), nullable=False),
        sa.Column("original_name", sa.Text(), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False),
        sa.Column("file_type", sa.String(length=127), nullable=False),
        sa.Column("storage_path", sa.Text(), nullable=False),
        sa.Column("uploaded_by", sa.Integer(), nullable=False),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("file_size >= 0", name="ck_attachment_file_size"),
        sa.ForeignKeyConstraint(["announcement_id"], ["announcement.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["uploaded_by"], ["employee.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("storage_path"),
    )
    op.create_index(
        "ix_announcement_attachment_announcement_id",
        "announcement_attachment",
        ["announcement_id"],
    )


def downgrade() -> None:
    """Drop the announcement_attachment table."""
    op.drop_index(
        "ix_announcement_attachment_announcement_id", table_name="announcement_attachment"
    )
    op.drop_table("announcement_attachment")
