"""SQLAlchemy models for the employee directory."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from bulletin_board.db.session import Base
from bulletin_board.db.time import utcnow

ROLE_SUPER_ADMIN = "super_admin"
ROLE_ADMIN = "admin"
ROLE_MODERATOR = "moderator"
ROLE_DEPARTMENT_HEAD = "dept_head"
ROLE_USER = "user"

ADMIN_ROLES = frozenset({ROLE_SUPER_ADMIN, ROLE_ADMIN})

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"


class Employee(Base):
    """A company employee able to sign in to the board.

    ``employee_id`` is the human-facing identifier (e.g. ``E001``) used for
    login and as the author reference on anonymous content; ``id`` is the
    surrogate key notifications are addressed to.
    """

    __tablename__ = "employee"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_employee_status",
        ),
        Index("ix_employee_department_id", "department_id"),
        Index("ix_employee_position_id", "position_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)

    department_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    position_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    role: Mapped[str] = mapped_column(String(32), nullable=False, default=ROLE_USER)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=STATUS_APPROVED)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    @property
    def is_admin(self) -> bool:
        """Return True when the employee may run admin operations."""
        return self.role in ADMIN_ROLES

    @property
    def can_sign_in(self) -> bool:
        """Only active, approved employees may authenticate."""
        return self.is_active and self.status == STATUS_APPROVED
