"""CRUD-style helpers for managing employees and signing them in."""
from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from bulletin_board.core import security
from bulletin_board.models import Employee
from bulletin_board.models.employee import ADMIN_ROLES, ROLE_SUPER_ADMIN, STATUS_APPROVED
from bulletin_board.schemas.employee import EmployeeCreate, EmployeeUpdate

__all__ = [
    "authenticate",
    "change_password",
    "create_employee",
    "get_employee",
    "get_employee_by_employee_id",
    "list_employees",
    "update_employee",
    "EmployeeNotFoundError",
    "EmployeeUpdateForbiddenError",
]

logger = logging.getLogger(__name__)

_NON_NULLABLE_FIELDS = frozenset({"role", "status", "is_active"})


class EmployeeNotFoundError(LookupError):
    """Raised when an employee does not exist."""


class EmployeeUpdateForbiddenError(PermissionError):
    """Raised when an administrative change is not allowed for the actor."""


def get_employee(db: Session, employee_pk: int) -> Employee | None:
    """Return a single employee by surrogate key."""
    return db.get(Employee, employee_pk)


def get_employee_by_employee_id(db: Session, employee_id: str) -> Employee | None:
    """Return a single employee by their login identifier."""
    return db.execute(
        select(Employee).where(Employee.employee_id == employee_id)
    ).scalar_one_or_none()


def list_employees(
    db: Session,
    *,
    search: str | None = None,
    status: str | None = None,
    skip: int = 0,
    limit: int = 100,
) -> Sequence[Employee]:
    """Return employees with optional name/identifier search and offset pagination."""
    query = select(Employee)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.where(
            or_(Employee.name.ilike(pattern), Employee.employee_id.ilike(pattern))
        )
    if status is not None:
        query = query.where(Employee.status == status)
    return db.execute(
        query.order_by(Employee.id).offset(skip).limit(limit)
    ).scalars().all()


def create_employee(db: Session, data: EmployeeCreate) -> Employee:
    """Persist a new employee with a hashed password."""
    employee = Employee(
        employee_id=data.employee_id,
        name=data.name,
        email=data.email,
        password_hash=security.hash_password(data.password),
        department_id=data.department_id,
        position_id=data.position_id,
        role=data.role,
        is_active=data.is_active,
        status=data.status,
    )
    db.add(employee)
    db.commit()
    db.refresh(employee)
    return employee


def authenticate(db: Session, employee_id: str, password: str) -> Employee | None:
    """Return the employee when the credentials match and they may sign in."""
    employee = get_employee_by_employee_id(db, employee_id)
    if employee is None or not security.verify_password(password, employee.password_hash):
        return None
    if not employee.can_sign_in:
        return None
    return employee


def change_password(db: Session, employee: Employee, current: str, new: str) -> str | None:
    """Replace the employee's password.

    Returns:
        None on success, otherwise a message describing why it was refused.
    """
    if not security.verify_password(current, employee.password_hash):
        return "Current password is incorrect"
    problem = security.validate_password_strength(new)
    if problem is not None:
        return problem
    if current == new:
        return "New password must differ from the current password"

    employee.password_hash = security.hash_password(new)
    db.commit()
    return None


def update_employee(
    db: Session, employee_pk: int, data: EmployeeUpdate, *, actor: Employee
) -> Employee:
    """Apply an administrator's changes to an employee.

    Raises:
        EmployeeNotFoundError: If no employee has ``employee_pk``.
        EmployeeUpdateForbiddenError: If the actor would lock themselves out,
            or an admin manages or grants the super administrator role.
    """
    employee = get_employee(db, employee_pk)
    if employee is None:
        raise EmployeeNotFoundError(f"Employee {employee_pk} not found")
    changes = {
        key: value
        for key, value in data.model_dump(exclude_unset=True).items()
        if value is not None or key not in _NON_NULLABLE_FIELDS
    }

    if employee.id == actor.id:
        if "role" in changes and changes["role"] not in ADMIN_ROLES:
            raise EmployeeUpdateForbiddenError("You cannot remove your own administrator role")
        if changes.get("is_active") is False:
            raise EmployeeUpdateForbiddenError("You cannot deactivate your own account")
        if "status" in changes and changes["status"] != STATUS_APPROVED:
            raise EmployeeUpdateForbiddenError("You cannot revoke your own approval")
        keeps_super_admin = changes.get("role", ROLE_SUPER_ADMIN) == ROLE_SUPER_ADMIN
        if employee.role == ROLE_SUPER_ADMIN and not keeps_super_admin:
            raise EmployeeUpdateForbiddenError("You cannot remove your own super administrator role")

    touches_super_admin = employee.role == ROLE_SUPER_ADMIN or changes.get("role") == ROLE_SUPER_ADMIN
    if touches_super_admin and actor.role != ROLE_SUPER_ADMIN:
        raise EmployeeUpdateForbiddenError("Only a super administrator can manage super administrators")

    for key, value in changes.items():
        setattr(employee, key, value)
    db.commit()
    db.refresh(employee)
    logger.info(
        "Employee %s updated by %s: %s", employee.employee_id, actor.employee_id, sorted(changes)
    )
    return employee
