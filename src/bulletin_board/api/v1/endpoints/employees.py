# src/bulletin_board/api/v1/endpoints/employees.py
"""Employee directory endpoints (administrators only)."""

from collections.abc import Sequence

from fastapi import APIRouter, HTTPException, Query, status

from bulletin_board.api.v1.dependencies import AdminDep, SessionDep
from bulletin_board.core.security import validate_password_strength
from bulletin_board.models import Employee
from bulletin_board.schemas.employee import (
    EmployeeCreate,
    EmployeeResponse,
    EmployeeUpdate,
    StatusName,
)
from bulletin_board.services import employees as employee_service
from bulletin_board.services.employees import EmployeeNotFoundError, EmployeeUpdateForbiddenError

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get("/", response_model=list[EmployeeResponse])
async def list_employees(
    db: SessionDep,
    _admin: AdminDep,
    search: str | None = Query(None, max_length=100, description="Matches name or employee id"),
    status_filter: StatusName | None = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
) -> Sequence[Employee]:
    return employee_service.list_employees(
        db, search=search, status=status_filter, skip=skip, limit=limit
    )


@router.post("/", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(data: EmployeeCreate, db: SessionDep, _admin: AdminDep) -> Employee:
    if employee_service.get_employee_by_employee_id(db, data.employee_id) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Employee id already registered",
        )
    problem = validate_password_strength(data.password)
    if problem is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=problem)
    return employee_service.create_employee(db, data)


@router.patch("/{employee_id}", response_model=EmployeeResponse)
async def update_employee(
    employee_id: int,
    data: EmployeeUpdate,
    db: SessionDep,
    admin: AdminDep,
) -> Employee:
    """Approve or reject an employee, or change their role or placement."""
    try:
        return employee_service.update_employee(db, employee_id, data, actor=admin)
    except EmployeeNotFoundError as err:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(err)) from err
    except EmployeeUpdateForbiddenError as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
