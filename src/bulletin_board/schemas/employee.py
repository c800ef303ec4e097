# src/bulletin_board/schemas/employee.py
"""Employee and authentication schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

RoleName = Literal["super_admin", "admin", "moderator", "dept_head", "user"]
StatusName = Literal["pending", "approved", "rejected"]


class EmployeeCreate(BaseModel):
    """Schema for registering an employee."""

    employee_id: str = Field(..., min_length=1, max_length=32)
    name: str = Field(..., min_length=1, max_length=100)
    email: str | None = None
    password: str = Field(..., min_length=8, max_length=128)
    department_id: int | None = None
    position_id: int | None = None
    role: RoleName = "user"
    is_active: bool = True
    status: StatusName = "approved"


class EmployeeResponse(BaseModel):
    """Schema for employee information returned by the API."""

    id: int
    employee_id: str
    name: str
    email: str | None
    department_id: int | None
    position_id: int | None
    role: str
    is_active: bool
    status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LoginRequest(BaseModel):
    employee_id: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    employee: EmployeeResponse


class RefreshRequest(BaseModel):
    refresh_token: str


class AccessTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1, max_length=128)


class EmployeeUpdate(BaseModel):
    """Administrative changes: approval, role and placement."""

    role: RoleName | None = None
    status: StatusName | None = None
    is_active: bool | None = None
    department_id: int | None = None
    position_id: int | None = None
