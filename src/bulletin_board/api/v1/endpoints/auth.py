# src/bulletin_board/api/v1/endpoints/auth.py
"""Authentication endpoints for the bulletin board API."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from jose import JWTError

from bulletin_board.api.v1.dependencies import CurrentEmployeeDep, SessionDep
from bulletin_board.core.security import create_token, decode_token
from bulletin_board.models import Employee
from bulletin_board.schemas.employee import (
    AccessTokenResponse,
    ChangePasswordRequest,
    EmployeeResponse,
    LoginRequest,
    RefreshRequest,
    TokenResponse,
)
from bulletin_board.services import employees as employee_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


def _issue_tokens(employee: Employee) -> TokenResponse:
    return TokenResponse(
        access_token=create_token(employee.employee_id, role=employee.role),
        refresh_token=create_token(employee.employee_id, token_type="refresh", role=employee.role),
        employee=EmployeeResponse.model_validate(employee),
    )


@router.post("/login", response_model=TokenResponse)
async def login(credentials: LoginRequest, db: SessionDep) -> TokenResponse:
    """Exchange an employee id and password for access and refresh tokens."""
    employee = employee_service.authenticate(db, credentials.employee_id, credentials.password)
    if employee is None:
        logger.info("Rejected login for %s", credentials.employee_id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid employee id or password",
        )
    return _issue_tokens(employee)


@router.post("/refresh", response_model=AccessTokenResponse)
async def refresh(body: RefreshRequest, db: SessionDep) -> AccessTokenResponse:
    try:
        payload = decode_token(body.refresh_token, expected_type="refresh")
    except JWTError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        ) from err

    employee = employee_service.get_employee_by_employee_id(db, payload["sub"])
    if employee is None or not employee.can_sign_in:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        )
    return AccessTokenResponse(access_token=create_token(employee.employee_id, role=employee.role))


@router.get("/me", response_model=EmployeeResponse)
async def read_me(current_employee: CurrentEmployeeDep) -> Employee:
    return current_employee


@router.post("/change-password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(
    body: ChangePasswordRequest,
    current_employee: CurrentEmployeeDep,
    db: SessionDep,
) -> None:
    problem = employee_service.change_password(
        db, current_employee, body.current_password, body.new_password
    )
    if problem is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=problem)
