"""Shared API dependencies for authentication and common functionality."""

from collections.abc import Callable
from contextlib import AbstractContextManager
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from bulletin_board.core.security import decode_token
from bulletin_board.db.session import get_db, get_session_factory
from bulletin_board.models import Employee
from bulletin_board.services.change_feed import ChangeFeed, get_change_feed
from bulletin_board.services.employees import get_employee_by_employee_id

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]

# Opens sessions on demand; for handlers that outlive a single request
SessionFactoryDep = Annotated[
    Callable[[], AbstractContextManager[Session]], Depends(get_session_factory)
]

# Type alias for the process-wide change feed
FeedDep = Annotated[ChangeFeed, Depends(get_change_feed)]


def _credentials_error(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def employee_from_token(token: str, db: Session) -> Employee:
    """Resolve an access token to an employee who may still sign in.

    Raises:
        HTTPException: 401 when the token is invalid or the employee is
            unknown, inactive or not approved.
    """
    try:
        payload = decode_token(token)
    except JWTError as err:
        raise _credentials_error() from err

    employee = get_employee_by_employee_id(db, payload["sub"])
    if employee is None:
        raise _credentials_error("Employee not found")
    if not employee.can_sign_in:
        raise _credentials_error("Account is not active")
    return employee


def get_current_employee(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    db: SessionDep,
) -> Employee:
    """Get the current authenticated employee from the bearer token."""
    return employee_from_token(credentials.credentials, db)


# Type alias for current employee dependency
CurrentEmployeeDep = Annotated[Employee, Depends(get_current_employee)]


def require_admin(employee: CurrentEmployeeDep) -> Employee:
    """Allow only administrators through."""
    if not employee.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator privileges required",
        )
    return employee


AdminDep = Annotated[Employee, Depends(require_admin)]
