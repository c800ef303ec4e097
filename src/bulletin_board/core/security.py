"""Password hashing and token helpers for employee authentication."""
from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

import bcrypt
from jose import JWTError, jwt

from bulletin_board.core.settings import settings

TokenType = Literal["access", "refresh", "download"]

_MIN_PASSWORD_LENGTH = 8
# bcrypt only looks at the first 72 bytes of a password.
_BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Return a bcrypt hash using ``PASSWORD_BCRYPT_ROUNDS`` rounds."""
    salt = bcrypt.gensalt(rounds=settings.password_bcrypt_rounds)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Check ``password`` against a hash produced by :func:`hash_password`."""
    try:
        return bcrypt.checkpw(_password_bytes(password), hashed.encode("utf-8"))
    except ValueError:
        # Not a bcrypt hash.
        return False


def validate_password_strength(password: str) -> str | None:
    """Return a human-readable problem with ``password``, or None when acceptable."""
    if len(password) < _MIN_PASSWORD_LENGTH:
        return f"Password must be at least {_MIN_PASSWORD_LENGTH} characters long"
    if not re.search(r"[A-Za-z]", password) or not re.search(r"\d", password):
        return "Password must contain both letters and digits"
    return None


def create_token(
    subject: str,
    *,
    token_type: TokenType = "access",
    role: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Issue a signed JWT for ``subject`` (the employee identifier)."""
    if expires_delta is None:
        if token_type == "access":
            expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
        elif token_type == "download":
            expires_delta = timedelta(minutes=settings.attachment_url_expire_minutes)
        else:
            expires_delta = timedelta(days=settings.refresh_token_expire_days)
    now = datetime.now(UTC)
    claims: dict[str, Any] = {
        "sub": subject,
        "type": token_type,
        "iat": now,
        "exp": now + expires_delta,
    }
    if role is not None:
        claims["role"] = role
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str, *, expected_type: TokenType = "access") -> dict[str, Any]:
    """Decode and validate a JWT, raising ``JWTError`` on any problem."""
    payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    if payload.get("type") != expected_type:
        raise JWTError(f"Expected a {expected_type} token")
    if not payload.get("sub"):
        raise JWTError("Token has no subject")
    return payload
