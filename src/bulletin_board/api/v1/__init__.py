# src/bulletin_board/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    announcements_router,
    attachments_router,
    auth_router,
    board_router,
    employees_router,
    notifications_router,
    search_router,
    votes_router,
)

__all__ = [
    "announcements_router",
    "attachments_router",
    "auth_router",
    "board_router",
    "employees_router",
    "notifications_router",
    "search_router",
    "votes_router",
]
