# src/bulletin_board/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .announcements import router as announcements_router
from .attachments import router as attachments_router
from .auth import router as auth_router
from .board import router as board_router
from .employees import router as employees_router
from .notifications import router as notifications_router
from .search import router as search_router
from .votes import router as votes_router

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
