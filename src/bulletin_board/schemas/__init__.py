# src/bulletin_board/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .announcement import AnnouncementCreate, AnnouncementResponse, AnnouncementUpdate
from .attachment import AttachmentResponse, DownloadUrlResponse
from .board import (
    CategoryCreate,
    CategoryResponse,
    CommentCreate,
    CommentResponse,
    PostCreate,
    PostResponse,
)
from .employee import EmployeeCreate, EmployeeResponse, EmployeeUpdate, LoginRequest, TokenResponse
from .notification import NotificationResponse, SettingsResponse, SettingsUpdate
from .vote import VoteRequest, VoteResponse

__all__ = [
    "AnnouncementCreate", "AnnouncementResponse", "AnnouncementUpdate",
    "AttachmentResponse", "DownloadUrlResponse",
    "CategoryCreate", "CategoryResponse", "CommentCreate", "CommentResponse",
    "PostCreate", "PostResponse",
    "EmployeeCreate", "EmployeeResponse", "EmployeeUpdate", "LoginRequest", "TokenResponse",
    "NotificationResponse", "SettingsResponse", "SettingsUpdate",
    "VoteRequest", "VoteResponse",
]
