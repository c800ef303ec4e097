"""SQLAlchemy models for the bulletin board."""

from .announcement import Announcement
from .attachment import Attachment
from .board import AnonymousPost, BoardCategory, Comment
from .employee import Employee
from .notification import Notification, NotificationKeyword, NotificationSettings
from .search_log import SearchLog
from .vote import CommentVote, PostVote

__all__ = [
    "Announcement",
    "Attachment",
    "AnonymousPost", "BoardCategory", "Comment",
    "Employee",
    "Notification", "NotificationKeyword", "NotificationSettings",
    "SearchLog",
    "CommentVote", "PostVote",
]
