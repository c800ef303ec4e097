"""Client-side state kept by a connected board session."""

from .inbox import NotificationInbox
from .vote_cache import VoteCache

__all__ = ["NotificationInbox", "VoteCache"]
