# src/bulletin_board/services/__init__.py
"""Business logic services for the bulletin board."""

from .change_feed import ChangeEvent, ChangeFeed, InMemoryChangeFeed, RedisChangeFeed, get_change_feed
from .notifications import FanoutResult
from .votes import VoteOutcome, VoteType

__all__ = [
    "ChangeEvent",
    "ChangeFeed",
    "InMemoryChangeFeed",
    "RedisChangeFeed",
    "get_change_feed",
    "FanoutResult",
    "VoteOutcome",
    "VoteType",
]
