"""Remembers which reaction the local employee left on posts and comments.

Entries expire after thirty days; the cache is pruned on every write and
can be persisted as JSON between sessions.
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass

VOTE_RETENTION_SECONDS = 30 * 24 * 60 * 60

_VALID_VOTES = ("like", "dislike")


@dataclass
class CachedVote:
    post_id: int
    comment_id: int | None
    vote_type: str
    timestamp: float


class VoteCache:
    """Local per-(post, comment) vote memory."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._votes: dict[tuple[int, int | None], CachedVote] = {}

    def __len__(self) -> int:
        return len(self._votes)

    def get(self, post_id: int, comment_id: int | None = None) -> str | None:
        vote = self._votes.get((post_id, comment_id))
        return vote.vote_type if vote is not None else None

    def set(self, post_id: int, vote_type: str | None, comment_id: int | None = None) -> None:
        """Record the employee's vote; ``None`` forgets it."""
        key = (post_id, comment_id)
        self._votes.pop(key, None)
        if vote_type is not None:
            if vote_type not in _VALID_VOTES:
                raise ValueError(f"Unknown vote type: {vote_type!r}")
            self._votes[key] = CachedVote(post_id, comment_id, vote_type, self._clock())
        self.prune()

    def clear(self, post_id: int, comment_id: int | None = None) -> None:
        self._votes.pop((post_id, comment_id), None)

    def prune(self) -> int:
        """Drop entries older than the retention window; return how many went."""
        cutoff = self._clock() - VOTE_RETENTION_SECONDS
        stale = [key for key, vote in self._votes.items() if vote.timestamp <= cutoff]
        for key in stale:
            del self._votes[key]
        return len(stale)

    def dumps(self) -> str:
        return json.dumps([asdict(vote) for vote in self._votes.values()])

    @classmethod
    def loads(cls, payload: str, clock: Callable[[], float] = time.time) -> VoteCache:
        """Rebuild a cache from :meth:`dumps` output; unreadable data yields an empty cache."""
        cache = cls(clock=clock)
        try:
            entries = json.loads(payload) if payload else []
        except json.JSONDecodeError:
            return cache
        if not isinstance(entries, list):
            return cache
        for entry in entries:
            try:
                vote = CachedVote(
                    post_id=int(entry["post_id"]),
                    comment_id=entry.get("comment_id"),
                    vote_type=entry["vote_type"],
                    timestamp=float(entry["timestamp"]),
                )
            except (KeyError, TypeError, ValueError, AttributeError):
                continue
            if vote.vote_type in _VALID_VOTES:
                cache._votes[(vote.post_id, vote.comment_id)] = vote
        cache.prune()
        return cache
