"""Like/dislike toggle engine for comments and anonymous posts.

Each employee holds at most one reaction per target. Voting the same way
twice removes the reaction; voting the other way switches it. The target's
``likes``/``dislikes`` counters are rewritten with absolute values in the
same transaction as the vote record, with the target row locked for the
duration of the read-modify-write.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bulletin_board.models import AnonymousPost, Comment, CommentVote, PostVote

logger = logging.getLogger(__name__)

__all__ = [
    "CommentNotFoundError",
    "PostNotFoundError",
    "VoteOutcome",
    "VoteType",
    "get_comment_vote",
    "get_post_vote",
    "recount_comment",
    "resolve_transition",
    "vote_comment",
    "vote_post",
]


class VoteType(str, enum.Enum):
    """Reaction an employee can leave on a comment or post."""

    LIKE = "like"
    DISLIKE = "dislike"


class CommentNotFoundError(LookupError):
    """Raised when voting on a comment that does not exist."""


class PostNotFoundError(LookupError):
    """Raised when voting on a post that does not exist."""


@dataclass(frozen=True)
class VoteOutcome:
    """Result of a vote toggle.

    On failure ``likes``/``dislikes``/``user_vote`` carry the last values
    read before the error (zeros when nothing could be read).
    """

    success: bool
    likes: int
    dislikes: int
    user_vote: VoteType | None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "likes": self.likes,
            "dislikes": self.dislikes,
            "user_vote": self.user_vote.value if self.user_vote else None,
            "error": self.error,
        }


@dataclass(frozen=True)
class _VoteTarget:
    model: Any
    vote_model: Any
    key: str
    missing: type[LookupError]
    label: str


_COMMENT = _VoteTarget(Comment, CommentVote, "comment_id", CommentNotFoundError, "comment")
_POST = _VoteTarget(AnonymousPost, PostVote, "post_id", PostNotFoundError, "post")


def _adjust(likes: int, dislikes: int, vote_type: VoteType, delta: int) -> tuple[int, int]:
    if vote_type is VoteType.LIKE:
        return max(0, likes + delta), dislikes
    return likes, max(0, dislikes + delta)


def resolve_transition(
    existing: VoteType | None,
    requested: VoteType,
    likes: int,
    dislikes: int,
) -> tuple[int, int, VoteType | None]:
    """Compute the counters and the employee's vote after a toggle.

    Args:
        existing: Vote currently recorded for the employee, if any.
        requested: Reaction the employee just clicked.
        likes: Like counter read from the target.
        dislikes: Dislike counter read from the target.

    Returns:
        ``(likes, dislikes, new_vote)``; ``new_vote`` is None when the click
        cancelled an identical earlier vote. Counters never drop below zero.
    """
    if existing is None:
        likes, dislikes = _adjust(likes, dislikes, requested, +1)
        return likes, dislikes, requested

    if existing is requested:
        likes, dislikes = _adjust(likes, dislikes, requested, -1)
        return likes, dislikes, None

    likes, dislikes = _adjust(likes, dislikes, existing, -1)
    likes, dislikes = _adjust(likes, dislikes, requested, +1)
    return likes, dislikes, requested


def _find_vote(db: Session, target: _VoteTarget, target_id: int, employee_id: str) -> Any:
    vote_model = target.vote_model
    return db.execute(
        select(vote_model).where(
            getattr(vote_model, target.key) == target_id,
            vote_model.employee_id == employee_id,
        )
    ).scalar_one_or_none()


def _toggle(
    db: Session,
    target: _VoteTarget,
    target_id: int,
    vote_type: VoteType | str,
    employee_id: str,
) -> VoteOutcome:
    requested = VoteType(vote_type)
    likes = dislikes = 0
    previous: VoteType | None = None

    try:
        row = db.execute(
            select(target.model).where(target.model.id == target_id).with_for_update()
        ).scalar_one_or_none()
        if row is None:
            raise target.missing(f"{target.label.capitalize()} {target_id} not found")

        likes, dislikes = row.likes or 0, row.dislikes or 0
        existing = _find_vote(db, target, target_id, employee_id)
        previous = VoteType(existing.vote_type) if existing is not None else None

        new_likes, new_dislikes, new_vote = resolve_transition(
            previous, requested, likes, dislikes
        )

        if existing is None:
            db.add(
                target.vote_model(
                    **{target.key: target_id},
                    employee_id=employee_id,
                    vote_type=requested.value,
                )
            )
        elif new_vote is None:
            db.delete(existing)
        else:
            existing.vote_type = new_vote.value

        row.likes = new_likes
        row.dislikes = new_dislikes
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning(
            "Vote on %s %s by %s failed: %s", target.label, target_id, employee_id, exc
        )
        return VoteOutcome(
            success=False,
            likes=likes,
            dislikes=dislikes,
            user_vote=previous,
            error=f"Could not record vote on {target.label} {target_id}",
        )

    logger.debug(
        "Vote on %s %s by %s: %s -> %s (likes=%d, dislikes=%d)",
        target.label,
        target_id,
        employee_id,
        previous.value if previous else None,
        new_vote.value if new_vote else None,
        new_likes,
        new_dislikes,
    )
    return VoteOutcome(success=True, likes=new_likes, dislikes=new_dislikes, user_vote=new_vote)


def vote_comment(
    db: Session,
    comment_id: int,
    vote_type: VoteType | str,
    employee_id: str,
) -> VoteOutcome:
    """Toggle ``employee_id``'s reaction on a comment.

    Raises:
        CommentNotFoundError: If the comment does not exist.
    """
    return _toggle(db, _COMMENT, comment_id, vote_type, employee_id)


def vote_post(
    db: Session,
    post_id: int,
    vote_type: VoteType | str,
    employee_id: str,
) -> VoteOutcome:
    """Toggle ``employee_id``'s reaction on an anonymous post.

    Raises:
        PostNotFoundError: If the post does not exist.
    """
    return _toggle(db, _POST, post_id, vote_type, employee_id)


def get_comment_vote(db: Session, comment_id: int, employee_id: str) -> VoteType | None:
    """Return the employee's current reaction on a comment."""
    vote = _find_vote(db, _COMMENT, comment_id, employee_id)
    return VoteType(vote.vote_type) if vote is not None else None


def get_post_vote(db: Session, post_id: int, employee_id: str) -> VoteType | None:
    """Return the employee's current reaction on a post."""
    vote = _find_vote(db, _POST, post_id, employee_id)
    return VoteType(vote.vote_type) if vote is not None else None


def recount_comment(db: Session, comment_id: int) -> tuple[int, int]:
    """Rebuild a comment's counters from its vote records and persist them."""
    comment = db.get(Comment, comment_id)
    if comment is None:
        raise CommentNotFoundError(f"Comment {comment_id} not found")

    rows = db.execute(
        select(CommentVote.vote_type, func.count())
        .where(CommentVote.comment_id == comment_id)
        .group_by(CommentVote.vote_type)
    ).all()
    counts = {vote_type: count for vote_type, count in rows}
    comment.likes = counts.get(VoteType.LIKE.value, 0)
    comment.dislikes = counts.get(VoteType.DISLIKE.value, 0)
    db.commit()
    return comment.likes, comment.dislikes
