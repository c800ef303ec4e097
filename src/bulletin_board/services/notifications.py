"""Notification fan-out, read tracking and delivery preferences.

Fan-out materialises one :class:`~bulletin_board.models.Notification` row
per recipient in a single transaction and reports the outcome as a
:class:`FanoutResult`. Every committed insert or read-state change is
published on the change feed so connected clients update live.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bulletin_board.db.time import utcnow
from bulletin_board.models import (
    AnonymousPost,
    Employee,
    Notification,
    NotificationKeyword,
    NotificationSettings,
)
from bulletin_board.models.employee import STATUS_APPROVED
from bulletin_board.models.notification import (
    PRIORITIES,
    TYPE_ANNOUNCEMENT,
    TYPE_COMMENT,
    TYPE_KEYWORD_ALERT,
    TYPE_SYSTEM,
)
from bulletin_board.services.change_feed import ChangeEvent, ChangeFeed, get_change_feed

logger = logging.getLogger(__name__)

NOTIFICATION_TABLE = Notification.__tablename__

SETTINGS_TOGGLES = (
    "email_notifications",
    "push_notifications",
    "keyword_alerts",
    "announcement_alerts",
    "comment_alerts",
)


class NotificationNotFoundError(LookupError):
    """Raised when a notification does not exist or belongs to someone else."""


@dataclass(frozen=True)
class FanoutResult:
    """Outcome of creating notifications for a recipient set."""

    attempted: int
    delivered: int
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.delivered == self.attempted

    @property
    def empty(self) -> bool:
        return self.attempted == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempted": self.attempted,
            "delivered": self.delivered,
            "succeeded": self.succeeded,
            "error": self.error,
        }


def _check_priority(priority: str) -> str:
    if priority not in PRIORITIES:
        raise ValueError(f"Unknown notification priority: {priority!r}")
    return priority


def _unique(user_ids: Iterable[int]) -> list[int]:
    return list(dict.fromkeys(user_ids))


def _feed(feed: ChangeFeed | None) -> ChangeFeed:
    return feed if feed is not None else get_change_feed()


def _fan_out(
    db: Session,
    rows: list[Notification],
    *,
    kind: str,
    feed: ChangeFeed | None,
) -> FanoutResult:
    attempted = len(rows)
    if not rows:
        logger.info("No recipients for %s notification; nothing created", kind)
        return FanoutResult(attempted=0, delivered=0)

    try:
        db.add_all(rows)
        db.flush()
        payloads = [row.to_row() for row in rows]
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Creating %d %s notification(s) failed: %s", attempted, kind, exc)
        return FanoutResult(
            attempted=attempted,
            delivered=0,
            error=f"Could not create {kind} notifications",
        )

    change_feed = _feed(feed)
    for payload in payloads:
        change_feed.publish(ChangeEvent(table=NOTIFICATION_TABLE, event="INSERT", new=payload))
    logger.info("Created %d %s notification(s)", attempted, kind)
    return FanoutResult(attempted=attempted, delivered=attempted)


# ---------------------------------------------------------------------------
# Recipient resolution
# ---------------------------------------------------------------------------
def compute_recipients(
    db: Session,
    target_departments: Sequence[int] | None = None,
    target_positions: Sequence[int] | None = None,
) -> list[int]:
    """Return ids of active, approved employees in the targeted groups.

    Empty or missing filters mean "everyone". A store error is logged and
    yields an empty list.
    """
    query = select(Employee.id).where(
        Employee.is_active.is_(True),
        Employee.status == STATUS_APPROVED,
    )
    if target_departments:
        query = query.where(Employee.department_id.in_(list(target_departments)))
    if target_positions:
        query = query.where(Employee.position_id.in_(list(target_positions)))

    try:
        return list(db.execute(query.order_by(Employee.id)).scalars())
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Recipient resolution failed: %s", exc, exc_info=True)
        return []


def keyword_recipients(
    db: Session,
    text: str,
    *,
    exclude_user_ids: Iterable[int] = (),
) -> dict[str, list[int]]:
    """Map each subscribed keyword found in ``text`` to the employees to alert.

    An employee is listed once, under the first of their keywords that
    matches. Employees who switched keyword alerts off are skipped.
    """
    haystack = text.lower()
    excluded = set(exclude_user_ids)
    rows = db.execute(
        select(NotificationKeyword.user_id, NotificationKeyword.keyword)
        .join(Employee, Employee.id == NotificationKeyword.user_id)
        .outerjoin(NotificationSettings, NotificationSettings.user_id == NotificationKeyword.user_id)
        .where(
            Employee.is_active.is_(True),
            func.coalesce(NotificationSettings.keyword_alerts, True).is_(True),
        )
        .order_by(NotificationKeyword.user_id, NotificationKeyword.id)
    ).all()

    matches: dict[str, list[int]] = {}
    seen: set[int] = set()
    for user_id, keyword in rows:
        if user_id in excluded or user_id in seen:
            continue
        if keyword and keyword in haystack:
            matches.setdefault(keyword, []).append(user_id)
            seen.add(user_id)
    return matches


# ---------------------------------------------------------------------------
# Fan-out
# ---------------------------------------------------------------------------
def notify_announcement(
    db: Session,
    announcement_id: int,
    title: str,
    priority: str,
    recipients: Iterable[int],
    *,
    feed: ChangeFeed | None = None,
) -> FanoutResult:
    """Create one ``announcement`` notification per recipient."""
    priority = _check_priority(priority)
    content = (
        "An urgent announcement has been posted."
        if priority == "urgent"
        else "A new announcement has been posted."
    )
    rows = [
        Notification(
            user_id=user_id,
            type=TYPE_ANNOUNCEMENT,
            title=f"New announcement: {title}",
            content=content,
            data={"announcement_id": announcement_id},
            is_read=False,
            priority=priority,
            related_id=announcement_id,
        )
        for user_id in _unique(recipients)
    ]
    return _fan_out(db, rows, kind=TYPE_ANNOUNCEMENT, feed=feed)


def notify_comment(
    db: Session,
    post_id: int,
    commenter_employee_id: str,
    *,
    feed: ChangeFeed | None = None,
) -> FanoutResult:
    """Tell a post's author that someone else commented on it."""
    row = db.execute(
        select(AnonymousPost.title, Employee.id, Employee.employee_id)
        .join(Employee, Employee.employee_id == AnonymousPost.author_employee_id)
        .where(AnonymousPost.id == post_id)
    ).first()
    if row is None:
        return FanoutResult(attempted=0, delivered=0)

    post_title, author_id, author_employee_id = row
    if author_employee_id == commenter_employee_id:
        return FanoutResult(attempted=0, delivered=0)

    notification = Notification(
        user_id=author_id,
        type=TYPE_COMMENT,
        title=f"New comment: {post_title}",
        content="Someone commented on your post.",
        is_read=False,
        priority="normal",
        related_id=post_id,
    )
    return _fan_out(db, [notification], kind=TYPE_COMMENT, feed=feed)


def notify_keyword(
    db: Session,
    keyword: str,
    post_id: int,
    post_title: str,
    recipients: Iterable[int],
    *,
    feed: ChangeFeed | None = None,
) -> FanoutResult:
    """Create ``keyword_alert`` notifications for a newly created post."""
    rows = [
        Notification(
            user_id=user_id,
            type=TYPE_KEYWORD_ALERT,
            title=f'Keyword alert: "{keyword}"',
            content=f'A new post mentions "{keyword}": {post_title}',
            data={"keyword": keyword, "post_title": post_title},
            is_read=False,
            priority="normal",
            related_id=post_id,
        )
        for user_id in _unique(recipients)
    ]
    return _fan_out(db, rows, kind=TYPE_KEYWORD_ALERT, feed=feed)


def notify_system(
    db: Session,
    title: str,
    content: str,
    priority: str = "normal",
    recipients: Iterable[int] | None = None,
    *,
    feed: ChangeFeed | None = None,
) -> FanoutResult:
    """Create ``system`` notifications; no recipients means every employee."""
    priority = _check_priority(priority)
    user_ids = compute_recipients(db) if recipients is None else _unique(recipients)
    rows = [
        Notification(
            user_id=user_id,
            type=TYPE_SYSTEM,
            title=title,
            content=content,
            is_read=False,
            priority=priority,
        )
        for user_id in user_ids
    ]
    return _fan_out(db, rows, kind=TYPE_SYSTEM, feed=feed)


# ---------------------------------------------------------------------------
# Queries and read state
# ---------------------------------------------------------------------------
def list_for_user(
    db: Session,
    user_id: int,
    *,
    unread_only: bool = False,
    limit: int | None = None,
) -> list[Notification]:
    """Return the employee's notifications, newest first.

    A store error is logged and yields an empty list.
    """
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.is_read.is_(False))
    query = query.order_by(Notification.created_at.desc(), Notification.id.desc())
    if limit is not None:
        query = query.limit(limit)
    try:
        return list(db.execute(query).scalars())
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Listing notifications for user %s failed: %s", user_id, exc, exc_info=True)
        return []


def unread_count(db: Session, user_id: int) -> int:
    """Count unread notifications; a store error is logged and counts as 0."""
    try:
        return db.execute(
            select(func.count())
            .select_from(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        ).scalar_one()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Counting unread notifications for user %s failed: %s", user_id, exc, exc_info=True)
        return 0


def mark_read(
    db: Session,
    notification_id: int,
    *,
    user_id: int | None = None,
    feed: ChangeFeed | None = None,
) -> bool:
    """Flip one notification to read.

    Already-read notifications are left untouched, ``read_at`` included.
    Returns False when the store fails.

    Raises:
        NotificationNotFoundError: If the notification does not exist or
            ``user_id`` is given and does not own it.
    """
    try:
        notification = db.get(Notification, notification_id)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Loading notification %s failed: %s", notification_id, exc)
        return False
    if notification is None or (user_id is not None and notification.user_id != user_id):
        raise NotificationNotFoundError(f"Notification {notification_id} not found")
    if notification.is_read:
        return True

    old = notification.to_row()
    try:
        notification.is_read = True
        notification.read_at = utcnow()
        new = notification.to_row()
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Marking notification %s read failed: %s", notification_id, exc)
        return False

    _feed(feed).publish(
        ChangeEvent(table=NOTIFICATION_TABLE, event="UPDATE", new=new, old=old)
    )
    return True


def mark_all_read(db: Session, user_id: int, *, feed: ChangeFeed | None = None) -> bool:
    """Flip every unread notification of ``user_id`` to read."""
    try:
        unread = list(
            db.execute(
                select(Notification).where(
                    Notification.user_id == user_id, Notification.is_read.is_(False)
                )
            ).scalars()
        )
        previous = [notification.to_row() for notification in unread]
        now = utcnow()
        for notification in unread:
            notification.is_read = True
            notification.read_at = now
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Marking all notifications read for %s failed: %s", user_id, exc)
        return False

    change_feed = _feed(feed)
    for notification, old in zip(unread, previous, strict=True):
        change_feed.publish(
            ChangeEvent(
                table=NOTIFICATION_TABLE, event="UPDATE", new=notification.to_row(), old=old
            )
        )
    logger.debug("Marked %d notification(s) read for %s", len(unread), user_id)
    return True


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------
def get_settings(db: Session, user_id: int) -> NotificationSettings:
    """Return stored settings, or unsaved defaults when none exist yet."""
    stored = db.get(NotificationSettings, user_id)
    if stored is not None:
        return stored
    return NotificationSettings(
        user_id=user_id,
        email_notifications=False,
        push_notifications=True,
        keyword_alerts=True,
        announcement_alerts=True,
        comment_alerts=True,
        updated_at=utcnow(),
    )


def update_settings(db: Session, user_id: int, **toggles: bool | None) -> NotificationSettings:
    """Upsert the employee's settings with the provided toggles."""
    unknown = set(toggles) - set(SETTINGS_TOGGLES)
    if unknown:
        raise ValueError(f"Unknown notification settings: {', '.join(sorted(unknown))}")

    current = get_settings(db, user_id)
    for name, value in toggles.items():
        if value is not None:
            setattr(current, name, value)
    db.add(current)
    db.commit()
    db.refresh(current)
    return current


def list_keywords(db: Session, user_id: int) -> list[NotificationKeyword]:
    return list(
        db.execute(
            select(NotificationKeyword)
            .where(NotificationKeyword.user_id == user_id)
            .order_by(NotificationKeyword.keyword)
        ).scalars()
    )


def add_keyword(db: Session, user_id: int, keyword: str) -> NotificationKeyword:
    """Subscribe to a keyword; re-adding an existing keyword returns it."""
    normalized = keyword.strip().lower()
    if not normalized:
        raise ValueError("Keyword must not be blank")
    existing = db.execute(
        select(NotificationKeyword).where(
            NotificationKeyword.user_id == user_id,
            NotificationKeyword.keyword == normalized,
        )
    ).scalar_one_or_none()
    if existing is not None:
        return existing

    subscription = NotificationKeyword(user_id=user_id, keyword=normalized)
    db.add(subscription)
    db.commit()
    db.refresh(subscription)
    return subscription


def remove_keyword(db: Session, user_id: int, keyword_id: int) -> bool:
    subscription = db.get(NotificationKeyword, keyword_id)
    if subscription is None or subscription.user_id != user_id:
        return False
    db.delete(subscription)
    db.commit()
    return True
