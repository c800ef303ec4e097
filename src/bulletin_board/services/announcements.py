"""Announcement publishing and retrieval."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import case, select
from sqlalchemy.orm import Session

from bulletin_board.models import Announcement, Employee
from bulletin_board.models.announcement import PRIORITY_URGENT
from bulletin_board.schemas.announcement import AnnouncementCreate, AnnouncementUpdate
from bulletin_board.services import attachments, notifications
from bulletin_board.services.change_feed import ChangeFeed
from bulletin_board.services.notifications import FanoutResult

logger = logging.getLogger(__name__)


class AnnouncementNotFoundError(LookupError):
    """Raised when an announcement does not exist."""


@dataclass(frozen=True)
class PublishedAnnouncement:
    announcement: Announcement
    fanout: FanoutResult


def _urgent_first():
    return case((Announcement.priority == PRIORITY_URGENT, 0), else_=1)


def list_announcements(db: Session, *, limit: int | None = None) -> list[Announcement]:
    """Return announcements with urgent ones first, then newest first."""
    query = select(Announcement).order_by(
        _urgent_first(), Announcement.created_at.desc(), Announcement.id.desc()
    )
    if limit is not None:
        query = query.limit(limit)
    return list(db.execute(query).scalars())


def get_announcement(db: Session, announcement_id: int) -> Announcement:
    announcement = db.get(Announcement, announcement_id)
    if announcement is None:
        raise AnnouncementNotFoundError(f"Announcement {announcement_id} not found")
    return announcement


def publish_announcement(
    db: Session,
    data: AnnouncementCreate,
    author: Employee,
    *,
    feed: ChangeFeed | None = None,
) -> PublishedAnnouncement:
    """Store an announcement and notify its audience.

    The announcement is committed before fan-out starts and is kept even if
    notification creation fails; the returned fan-out result tells the
    caller how many employees were reached.
    """
    announcement = Announcement(
        title=data.title.strip(),
        content=data.content.strip(),
        priority=data.priority,
        category_id=data.category_id,
        author_id=author.id,
        target_departments=list(data.target_departments),
        target_positions=list(data.target_positions),
    )
    db.add(announcement)
    db.commit()
    db.refresh(announcement)

    recipients = notifications.compute_recipients(
        db,
        target_departments=announcement.target_departments,
        target_positions=announcement.target_positions,
    )
    fanout = notifications.notify_announcement(
        db,
        announcement.id,
        announcement.title,
        announcement.priority,
        recipients,
        feed=feed,
    )
    if not fanout.succeeded:
        logger.warning(
            "Announcement %s published but notification fan-out failed (%d/%d)",
            announcement.id,
            fanout.delivered,
            fanout.attempted,
        )
    elif fanout.empty:
        logger.warning("Announcement %s published with no recipients", announcement.id)
    return PublishedAnnouncement(announcement=announcement, fanout=fanout)


def update_announcement(db: Session, announcement_id: int, data: AnnouncementUpdate) -> Announcement:
    """Apply partial edits; edits do not re-send notifications."""
    announcement = get_announcement(db, announcement_id)
    for key, value in data.model_dump(exclude_unset=True).items():
        if isinstance(value, str):
            value = value.strip()
        setattr(announcement, key, value)
    db.commit()
    db.refresh(announcement)
    return announcement


def delete_announcement(db: Session, announcement_id: int) -> None:
    """Delete an announcement together with its attachment files."""
    announcement = get_announcement(db, announcement_id)
    removed = attachments.delete_for_announcement(db, announcement_id)
    if removed:
        logger.info("Removing %d attachments of announcement %s", removed, announcement_id)
    db.delete(announcement)
    db.commit()
