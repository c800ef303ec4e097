# src/bulletin_board/api/v1/endpoints/announcements.py
"""Announcement endpoints."""

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy.orm import Session

from bulletin_board.api.v1.dependencies import AdminDep, CurrentEmployeeDep, FeedDep, SessionDep
from bulletin_board.models import Announcement
from bulletin_board.schemas.announcement import (
    AnnouncementCreate,
    AnnouncementResponse,
    AnnouncementUpdate,
    PublishResponse,
)
from bulletin_board.services import announcements as announcement_service
from bulletin_board.services.announcements import AnnouncementNotFoundError

router = APIRouter(prefix="/announcements", tags=["announcements"])


def _get_or_404(db: Session, announcement_id: int) -> Announcement:
    try:
        return announcement_service.get_announcement(db, announcement_id)
    except AnnouncementNotFoundError as err:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(err)) from err


@router.get("/", response_model=list[AnnouncementResponse])
async def list_announcements(
    db: SessionDep,
    _employee: CurrentEmployeeDep,
    limit: int | None = Query(None, ge=1, le=200),
) -> list[Announcement]:
    """List announcements, urgent first then newest first."""
    return announcement_service.list_announcements(db, limit=limit)


@router.post("/", response_model=PublishResponse, status_code=status.HTTP_201_CREATED)
async def publish_announcement(
    data: AnnouncementCreate,
    db: SessionDep,
    admin: AdminDep,
    feed: FeedDep,
) -> PublishResponse:
    """Publish an announcement and notify its audience.

    The response carries the fan-out outcome so a partial or empty delivery
    is visible to the publisher.
    """
    published = announcement_service.publish_announcement(db, data, admin, feed=feed)
    return PublishResponse(
        announcement=AnnouncementResponse.model_validate(published.announcement),
        fanout=published.fanout.to_dict(),
    )


@router.get("/{announcement_id}", response_model=AnnouncementResponse)
async def get_announcement(
    announcement_id: int,
    db: SessionDep,
    _employee: CurrentEmployeeDep,
) -> Announcement:
    return _get_or_404(db, announcement_id)


@router.patch("/{announcement_id}", response_model=AnnouncementResponse)
async def update_announcement(
    announcement_id: int,
    data: AnnouncementUpdate,
    db: SessionDep,
    current_employee: CurrentEmployeeDep,
) -> Announcement:
    announcement = _get_or_404(db, announcement_id)
    if announcement.author_id != current_employee.id and not current_employee.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the author or an administrator can edit this announcement",
        )
    return announcement_service.update_announcement(db, announcement_id, data)


@router.delete("/{announcement_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_announcement(announcement_id: int, db: SessionDep, _admin: AdminDep) -> None:
    _get_or_404(db, announcement_id)
    announcement_service.delete_announcement(db, announcement_id)
