# src/bulletin_board/api/v1/endpoints/notifications.py
"""Notification endpoints, including the live WebSocket stream."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from jose import JWTError

from bulletin_board.api.v1.dependencies import (
    AdminDep,
    CurrentEmployeeDep,
    FeedDep,
    SessionDep,
    SessionFactoryDep,
)
from bulletin_board.core.security import decode_token
from bulletin_board.models import Notification, NotificationKeyword, NotificationSettings
from bulletin_board.schemas.notification import (
    FanoutResponse,
    KeywordCreate,
    KeywordResponse,
    NotificationResponse,
    SettingsResponse,
    SettingsUpdate,
    SystemNotificationCreate,
    UnreadCountResponse,
)
from bulletin_board.services import notifications as notification_service
from bulletin_board.services.change_feed import Subscription
from bulletin_board.services.employees import get_employee_by_employee_id
from bulletin_board.services.notifications import NOTIFICATION_TABLE, NotificationNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])

# Application-defined WebSocket close codes.
WS_INVALID_TOKEN = 4001
WS_ACCOUNT_DISABLED = 4003


def _store_unavailable(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)


@router.get("/", response_model=list[NotificationResponse])
async def list_notifications(
    db: SessionDep,
    current_employee: CurrentEmployeeDep,
    unread_only: bool = False,
    limit: int | None = Query(None, ge=1, le=200),
) -> list[Notification]:
    """List the caller's notifications, newest first."""
    return notification_service.list_for_user(
        db, current_employee.id, unread_only=unread_only, limit=limit
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(db: SessionDep, current_employee: CurrentEmployeeDep) -> UnreadCountResponse:
    return UnreadCountResponse(unread=notification_service.unread_count(db, current_employee.id))


@router.post("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_notification_read(
    notification_id: int,
    db: SessionDep,
    current_employee: CurrentEmployeeDep,
    feed: FeedDep,
) -> None:
    try:
        updated = notification_service.mark_read(
            db, notification_id, user_id=current_employee.id, feed=feed
        )
    except NotificationNotFoundError as err:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(err)) from err
    if not updated:
        raise _store_unavailable("Could not mark notification as read")


@router.post("/read-all", status_code=status.HTTP_204_NO_CONTENT)
async def mark_all_notifications_read(
    db: SessionDep,
    current_employee: CurrentEmployeeDep,
    feed: FeedDep,
) -> None:
    if not notification_service.mark_all_read(db, current_employee.id, feed=feed):
        raise _store_unavailable("Could not mark notifications as read")


@router.get("/settings", response_model=SettingsResponse)
async def read_settings(db: SessionDep, current_employee: CurrentEmployeeDep) -> NotificationSettings:
    return notification_service.get_settings(db, current_employee.id)


@router.put("/settings", response_model=SettingsResponse)
async def write_settings(
    body: SettingsUpdate,
    db: SessionDep,
    current_employee: CurrentEmployeeDep,
) -> NotificationSettings:
    return notification_service.update_settings(
        db, current_employee.id, **body.model_dump(exclude_none=True)
    )


@router.get("/keywords", response_model=list[KeywordResponse])
async def list_keywords(db: SessionDep, current_employee: CurrentEmployeeDep) -> list[NotificationKeyword]:
    return notification_service.list_keywords(db, current_employee.id)


@router.post("/keywords", response_model=KeywordResponse, status_code=status.HTTP_201_CREATED)
async def add_keyword(
    body: KeywordCreate,
    db: SessionDep,
    current_employee: CurrentEmployeeDep,
) -> NotificationKeyword:
    try:
        return notification_service.add_keyword(db, current_employee.id, body.keyword)
    except ValueError as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err


@router.delete("/keywords/{keyword_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_keyword(keyword_id: int, db: SessionDep, current_employee: CurrentEmployeeDep) -> None:
    if not notification_service.remove_keyword(db, current_employee.id, keyword_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Keyword not found")


@router.post("/system", response_model=FanoutResponse, status_code=status.HTTP_201_CREATED)
async def send_system_notification(
    body: SystemNotificationCreate,
    db: SessionDep,
    _admin: AdminDep,
    feed: FeedDep,
) -> FanoutResponse:
    """Broadcast a system notice; failures are reported in the response body."""
    result = notification_service.notify_system(
        db, body.title, body.content, body.priority, body.recipients, feed=feed
    )
    return FanoutResponse(**result.to_dict())


async def _pump(websocket: WebSocket, subscription: Subscription) -> None:
    """Forward feed events to the socket and answer pings until either side ends."""
    next_event = asyncio.create_task(subscription.get())
    next_message = asyncio.create_task(websocket.receive_text())
    try:
        while True:
            done, _ = await asyncio.wait(
                {next_event, next_message}, return_when=asyncio.FIRST_COMPLETED
            )
            if next_message in done:
                if next_message.result().strip() == "ping":
                    await websocket.send_json({"type": "pong"})
                next_message = asyncio.create_task(websocket.receive_text())
            if next_event in done:
                event = next_event.result()
                if event is None:
                    await websocket.close(code=status.WS_1001_GOING_AWAY)
                    return
                await websocket.send_json({"type": "change", **event.to_dict()})
                next_event = asyncio.create_task(subscription.get())
    finally:
        next_event.cancel()
        next_message.cancel()


@router.websocket("/ws")
async def notification_stream(
    websocket: WebSocket,
    open_session: SessionFactoryDep,
    feed: FeedDep,
    token: str = Query(...),
) -> None:
    """Stream the caller's notification inserts and updates as they commit.

    The first frame is ``{"type": "ready", "unread": n}``; every later frame
    is a change event. Send ``ping`` to receive ``{"type": "pong"}``.
    Database sessions are only held while authenticating and counting, never
    for the life of the socket.
    """
    try:
        payload = decode_token(token)
    except JWTError:
        await websocket.close(code=WS_INVALID_TOKEN)
        return
    with open_session() as db:
        employee = get_employee_by_employee_id(db, payload["sub"])
        employee_pk = employee.id if employee is not None else None
        can_sign_in = employee is not None and employee.can_sign_in
    if employee_pk is None:
        await websocket.close(code=WS_INVALID_TOKEN)
        return
    if not can_sign_in:
        await websocket.close(code=WS_ACCOUNT_DISABLED)
        return

    async with feed.subscribe(NOTIFICATION_TABLE, user_id=employee_pk) as subscription:
        with open_session() as db:
            unread = notification_service.unread_count(db, employee_pk)
        await websocket.accept()
        await websocket.send_json({"type": "ready", "unread": unread})
        try:
            await _pump(websocket, subscription)
        except WebSocketDisconnect:
            logger.debug("Notification stream for employee %s disconnected", employee_pk)
