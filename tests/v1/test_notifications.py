# tests/v1/test_notifications.py
"""Tests for notification endpoints and the live stream."""

import pytest
from fastapi import status
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker
from starlette.websockets import WebSocketDisconnect

from bulletin_board.core.security import create_token
from bulletin_board.db.session import Base, get_session_factory
from bulletin_board.models import Employee
from bulletin_board.services import notifications
from tests.conftest import make_employee


@pytest.fixture()
def inbox(db_session, employee, feed):
    """Two unread system notices for ``employee``."""
    notifications.notify_system(db_session, "First", "one", recipients=[employee.id], feed=feed)
    notifications.notify_system(db_session, "Second", "two", recipients=[employee.id], feed=feed)
    return notifications.list_for_user(db_session, employee.id)


def test_list_notifications(client, auth_headers, inbox) -> None:
    response = client.get("/api/v1/notifications/", headers=auth_headers)
    assert response.status_code == status.HTTP_200_OK
    assert [row["title"] for row in response.json()] == ["Second", "First"]

    limited = client.get("/api/v1/notifications/?limit=1", headers=auth_headers)
    assert len(limited.json()) == 1


def test_unread_count_and_mark_read(client, auth_headers, inbox) -> None:
    assert client.get("/api/v1/notifications/unread-count", headers=auth_headers).json() == {"unread": 2}

    target = inbox[0].id
    response = client.post(f"/api/v1/notifications/{target}/read", headers=auth_headers)
    assert response.status_code == status.HTTP_204_NO_CONTENT
    again = client.post(f"/api/v1/notifications/{target}/read", headers=auth_headers)
    assert again.status_code == status.HTTP_204_NO_CONTENT

    assert client.get("/api/v1/notifications/unread-count", headers=auth_headers).json() == {"unread": 1}
    unread = client.get("/api/v1/notifications/?unread_only=true", headers=auth_headers).json()
    assert [row["id"] for row in unread] == [inbox[1].id]


def test_cannot_mark_someone_elses_notification(client, other_auth_headers, inbox) -> None:
    response = client.post(f"/api/v1/notifications/{inbox[0].id}/read", headers=other_auth_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_mark_all_read(client, auth_headers, inbox) -> None:
    response = client.post("/api/v1/notifications/read-all", headers=auth_headers)
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert client.get("/api/v1/notifications/unread-count", headers=auth_headers).json() == {"unread": 0}


def test_settings_round_trip(client, auth_headers) -> None:
    defaults = client.get("/api/v1/notifications/settings", headers=auth_headers).json()
    assert defaults["push_notifications"] is True

    updated = client.put(
        "/api/v1/notifications/settings",
        json={"push_notifications": False},
        headers=auth_headers,
    )
    assert updated.status_code == status.HTTP_200_OK
    assert updated.json()["push_notifications"] is False
    assert updated.json()["announcement_alerts"] is True


def test_keyword_subscriptions(client, auth_headers) -> None:
    created = client.post("/api/v1/notifications/keywords", json={"keyword": "Parking"}, headers=auth_headers)
    assert created.status_code == status.HTTP_201_CREATED
    assert created.json()["keyword"] == "parking"

    listed = client.get("/api/v1/notifications/keywords", headers=auth_headers).json()
    assert [row["keyword"] for row in listed] == ["parking"]

    keyword_id = created.json()["id"]
    assert client.delete(f"/api/v1/notifications/keywords/{keyword_id}", headers=auth_headers).status_code == 204
    assert client.delete(f"/api/v1/notifications/keywords/{keyword_id}", headers=auth_headers).status_code == 404


def test_blank_keyword_is_rejected(client, auth_headers) -> None:
    response = client.post("/api/v1/notifications/keywords", json={"keyword": "   "}, headers=auth_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_system_broadcast_is_admin_only(client, auth_headers, admin_headers, employee, other_employee) -> None:
    payload = {"title": "Office closed", "content": "Friday is a holiday", "priority": "high"}
    assert client.post("/api/v1/notifications/system", json=payload, headers=auth_headers).status_code == 403

    response = client.post("/api/v1/notifications/system", json=payload, headers=admin_headers)
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json() == {"attempted": 3, "delivered": 3, "succeeded": True, "error": None}


def test_stream_rejects_invalid_token(client) -> None:
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with client.websocket_connect("/api/v1/notifications/ws?token=not-a-token"):
            pass
    assert excinfo.value.code == 4001


def test_stream_rejects_disabled_account(client, db_session) -> None:
    disabled = make_employee(db_session, "D404", is_active=False)
    token = create_token(disabled.employee_id)
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with client.websocket_connect(f"/api/v1/notifications/ws?token={token}"):
            pass
    assert excinfo.value.code == 4003


def test_stream_pushes_inserts_and_updates(client, employee, admin_headers, auth_headers) -> None:
    token = create_token(employee.employee_id)
    with client.websocket_connect(f"/api/v1/notifications/ws?token={token}") as websocket:
        assert websocket.receive_json() == {"type": "ready", "unread": 0}

        websocket.send_text("ping")
        assert websocket.receive_json() == {"type": "pong"}

        client.post(
            "/api/v1/notifications/system",
            json={"title": "Fire drill", "content": "At 3pm", "recipients": [employee.id]},
            headers=admin_headers,
        )
        inserted = websocket.receive_json()
        assert inserted["type"] == "change"
        assert inserted["event"] == "INSERT"
        assert inserted["table"] == "notification"
        assert inserted["new"]["title"] == "Fire drill"
        assert inserted["new"]["user_id"] == employee.id

        client.post(f"/api/v1/notifications/{inserted['new']['id']}/read", headers=auth_headers)
        updated = websocket.receive_json()
        assert updated["event"] == "UPDATE"
        assert updated["old"]["is_read"] is False
        assert updated["new"]["is_read"] is True


def test_stream_holds_no_database_connection_while_open(app, client, tmp_path) -> None:
    engine = create_engine(
        f"sqlite:///{tmp_path / 'stream.db'}",
        connect_args={"check_same_thread": False},
        pool_size=1,
        max_overflow=0,
        pool_timeout=1,
    )
    Base.metadata.create_all(bind=engine)
    open_session = sessionmaker(bind=engine, expire_on_commit=False)
    with open_session() as db:
        listener = make_employee(db, "W001")
        db.commit()
    token = create_token(listener.employee_id)

    app.dependency_overrides[get_session_factory] = lambda: open_session
    try:
        with client.websocket_connect(f"/api/v1/notifications/ws?token={token}") as websocket:
            assert websocket.receive_json() == {"type": "ready", "unread": 0}
            assert engine.pool.checkedout() == 0

            with open_session() as db:
                assert db.execute(select(func.count()).select_from(Employee)).scalar_one() == 1
    finally:
        engine.dispose()
