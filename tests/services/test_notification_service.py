# tests/services/test_notification_service.py
"""Tests for notification fan-out, read tracking and preferences."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from bulletin_board.models import Employee, Notification
from bulletin_board.services import notifications
from bulletin_board.services.change_feed import ChangeFeed
from bulletin_board.services.notifications import FanoutResult, NotificationNotFoundError
from tests.conftest import make_employee


@pytest.fixture()
def recording_feed() -> MagicMock:
    return MagicMock(spec=ChangeFeed)


@pytest.fixture()
def recipients(db_session: Session) -> list[int]:
    ids = [101, 102, 103]
    for pk in ids:
        db_session.add(
            Employee(
                id=pk,
                employee_id=f"R{pk}",
                name=f"Recipient {pk}",
                password_hash="x",
                department_id=1,
                position_id=1,
            )
        )
    db_session.flush()
    return ids


def _notifications_for(db: Session, user_id: int) -> list[Notification]:
    return list(db.execute(select(Notification).where(Notification.user_id == user_id)).scalars())


def test_announcement_fanout_creates_one_row_per_recipient(
    db_session, recipients, recording_feed
) -> None:
    result = notifications.notify_announcement(
        db_session, 55, "Maintenance", "urgent", recipients, feed=recording_feed
    )

    assert result == FanoutResult(attempted=3, delivered=3)
    assert result.succeeded
    for user_id in recipients:
        rows = _notifications_for(db_session, user_id)
        assert len(rows) == 1
        row = rows[0]
        assert row.type == "announcement"
        assert row.title == "New announcement: Maintenance"
        assert row.content == "An urgent announcement has been posted."
        assert row.data == {"announcement_id": 55}
        assert row.related_id == 55
        assert row.priority == "urgent"
        assert row.is_read is False

    events = [call.args[0] for call in recording_feed.publish.call_args_list]
    assert [event.event for event in events] == ["INSERT"] * 3
    assert sorted(event.new["user_id"] for event in events) == recipients


def test_normal_announcement_uses_plain_wording(db_session, recipients, recording_feed) -> None:
    notifications.notify_announcement(
        db_session, 7, "Picnic", "normal", recipients[:1], feed=recording_feed
    )
    row = _notifications_for(db_session, recipients[0])[0]
    assert row.content == "A new announcement has been posted."


def test_empty_recipient_set_creates_nothing(db_session, recording_feed) -> None:
    result = notifications.notify_announcement(
        db_session, 1, "Nobody", "normal", [], feed=recording_feed
    )

    assert result.empty
    assert result.succeeded
    assert db_session.execute(select(Notification)).scalars().all() == []
    recording_feed.publish.assert_not_called()


def test_duplicate_recipients_get_one_notification(db_session, recipients, recording_feed) -> None:
    result = notifications.notify_announcement(
        db_session, 2, "Dupes", "normal", [101, 101, 102], feed=recording_feed
    )
    assert result.attempted == 2
    assert len(_notifications_for(db_session, 101)) == 1


def test_unknown_priority_is_rejected(db_session, recipients) -> None:
    with pytest.raises(ValueError):
        notifications.notify_announcement(db_session, 1, "Bad", "critical", recipients)


def test_fanout_store_failure_is_reported(recording_feed) -> None:
    db = MagicMock(spec=Session)
    db.flush.side_effect = OperationalError("INSERT", {}, Exception("db down"))

    result = notifications.notify_announcement(
        db, 55, "Maintenance", "urgent", [101, 102, 103], feed=recording_feed
    )

    assert result.attempted == 3
    assert result.delivered == 0
    assert result.error is not None
    assert not result.succeeded
    db.rollback.assert_called_once()
    recording_feed.publish.assert_not_called()


def test_compute_recipients_filters_by_department_and_position(db_session) -> None:
    sales = make_employee(db_session, "S001", department_id=1, position_id=1)
    sales_lead = make_employee(db_session, "S002", department_id=1, position_id=2)
    dev = make_employee(db_session, "D001", department_id=2, position_id=1)
    make_employee(db_session, "X001", department_id=1, is_active=False)
    make_employee(db_session, "X002", department_id=1, status="pending")

    assert notifications.compute_recipients(db_session) == [sales.id, sales_lead.id, dev.id]
    assert notifications.compute_recipients(db_session, [1]) == [sales.id, sales_lead.id]
    assert notifications.compute_recipients(db_session, [1], [2]) == [sales_lead.id]
    assert notifications.compute_recipients(db_session, [], [1]) == [sales.id, dev.id]


def test_compute_recipients_store_failure_yields_empty_list() -> None:
    db = MagicMock(spec=Session)
    db.execute.side_effect = OperationalError("SELECT", {}, Exception("db down"))

    assert notifications.compute_recipients(db, [1]) == []


def test_list_for_user_is_newest_first(db_session, employee, recording_feed) -> None:
    notifications.notify_system(db_session, "First", "one", recipients=[employee.id], feed=recording_feed)
    notifications.notify_system(db_session, "Second", "two", recipients=[employee.id], feed=recording_feed)

    titles = [row.title for row in notifications.list_for_user(db_session, employee.id)]
    assert titles == ["Second", "First"]
    assert len(notifications.list_for_user(db_session, employee.id, limit=1)) == 1


def test_mark_read_is_idempotent(db_session, employee, recording_feed) -> None:
    notifications.notify_system(db_session, "Hello", "body", recipients=[employee.id], feed=recording_feed)
    target = notifications.list_for_user(db_session, employee.id)[0]
    recording_feed.reset_mock()

    assert notifications.mark_read(db_session, target.id, user_id=employee.id, feed=recording_feed)
    first_read_at = db_session.get(Notification, target.id).read_at
    assert first_read_at is not None
    assert notifications.unread_count(db_session, employee.id) == 0

    event = recording_feed.publish.call_args.args[0]
    assert event.event == "UPDATE"
    assert event.old["is_read"] is False
    assert event.new["is_read"] is True

    recording_feed.reset_mock()
    assert notifications.mark_read(db_session, target.id, user_id=employee.id, feed=recording_feed)
    assert db_session.get(Notification, target.id).read_at == first_read_at
    recording_feed.publish.assert_not_called()


def test_mark_read_rejects_missing_or_foreign(db_session, employee, other_employee, recording_feed) -> None:
    notifications.notify_system(db_session, "Mine", "x", recipients=[employee.id], feed=recording_feed)
    target = notifications.list_for_user(db_session, employee.id)[0]

    with pytest.raises(NotificationNotFoundError):
        notifications.mark_read(db_session, 99999, feed=recording_feed)
    with pytest.raises(NotificationNotFoundError):
        notifications.mark_read(db_session, target.id, user_id=other_employee.id, feed=recording_feed)


def test_mark_all_read_clears_unread(db_session, employee, other_employee, recording_feed) -> None:
    notifications.notify_system(
        db_session, "Notice", "x", recipients=[employee.id, other_employee.id], feed=recording_feed
    )
    notifications.notify_system(db_session, "Notice 2", "y", recipients=[employee.id], feed=recording_feed)
    assert notifications.unread_count(db_session, employee.id) == 2

    assert notifications.mark_all_read(db_session, employee.id, feed=recording_feed)

    assert notifications.unread_count(db_session, employee.id) == 0
    assert notifications.unread_count(db_session, other_employee.id) == 1
    assert notifications.list_for_user(db_session, employee.id, unread_only=True) == []


def test_comment_notifies_post_author_only(db_session, post, employee, other_employee, recording_feed) -> None:
    result = notifications.notify_comment(
        db_session, post.id, other_employee.employee_id, feed=recording_feed
    )
    assert result.delivered == 1
    row = _notifications_for(db_session, employee.id)[0]
    assert row.type == "comment"
    assert row.title == f"New comment: {post.title}"
    assert row.related_id == post.id

    own = notifications.notify_comment(db_session, post.id, employee.employee_id, feed=recording_feed)
    assert own.empty


def test_system_notification_defaults_to_everyone(db_session, employee, other_employee, recording_feed) -> None:
    make_employee(db_session, "X003", status="rejected")

    result = notifications.notify_system(
        db_session, "Downtime", "Tonight at 10pm", "high", feed=recording_feed
    )

    assert result.delivered == 2
    assert _notifications_for(db_session, employee.id)[0].priority == "high"


def test_keywords_are_normalised_and_idempotent(db_session, employee) -> None:
    first = notifications.add_keyword(db_session, employee.id, "  Salary ")
    again = notifications.add_keyword(db_session, employee.id, "salary")

    assert first.keyword == "salary"
    assert again.id == first.id
    assert [k.keyword for k in notifications.list_keywords(db_session, employee.id)] == ["salary"]
    with pytest.raises(ValueError):
        notifications.add_keyword(db_session, employee.id, "   ")

    assert notifications.remove_keyword(db_session, employee.id, first.id)
    assert not notifications.remove_keyword(db_session, employee.id, first.id)


def test_keyword_recipients_respect_settings_and_exclusions(db_session, employee, other_employee) -> None:
    third = make_employee(db_session, "E003")
    notifications.add_keyword(db_session, employee.id, "parking")
    notifications.add_keyword(db_session, other_employee.id, "parking")
    notifications.add_keyword(db_session, third.id, "parking")
    notifications.update_settings(db_session, third.id, keyword_alerts=False)

    matches = notifications.keyword_recipients(
        db_session, "New PARKING rules", exclude_user_ids=[employee.id]
    )
    assert matches == {"parking": [other_employee.id]}
    assert notifications.keyword_recipients(db_session, "nothing relevant") == {}


def test_settings_default_then_upsert(db_session, employee) -> None:
    defaults = notifications.get_settings(db_session, employee.id)
    assert defaults.push_notifications is True
    assert defaults.email_notifications is False

    updated = notifications.update_settings(db_session, employee.id, push_notifications=False)
    assert updated.push_notifications is False
    assert updated.keyword_alerts is True
    assert notifications.get_settings(db_session, employee.id).push_notifications is False

    with pytest.raises(ValueError):
        notifications.update_settings(db_session, employee.id, sms_alerts=True)


def test_read_queries_degrade_on_store_failure(caplog) -> None:
    db = MagicMock(spec=Session)
    db.execute.side_effect = OperationalError("SELECT", {}, Exception("db down"))

    assert notifications.list_for_user(db, 101) == []
    assert notifications.unread_count(db, 101) == 0
    assert db.rollback.call_count == 2
    assert "Counting unread notifications" in caplog.text


def test_mark_read_load_failure_returns_false(recording_feed) -> None:
    db = MagicMock(spec=Session)
    db.get.side_effect = OperationalError("SELECT", {}, Exception("db down"))

    assert notifications.mark_read(db, 7, user_id=101, feed=recording_feed) is False
    db.rollback.assert_called_once()
    recording_feed.publish.assert_not_called()


def test_mark_all_read_reports_query_failure(recording_feed) -> None:
    db = MagicMock(spec=Session)
    db.execute.side_effect = OperationalError("SELECT", {}, Exception("db down"))

    assert notifications.mark_all_read(db, 101, feed=recording_feed) is False
    recording_feed.publish.assert_not_called()
