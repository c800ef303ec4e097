"""In-memory notification list reconciled against change-feed events.

A client loads its notifications once, then feeds every event received on
its subscription (or WebSocket) into :meth:`NotificationInbox.apply`. The
inbox keeps the list newest-first and the unread counter consistent with
what the server has committed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from bulletin_board.services.change_feed import ChangeEvent

logger = logging.getLogger(__name__)

NotificationRow = dict[str, Any]
Callback = Callable[[NotificationRow], None]


class NotificationInbox:
    """Client view of one employee's notifications.

    Args:
        on_alert: Called for each new unread notification when push
            delivery is enabled (OS-level notification).
        on_toast: Called for each new notification (transient in-page toast).
        push_enabled: Mirrors the employee's ``push_notifications`` setting.
    """

    def __init__(
        self,
        *,
        on_alert: Callback | None = None,
        on_toast: Callback | None = None,
        push_enabled: bool = True,
    ) -> None:
        self.notifications: list[NotificationRow] = []
        self.unread = 0
        self.push_enabled = push_enabled
        self._on_alert = on_alert
        self._on_toast = on_toast

    def load(self, notifications: Iterable[Mapping[str, Any]], unread: int | None = None) -> None:
        """Replace local state with a freshly fetched list."""
        self.notifications = [dict(item) for item in notifications]
        if unread is None:
            unread = sum(1 for item in self.notifications if not item.get("is_read"))
        self.unread = unread

    def _index_of(self, notification_id: Any) -> int | None:
        for index, item in enumerate(self.notifications):
            if item.get("id") == notification_id:
                return index
        return None

    def apply(self, event: ChangeEvent | Mapping[str, Any]) -> None:
        """Reconcile one INSERT or UPDATE event into local state."""
        if not isinstance(event, ChangeEvent):
            event = ChangeEvent.from_dict(dict(event))

        if event.event == "INSERT":
            self._on_insert(dict(event.new))
        elif event.event == "UPDATE":
            self._on_update(dict(event.new))
        else:
            logger.debug("Ignoring %s event on %s", event.event, event.table)

    def _on_insert(self, row: NotificationRow) -> None:
        if self._index_of(row.get("id")) is not None:
            # The same row can arrive again after a reconnect and reload.
            return
        self.notifications.insert(0, row)
        if row.get("is_read"):
            return
        self.unread += 1
        if self._on_toast is not None:
            self._on_toast(row)
        if self.push_enabled and self._on_alert is not None:
            self._on_alert(row)

    def _on_update(self, row: NotificationRow) -> None:
        index = self._index_of(row.get("id"))
        if index is None:
            return
        was_read = bool(self.notifications[index].get("is_read"))
        self.notifications[index] = row
        if not was_read and row.get("is_read"):
            self.unread = max(0, self.unread - 1)

    def mark_read_locally(self, notification_id: Any, read_at: str | None = None) -> bool:
        """Apply a successful mark-read round trip without waiting for the feed."""
        index = self._index_of(notification_id)
        if index is None:
            return False
        current = self.notifications[index]
        if current.get("is_read"):
            return False
        self._on_update({**current, "is_read": True, "read_at": read_at})
        return True
