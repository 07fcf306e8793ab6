"""MemoryNotificationRepository: in-process inbox store."""

import itertools

from src.cl_common.datetime_utils import utc_now
from src.cl_notification.domain.models import NotificationMessage, PendingNotification


class MemoryNotificationRepository:
    def __init__(self) -> None:
        self._messages: dict[int, NotificationMessage] = {}
        self._ids = itertools.count(1)

    async def add(self, pending: PendingNotification) -> NotificationMessage:
        msg = NotificationMessage(
            id=next(self._ids),
            user_id=pending.user_id,
            title=pending.title,
            body=pending.body,
            category=pending.category,
            link=pending.link,
            created_at=utc_now(),
        )
        self._messages[msg.id] = msg
        return msg

    def _owned(self, user_id: int) -> list[NotificationMessage]:
        return [m for m in self._messages.values() if m.user_id == user_id]

    async def list_for_user(
        self, user_id: int, unread_only: bool = False, limit: int | None = None
    ) -> list[NotificationMessage]:
        items = sorted(
            (m for m in self._owned(user_id) if not (unread_only and m.read)),
            key=lambda m: m.id,
            reverse=True,
        )
        return items[:limit] if limit is not None else items

    async def count_unread(self, user_id: int) -> int:
        return sum(1 for m in self._owned(user_id) if not m.read)

    async def mark_read(self, user_id: int, notification_id: int) -> bool:
        msg = self._messages.get(notification_id)
        if msg is None or msg.user_id != user_id:
            return False
        msg.read = True
        return True

    async def mark_all_read(self, user_id: int) -> int:
        changed = 0
        for m in self._owned(user_id):
            if not m.read:
                m.read = True
                changed += 1
        return changed

    async def delete(self, user_id: int, notification_id: int) -> bool:
        msg = self._messages.get(notification_id)
        if msg is None or msg.user_id != user_id:
            return False
        del self._messages[notification_id]
        return True

    async def delete_all(self, user_id: int) -> int:
        owned = self._owned(user_id)
        for m in owned:
            del self._messages[m.id]
        return len(owned)
