"""Notification inbox Protocol.

Implementations must assign monotonically increasing ids so that ordering by
id is ordering by creation within a user's inbox.
"""

from collections.abc import Iterable
from typing import Protocol

from src.cl_notification.domain.models import NotificationMessage, PendingNotification


class NotificationRepositoryProtocol(Protocol):
    async def add(self, pending: PendingNotification) -> NotificationMessage: ...

    async def list_for_user(
        self, user_id: int, unread_only: bool = False, limit: int | None = None
    ) -> list[NotificationMessage]: ...

    async def count_unread(self, user_id: int) -> int: ...

    async def mark_read(self, user_id: int, notification_id: int) -> bool: ...

    async def mark_all_read(self, user_id: int) -> int: ...

    async def delete(self, user_id: int, notification_id: int) -> bool: ...

    async def delete_all(self, user_id: int) -> int: ...


class NotificationSinkProtocol(Protocol):
    """What the ledger needs from the inbox: best-effort, fire-and-forget delivery."""

    async def dispatch(self, pending: Iterable[PendingNotification]) -> list[int]: ...
