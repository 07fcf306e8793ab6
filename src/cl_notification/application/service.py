"""NotificationService: the per-user inbox and the ledger's notification sink.

`enqueue` is the sink contract. `dispatch` is what the ledger calls after its
locks are released: every failure is logged and swallowed, because a
committed balance change must never be undone by an inbox problem.
"""

import logging
from collections.abc import Iterable

from src.cl_common.errors import NotificationNotFoundError
from src.cl_notification.application.schemas import (
    BulkUpdateResponse,
    NotificationItem,
    NotificationListResponse,
    UnreadCountResponse,
)
from src.cl_notification.domain.models import NotificationMessage, PendingNotification
from src.cl_notification.domain.repository import NotificationRepositoryProtocol

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, repo: NotificationRepositoryProtocol) -> None:
        self._repo = repo

    async def enqueue(
        self,
        user_id: int,
        title: str,
        body: str,
        category: str,
        link: str | None = None,
    ) -> int:
        msg = await self._repo.add(
            PendingNotification(
                user_id=user_id,
                title=title,
                body=body,
                category=str(getattr(category, "value", category)),
                link=link,
            )
        )
        return msg.id

    async def dispatch(self, pending: Iterable[PendingNotification]) -> list[int]:
        """Best-effort delivery; returns the ids that were written."""
        delivered: list[int] = []
        for p in pending:
            try:
                delivered.append(
                    await self.enqueue(p.user_id, p.title, p.body, p.category, p.link)
                )
            except Exception:
                logger.exception(
                    "Failed to enqueue %s notification for user %s", p.category, p.user_id
                )
        return delivered

    async def list_for_user(
        self, user_id: int, unread_only: bool = False, limit: int | None = None
    ) -> NotificationListResponse:
        messages: list[NotificationMessage] = await self._repo.list_for_user(
            user_id, unread_only=unread_only, limit=limit
        )
        return NotificationListResponse(
            items=[NotificationItem.from_message(m) for m in messages],
            unread_count=await self._repo.count_unread(user_id),
        )

    async def unread_count(self, user_id: int) -> UnreadCountResponse:
        return UnreadCountResponse(unread_count=await self._repo.count_unread(user_id))

    async def mark_read(self, user_id: int, notification_id: int) -> None:
        if not await self._repo.mark_read(user_id, notification_id):
            raise NotificationNotFoundError(notification_id)

    async def mark_all_read(self, user_id: int) -> BulkUpdateResponse:
        return BulkUpdateResponse(affected=await self._repo.mark_all_read(user_id))

    async def dismiss(self, user_id: int, notification_id: int) -> None:
        if not await self._repo.delete(user_id, notification_id):
            raise NotificationNotFoundError(notification_id)

    async def dismiss_all(self, user_id: int) -> BulkUpdateResponse:
        return BulkUpdateResponse(affected=await self._repo.delete_all(user_id))
