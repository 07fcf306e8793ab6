"""Unit tests for NotificationService on the in-memory inbox."""

from unittest.mock import AsyncMock

import pytest

from src.cl_common.enums import NotificationCategory
from src.cl_common.errors import NotificationNotFoundError
from src.cl_notification.application.service import NotificationService
from src.cl_notification.domain.models import PendingNotification
from src.cl_notification.infrastructure.memory_store import MemoryNotificationRepository


@pytest.fixture
def service() -> NotificationService:
    return NotificationService(MemoryNotificationRepository())


def _pending(user_id: int, title: str = "Low credit balance") -> PendingNotification:
    return PendingNotification(
        user_id=user_id,
        title=title,
        body="body",
        category=NotificationCategory.CREDIT_ALERT.value,
        link="/billing",
    )


class TestEnqueue:
    async def test_enqueue_accepts_enum_category(self, service) -> None:
        nid = await service.enqueue(2, "t", "b", NotificationCategory.CREDIT_PURCHASE)
        listing = await service.list_for_user(2)
        assert listing.items[0].id == nid
        assert listing.items[0].category == "credit_purchase"
        assert listing.items[0].read is False

    async def test_dispatch_returns_delivered_ids(self, service) -> None:
        ids = await service.dispatch([_pending(2), _pending(1)])
        assert len(ids) == 2
        assert (await service.unread_count(2)).unread_count == 1

    async def test_dispatch_survives_repository_failure(self) -> None:
        repo = AsyncMock()
        repo.add.side_effect = [RuntimeError("db down"), AsyncMock(id=5)]
        service = NotificationService(repo)

        ids = await service.dispatch([_pending(2), _pending(1)])

        assert ids == [5]
        assert repo.add.await_count == 2


class TestInbox:
    async def test_newest_first_with_unread_count(self, service) -> None:
        await service.dispatch([_pending(2, "first"), _pending(2, "second")])
        listing = await service.list_for_user(2)
        assert [i.title for i in listing.items] == ["second", "first"]
        assert listing.unread_count == 2

    async def test_mark_read_and_unread_filter(self, service) -> None:
        first, _ = await service.dispatch([_pending(2, "first"), _pending(2, "second")])
        await service.mark_read(2, first)
        unread = await service.list_for_user(2, unread_only=True)
        assert [i.title for i in unread.items] == ["second"]
        assert unread.unread_count == 1

    async def test_mark_read_of_someone_elses_message(self, service) -> None:
        (nid,) = await service.dispatch([_pending(1)])
        with pytest.raises(NotificationNotFoundError):
            await service.mark_read(2, nid)

    async def test_mark_all_read(self, service) -> None:
        await service.dispatch([_pending(2), _pending(2), _pending(1)])
        assert (await service.mark_all_read(2)).affected == 2
        assert (await service.mark_all_read(2)).affected == 0
        assert (await service.unread_count(1)).unread_count == 1

    async def test_dismiss(self, service) -> None:
        (nid,) = await service.dispatch([_pending(2)])
        await service.dismiss(2, nid)
        assert (await service.list_for_user(2)).items == []
        with pytest.raises(NotificationNotFoundError):
            await service.dismiss(2, nid)

    async def test_dismiss_all_only_touches_owner(self, service) -> None:
        await service.dispatch([_pending(2), _pending(2), _pending(1)])
        assert (await service.dismiss_all(2)).affected == 2
        assert len((await service.list_for_user(1)).items) == 1

    async def test_limit(self, service) -> None:
        await service.dispatch([_pending(2, str(i)) for i in range(5)])
        listing = await service.list_for_user(2, limit=2)
        assert [i.title for i in listing.items] == ["4", "3"]
        assert listing.unread_count == 5
