"""PostgresNotificationRepository: ORM-backed inbox store."""

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.cl_notification.domain.models import NotificationMessage, PendingNotification
from src.cl_notification.infrastructure.db_models import NotificationORM


def _orm_to_message(row: NotificationORM) -> NotificationMessage:
    return NotificationMessage(
        id=row.id,
        user_id=row.user_id,
        title=row.title,
        body=row.body,
        category=row.category,
        read=row.read,
        link=row.link,
        created_at=row.created_at,
    )


class PostgresNotificationRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def add(self, pending: PendingNotification) -> NotificationMessage:
        async with self._session_factory() as db:
            row = NotificationORM(
                user_id=pending.user_id,
                title=pending.title,
                body=pending.body,
                category=pending.category,
                read=False,
                link=pending.link,
            )
            db.add(row)
            await db.commit()
            await db.refresh(row)
            return _orm_to_message(row)

    async def list_for_user(
        self, user_id: int, unread_only: bool = False, limit: int | None = None
    ) -> list[NotificationMessage]:
        stmt = select(NotificationORM).where(NotificationORM.user_id == user_id)
        if unread_only:
            stmt = stmt.where(NotificationORM.read.is_(False))
        stmt = stmt.order_by(NotificationORM.id.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        async with self._session_factory() as db:
            rows = (await db.execute(stmt)).scalars().all()
        return [_orm_to_message(r) for r in rows]

    async def count_unread(self, user_id: int) -> int:
        stmt = select(func.count()).where(
            NotificationORM.user_id == user_id, NotificationORM.read.is_(False)
        )
        async with self._session_factory() as db:
            return int((await db.execute(stmt)).scalar_one())

    async def mark_read(self, user_id: int, notification_id: int) -> bool:
        stmt = (
            update(NotificationORM)
            .where(NotificationORM.id == notification_id, NotificationORM.user_id == user_id)
            .values(read=True)
        )
        async with self._session_factory() as db, db.begin():
            result = await db.execute(stmt)
        return bool(result.rowcount)  # type: ignore[attr-defined]

    async def mark_all_read(self, user_id: int) -> int:
        stmt = (
            update(NotificationORM)
            .where(NotificationORM.user_id == user_id, NotificationORM.read.is_(False))
            .values(read=True)
        )
        async with self._session_factory() as db, db.begin():
            result = await db.execute(stmt)
        return int(result.rowcount)  # type: ignore[attr-defined]

    async def delete(self, user_id: int, notification_id: int) -> bool:
        stmt = delete(NotificationORM).where(
            NotificationORM.id == notification_id, NotificationORM.user_id == user_id
        )
        async with self._session_factory() as db, db.begin():
            result = await db.execute(stmt)
        return bool(result.rowcount)  # type: ignore[attr-defined]

    async def delete_all(self, user_id: int) -> int:
        stmt = delete(NotificationORM).where(NotificationORM.user_id == user_id)
        async with self._session_factory() as db, db.begin():
            result = await db.execute(stmt)
        return int(result.rowcount)  # type: ignore[attr-defined]
