"""In-app notification repository."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.models import Notification


@runtime_checkable
class NotificationRepository(Protocol):
    async def create(self, user_id: str, type: str, message: str | None,
                     reference_type: str | None, reference_id: str | None) -> Notification: ...
    async def get_by_id(self, id: int) -> Notification | None: ...
    async def list_for_user(self, user_id: str, limit: int = 50) -> list[Notification]: ...
    async def list_unread(self, user_id: str) -> list[Notification]: ...
    async def count_unread(self, user_id: str) -> int: ...
    async def mark_read(self, notification: Notification) -> Notification: ...
    async def mark_all_read(self, user_id: str) -> int: ...


class SQLAlchemyNotificationRepository:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(
        self,
        user_id: str,
        type: str,
        message: str | None,
        reference_type: str | None,
        reference_id: str | None,
    ) -> Notification:
        """Insert inside a SAVEPOINT so a failed row leaves the caller's transaction usable."""
        notification = Notification(
            user_id=user_id,
            type=type,
            message=message,
            reference_type=reference_type,
            reference_id=reference_id,
            is_read=False,
        )
        async with self._session.begin_nested():
            self._session.add(notification)
            await self._session.flush()
        return notification

    async def get_by_id(self, id: int) -> Notification | None:
        return await self._session.get(Notification, id)

    async def list_for_user(self, user_id: str, limit: int = 50) -> list[Notification]:
        result = await self._session.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_unread(self, user_id: str) -> list[Notification]:
        result = await self._session.execute(
            select(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .order_by(Notification.created_at.desc(), Notification.id.desc())
        )
        return list(result.scalars().all())

    async def count_unread(self, user_id: str) -> int:
        result = await self._session.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id, Notification.is_read.is_(False)
            )
        )
        return result.scalar_one()

    async def mark_read(self, notification: Notification) -> Notification:
        notification.is_read = True
        await self._session.flush()
        return notification

    async def mark_all_read(self, user_id: str) -> int:
        result = await self._session.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount
