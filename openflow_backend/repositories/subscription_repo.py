"""Alert subscription repository."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.models import AlertSubscription
from ..db.types import GUID


@runtime_checkable
class SubscriptionRepository(Protocol):
    async def get(self, user_id: str, entity_type: str, entity_id: str) -> AlertSubscription | None: ...
    async def create(self, user_id: str, entity_type: str, entity_id: str,
                     email_enabled: bool, in_app_enabled: bool) -> AlertSubscription: ...
    async def save(self, subscription: AlertSubscription) -> AlertSubscription: ...
    async def delete(self, user_id: str, entity_type: str, entity_id: str) -> bool: ...
    async def delete_for_entity(self, entity_type: str, entity_id: str) -> int: ...
    async def list_for_entity(self, entity_type: str, entity_id: str) -> list[AlertSubscription]: ...
    async def list_for_user(self, user_id: str) -> list[AlertSubscription]: ...


class SQLAlchemySubscriptionRepository:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, user_id: str, entity_type: str, entity_id: str) -> AlertSubscription | None:
        result = await self._session.execute(
            select(AlertSubscription).where(
                AlertSubscription.user_id == user_id,
                AlertSubscription.entity_type == entity_type,
                AlertSubscription.entity_id == entity_id,
            )
        )
        return result.scalar_one_or_none()

    async def create(
        self,
        user_id: str,
        entity_type: str,
        entity_id: str,
        email_enabled: bool,
        in_app_enabled: bool,
    ) -> AlertSubscription:
        """Insert inside a SAVEPOINT so a concurrent duplicate can be recovered from."""
        subscription = AlertSubscription(
            id=GUID.new(),
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            email_enabled=email_enabled,
            in_app_enabled=in_app_enabled,
        )
        async with self._session.begin_nested():
            self._session.add(subscription)
            await self._session.flush()
        return subscription

    async def save(self, subscription: AlertSubscription) -> AlertSubscription:
        await self._session.flush()
        return subscription

    async def delete(self, user_id: str, entity_type: str, entity_id: str) -> bool:
        result = await self._session.execute(
            delete(AlertSubscription).where(
                AlertSubscription.user_id == user_id,
                AlertSubscription.entity_type == entity_type,
                AlertSubscription.entity_id == entity_id,
            )
        )
        return result.rowcount > 0

    async def delete_for_entity(self, entity_type: str, entity_id: str) -> int:
        result = await self._session.execute(
            delete(AlertSubscription).where(
                AlertSubscription.entity_type == entity_type,
                AlertSubscription.entity_id == entity_id,
            )
        )
        return result.rowcount

    async def list_for_entity(self, entity_type: str, entity_id: str) -> list[AlertSubscription]:
        result = await self._session.execute(
            select(AlertSubscription)
            .where(AlertSubscription.entity_type == entity_type, AlertSubscription.entity_id == entity_id)
            .order_by(AlertSubscription.created_at)
        )
        return list(result.scalars().all())

    async def list_for_user(self, user_id: str) -> list[AlertSubscription]:
        result = await self._session.execute(
            select(AlertSubscription)
            .where(AlertSubscription.user_id == user_id)
            .order_by(AlertSubscription.created_at)
        )
        return list(result.scalars().all())
