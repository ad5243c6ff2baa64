"""Append-only change log repository.

Entries are immutable: there is no update or delete method.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.models import ChangeLogEntry


@runtime_checkable
class ChangeLogRepository(Protocol):
    async def append(
        self,
        entity_type: str,
        entity_id: str,
        actor_id: str | None,
        action: str,
        field_name: str | None = None,
        old_value: str | None = None,
        new_value: str | None = None,
    ) -> ChangeLogEntry: ...
    async def list_for_entity(self, entity_type: str, entity_id: str, limit: int = 50) -> list[ChangeLogEntry]: ...
    async def list_for_actor(self, actor_id: str, limit: int = 50) -> list[ChangeLogEntry]: ...


class SQLAlchemyChangeLogRepository:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def append(
        self,
        entity_type: str,
        entity_id: str,
        actor_id: str | None,
        action: str,
        field_name: str | None = None,
        old_value: str | None = None,
        new_value: str | None = None,
    ) -> ChangeLogEntry:
        entry = ChangeLogEntry(
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor_id,
            action=action,
            field_name=field_name,
            old_value=old_value,
            new_value=new_value,
        )
        self._session.add(entry)
        await self._session.flush()
        return entry

    async def list_for_entity(self, entity_type: str, entity_id: str, limit: int = 50) -> list[ChangeLogEntry]:
        result = await self._session.execute(
            select(ChangeLogEntry)
            .where(ChangeLogEntry.entity_type == entity_type, ChangeLogEntry.entity_id == entity_id)
            .order_by(ChangeLogEntry.created_at.desc(), ChangeLogEntry.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_for_actor(self, actor_id: str, limit: int = 50) -> list[ChangeLogEntry]:
        result = await self._session.execute(
            select(ChangeLogEntry)
            .where(ChangeLogEntry.actor_id == actor_id)
            .order_by(ChangeLogEntry.created_at.desc(), ChangeLogEntry.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
