"""ChangeAuditLog: append-only record of field-level changes to board entities."""

from __future__ import annotations

from enum import Enum
from typing import Any

from ..core.enums import ChangeAction, EntityType, normalize_entity_id, normalize_entity_type
from ..core.logging import get_logger
from ..db.models import ChangeLogEntry
from ..db.types import GUID
from ..repositories.change_log_repo import ChangeLogRepository
from ..repositories.user_repo import UserRepository
from .schemas import SYSTEM_ACTOR, UNKNOWN_USER, ChangeLogView

logger = get_logger(__name__)

HISTORY_LIMIT = 50
MOVE_FIELD = "location"


def stringify(value: Any) -> str | None:
    """Render a recorded value the way it is stored: None stays None, booleans lower-case."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        # AccessLevel and friends record their wire value, not "AccessLevel.READ".
        return str(value.value)
    return str(value)


def values_unchanged(old_value: str | None, new_value: str | None) -> bool:
    """True when a field change carries no information and must not be recorded."""
    return old_value == new_value


def _actor(actor_id: str | None) -> str | None:
    return GUID.canonical(actor_id) if actor_id is not None else None


class ChangeAuditLog:
    def __init__(self, entries: ChangeLogRepository, users: UserRepository):
        self._entries = entries
        self._users = users

    async def record_create(self, entity_type: EntityType | str, entity_id: str, actor_id: str | None) -> ChangeLogEntry:
        return await self._append(entity_type, entity_id, actor_id, ChangeAction.CREATE)

    async def record_delete(self, entity_type: EntityType | str, entity_id: str, actor_id: str | None) -> ChangeLogEntry:
        return await self._append(entity_type, entity_id, actor_id, ChangeAction.DELETE)

    async def record_field_change(
        self,
        entity_type: EntityType | str,
        entity_id: str,
        actor_id: str | None,
        field_name: str,
        old_value: Any,
        new_value: Any,
    ) -> ChangeLogEntry | None:
        old_str = stringify(old_value)
        new_str = stringify(new_value)
        if values_unchanged(old_str, new_str):
            return None
        return await self._append(
            entity_type, entity_id, actor_id, ChangeAction.UPDATE,
            field_name=field_name, old_value=old_str, new_value=new_str,
        )

    async def record_move(
        self,
        entity_type: EntityType | str,
        entity_id: str,
        actor_id: str | None,
        from_location: Any,
        to_location: Any,
    ) -> ChangeLogEntry:
        # A move is an explicit action, so it is recorded even when from == to.
        return await self._append(
            entity_type, entity_id, actor_id, ChangeAction.MOVE,
            field_name=MOVE_FIELD, old_value=stringify(from_location), new_value=stringify(to_location),
        )

    async def history(self, entity_type: EntityType | str, entity_id: str, limit: int = HISTORY_LIMIT) -> list[ChangeLogView]:
        """Most recent entries for one entity, newest first."""
        entries = await self._entries.list_for_entity(
            normalize_entity_type(entity_type), normalize_entity_id(entity_id), limit=limit
        )
        return await self._enrich(entries)

    async def activity(self, actor_id: str, limit: int = HISTORY_LIMIT) -> list[ChangeLogView]:
        """Most recent entries recorded for one actor, newest first."""
        entries = await self._entries.list_for_actor(GUID.canonical(actor_id), limit=limit)
        return await self._enrich(entries)

    async def _append(
        self,
        entity_type: EntityType | str,
        entity_id: str,
        actor_id: str | None,
        action: ChangeAction,
        field_name: str | None = None,
        old_value: str | None = None,
        new_value: str | None = None,
    ) -> ChangeLogEntry:
        entity_type = normalize_entity_type(entity_type)
        entity_id = normalize_entity_id(entity_id)
        entry = await self._entries.append(
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=_actor(actor_id),
            action=action.value,
            field_name=field_name,
            old_value=old_value,
            new_value=new_value,
        )
        logger.info(
            f"Logged {action.value}: {entity_type} #{entity_id}",
            data={
                "actor_id": actor_id,
                "field": field_name,
                "old_value": old_value,
                "new_value": new_value,
            },
        )
        return entry

    async def _enrich(self, entries: list[ChangeLogEntry]) -> list[ChangeLogView]:
        usernames = await self._users.get_usernames({e.actor_id for e in entries if e.actor_id})
        return [
            ChangeLogView(
                id=e.id,
                entity_type=e.entity_type,
                entity_id=e.entity_id,
                actor_id=e.actor_id,
                username=SYSTEM_ACTOR if e.actor_id is None else usernames.get(e.actor_id, UNKNOWN_USER),
                action=e.action,
                field_name=e.field_name,
                old_value=e.old_value,
                new_value=e.new_value,
                created_at=e.created_at,
            )
            for e in entries
        ]
