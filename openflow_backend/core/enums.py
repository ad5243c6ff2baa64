"""Access levels, entity types and change actions shared by the core services."""

from __future__ import annotations

import re
from enum import Enum

from .exceptions import ValidationFailureError


class AccessLevel(str, Enum):
    """Board permission levels; each level includes every level below it."""

    READ = "READ"
    WRITE = "WRITE"
    ADMIN = "ADMIN"

    @property
    def rank(self) -> int:
        return _LEVEL_RANK[self]

    def satisfies(self, required: AccessLevel) -> bool:
        return self.rank >= required.rank

    @classmethod
    def parse(cls, value: AccessLevel | str) -> AccessLevel:
        if isinstance(value, AccessLevel):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValidationFailureError(
                f"Invalid access level: {value!r}",
                details={"allowed": [level.value for level in cls]},
            ) from None


# Explicit ranks: comparisons never depend on declaration order or spelling.
_LEVEL_RANK = {
    AccessLevel.READ: 0,
    AccessLevel.WRITE: 1,
    AccessLevel.ADMIN: 2,
}

OWNER_LABEL = "OWNER"


class EntityType(str, Enum):
    TASK = "TASK"
    BOARD = "BOARD"
    STATUS = "STATUS"
    COMMENT = "COMMENT"
    CUSTOM_FIELD = "CUSTOM_FIELD"


SUBSCRIBABLE_ENTITY_TYPES = frozenset({EntityType.TASK.value, EntityType.BOARD.value, EntityType.STATUS.value})

_ENTITY_TYPE_PATTERN = re.compile(r"^[A-Z][A-Z0-9_]{0,19}$")


def normalize_entity_type(value: EntityType | str) -> str:
    """Upper-case an entity type and check it is a plain identifier."""
    if isinstance(value, EntityType):
        return value.value
    normalized = str(value or "").strip().upper()
    if not _ENTITY_TYPE_PATTERN.match(normalized):
        raise ValidationFailureError(f"Invalid entity type: {value!r}")
    return normalized


def normalize_subscribable_type(value: EntityType | str) -> str:
    normalized = normalize_entity_type(value)
    if normalized not in SUBSCRIBABLE_ENTITY_TYPES:
        raise ValidationFailureError(
            f"Entity type {normalized} does not accept subscriptions",
            details={"allowed": sorted(SUBSCRIBABLE_ENTITY_TYPES)},
        )
    return normalized


def normalize_entity_id(value: str | int) -> str:
    normalized = str(value).strip() if value is not None else ""
    if not normalized or len(normalized) > 64:
        raise ValidationFailureError(f"Invalid entity id: {value!r}")
    return normalized


class ChangeAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    MOVE = "MOVE"


class NotificationType:
    TASK_CREATED = "TASK_CREATED"
    TASK_UPDATED = "TASK_UPDATED"
    TASK_DELETED = "TASK_DELETED"
    TASK_MOVED = "TASK_MOVED"
    BOARD_UPDATED = "BOARD_UPDATED"
    STATUS_CREATED = "STATUS_CREATED"
    STATUS_UPDATED = "STATUS_UPDATED"
    STATUS_DELETED = "STATUS_DELETED"
