"""Persistence layer: ORM models, engine and session factory."""

from .models import AlertSubscription, Base, Board, BoardAccess, ChangeLogEntry, Notification, User
from .session import make_engine, make_session_factory
from .types import GUID

__all__ = [
    "AlertSubscription",
    "Base",
    "Board",
    "BoardAccess",
    "ChangeLogEntry",
    "GUID",
    "Notification",
    "User",
    "make_engine",
    "make_session_factory",
]
