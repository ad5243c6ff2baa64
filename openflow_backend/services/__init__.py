"""Access control and change tracking services for the OpenFlow board core."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from ..mail.gateway import MailGateway
from ..repositories import (
    SQLAlchemyBoardAccessRepository,
    SQLAlchemyBoardRepository,
    SQLAlchemyChangeLogRepository,
    SQLAlchemyNotificationRepository,
    SQLAlchemySubscriptionRepository,
    SQLAlchemyUserRepository,
)
from .access_grants import AccessGrantManager
from .access_resolver import AccessResolver
from .change_audit import ChangeAuditLog
from .notifications import FanOutReport, NotificationDispatcher
from .subscriptions import SubscriptionRegistry


@dataclass(frozen=True)
class CoreServices:
    resolver: AccessResolver
    grants: AccessGrantManager
    audit: ChangeAuditLog
    subscriptions: SubscriptionRegistry
    notifications: NotificationDispatcher


def build_core(session: AsyncSession, mail_gateway: MailGateway) -> CoreServices:
    """Wire every service onto one session so a write path commits as a unit."""
    users = SQLAlchemyUserRepository(session)
    boards = SQLAlchemyBoardRepository(session)
    grants = SQLAlchemyBoardAccessRepository(session)
    resolver = AccessResolver(boards, grants)
    audit = ChangeAuditLog(SQLAlchemyChangeLogRepository(session), users)
    subscriptions = SubscriptionRegistry(SQLAlchemySubscriptionRepository(session), users)
    return CoreServices(
        resolver=resolver,
        grants=AccessGrantManager(resolver, boards, grants, users, audit),
        audit=audit,
        subscriptions=subscriptions,
        notifications=NotificationDispatcher(
            subscriptions, SQLAlchemyNotificationRepository(session), users, mail_gateway
        ),
    )


__all__ = [
    "AccessGrantManager",
    "AccessResolver",
    "ChangeAuditLog",
    "CoreServices",
    "FanOutReport",
    "NotificationDispatcher",
    "SubscriptionRegistry",
    "build_core",
]
