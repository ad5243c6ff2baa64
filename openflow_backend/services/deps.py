"""FastAPI dependency factories for the board core services."""

from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..mail.gateway import MailGateway
from ..repositories.deps import get_session
from . import CoreServices, build_core
from .access_grants import AccessGrantManager
from .access_resolver import AccessResolver
from .change_audit import ChangeAuditLog
from .notifications import NotificationDispatcher
from .subscriptions import SubscriptionRegistry


def get_mail_gateway(request: Request) -> MailGateway:
    return request.app.state.mail_gateway


async def get_core(
    session: AsyncSession = Depends(get_session),
    mail_gateway: MailGateway = Depends(get_mail_gateway),
) -> CoreServices:
    return build_core(session, mail_gateway)


async def get_access_resolver(core: CoreServices = Depends(get_core)) -> AccessResolver:
    return core.resolver


async def get_access_grant_manager(core: CoreServices = Depends(get_core)) -> AccessGrantManager:
    return core.grants


async def get_change_audit_log(core: CoreServices = Depends(get_core)) -> ChangeAuditLog:
    return core.audit


async def get_subscription_registry(core: CoreServices = Depends(get_core)) -> SubscriptionRegistry:
    return core.subscriptions


async def get_notification_dispatcher(core: CoreServices = Depends(get_core)) -> NotificationDispatcher:
    return core.notifications
