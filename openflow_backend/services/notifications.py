"""NotificationDispatcher: fan-out of entity changes plus the notification read side."""

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError

from ..core.enums import SUBSCRIBABLE_ENTITY_TYPES, EntityType, normalize_entity_id, normalize_entity_type
from ..core.exceptions import NotFoundError, UnauthorizedError
from ..core.logging import get_logger
from ..db.models import AlertSubscription
from ..db.types import GUID
from ..mail.gateway import MailGateway, MailResult
from ..repositories.notification_repo import NotificationRepository
from ..repositories.user_repo import UserRepository
from .schemas import NotificationView
from .subscriptions import SubscriptionRegistry

logger = get_logger(__name__)

NOTIFICATION_LIST_LIMIT = 50


@dataclass
class FanOutReport:
    """Per-subscriber outcome of one fan-out."""

    notified: list[str] = field(default_factory=list)
    emailed: list[str] = field(default_factory=list)
    skipped_actor: bool = False
    in_app_failures: dict[str, str] = field(default_factory=dict)
    email_failures: dict[str, str] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        return not self.in_app_failures and not self.email_failures


class NotificationDispatcher:
    def __init__(
        self,
        subscriptions: SubscriptionRegistry,
        notifications: NotificationRepository,
        users: UserRepository,
        mail: MailGateway,
    ):
        self._subscriptions = subscriptions
        self._notifications = notifications
        self._users = users
        self._mail = mail

    async def fan_out(
        self,
        entity_type: EntityType | str,
        entity_id: str,
        notification_type: str,
        message: str,
        actor_id: str | None,
    ) -> FanOutReport:
        """Notify every subscriber of an entity except the actor.

        A failure for one subscriber is logged and recorded in the report; it
        never raises, so the caller's mutation and audit entry stand and the
        remaining subscribers are still notified.
        """
        entity_type = normalize_entity_type(entity_type)
        entity_id = normalize_entity_id(entity_id)
        actor = GUID.canonical(actor_id) if actor_id is not None else None

        report = FanOutReport()
        if entity_type not in SUBSCRIBABLE_ENTITY_TYPES:
            # Audit-only types (COMMENT, CUSTOM_FIELD) never have subscribers.
            return report

        for sub in await self._subscriptions.subscribers(entity_type, entity_id):
            if sub.user_id == actor:
                report.skipped_actor = True
                continue

            if sub.in_app_enabled:
                await self._deliver_in_app(sub, notification_type, message, report)

            if sub.email_enabled:
                result = await self._deliver_email(sub, notification_type, message)
                if result.ok:
                    report.emailed.append(sub.user_id)
                else:
                    report.email_failures[sub.user_id] = result.detail

        logger.info(
            f"Fan-out {notification_type} for {entity_type} #{entity_id}",
            data={
                "actor_id": actor_id,
                "notified": len(report.notified),
                "emailed": len(report.emailed),
                "in_app_failures": len(report.in_app_failures),
                "email_failures": len(report.email_failures),
            },
        )
        return report

    async def _deliver_in_app(
        self,
        sub: AlertSubscription,
        notification_type: str,
        message: str,
        report: FanOutReport,
    ) -> None:
        try:
            await self._notifications.create(
                user_id=sub.user_id,
                type=notification_type,
                message=message,
                reference_type=sub.entity_type,
                reference_id=sub.entity_id,
            )
        except SQLAlchemyError as exc:
            logger.error(
                f"Failed to create notification for user {sub.user_id}",
                data={"type": notification_type, "error": f"{type(exc).__name__}: {exc}"},
            )
            report.in_app_failures[sub.user_id] = type(exc).__name__
            return
        logger.info(f"Created notification for user {sub.user_id}: {notification_type} - {message}")
        report.notified.append(sub.user_id)

    async def _deliver_email(self, sub: AlertSubscription, notification_type: str, message: str) -> MailResult:
        user = await self._users.get_by_id(sub.user_id)
        if user is None or not user.email:
            logger.warning(f"No email address for user {sub.user_id}; skipping email notification")
            return MailResult.failed("no email address")

        try:
            result = await self._mail.send_notification(
                user.email, notification_type, message, sub.entity_type, sub.entity_id
            )
        except Exception as exc:
            # Gateways report failures as results; anything raised is still contained here.
            result = MailResult.failed(f"{type(exc).__name__}: {exc}")

        if not result.ok:
            logger.error(
                f"Failed to send email notification to user {sub.user_id}",
                data={"to_email": user.email, "error": result.detail},
            )
        return result

    # ------------------------------------------------------------------ read side

    async def get_user_notifications(self, user_id: str, limit: int = NOTIFICATION_LIST_LIMIT) -> list[NotificationView]:
        rows = await self._notifications.list_for_user(GUID.canonical(user_id), limit=limit)
        return [NotificationView.model_validate(n) for n in rows]

    async def get_unread_notifications(self, user_id: str) -> list[NotificationView]:
        rows = await self._notifications.list_unread(GUID.canonical(user_id))
        return [NotificationView.model_validate(n) for n in rows]

    async def get_unread_count(self, user_id: str) -> int:
        return await self._notifications.count_unread(GUID.canonical(user_id))

    async def mark_as_read(self, notification_id: int, user_id: str) -> NotificationView:
        notification = await self._notifications.get_by_id(notification_id)
        if notification is None:
            raise NotFoundError("Notification not found", details={"notification_id": notification_id})
        if notification.user_id != GUID.canonical(user_id):
            raise UnauthorizedError("Unauthorized access to notification")
        if not notification.is_read:
            await self._notifications.mark_read(notification)
        return NotificationView.model_validate(notification)

    async def mark_all_as_read(self, user_id: str) -> int:
        updated = await self._notifications.mark_all_read(GUID.canonical(user_id))
        logger.info(f"Marked {updated} notifications read for user {user_id}")
        return updated
