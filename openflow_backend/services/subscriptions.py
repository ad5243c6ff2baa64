"""SubscriptionRegistry: per-user, per-entity alert preferences."""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..core.enums import EntityType, normalize_entity_id, normalize_subscribable_type
from ..core.exceptions import NotFoundError
from ..core.logging import get_logger
from ..db.models import AlertSubscription
from ..db.types import GUID
from ..repositories.subscription_repo import SubscriptionRepository
from ..repositories.user_repo import UserRepository
from .schemas import SubscriptionView

logger = get_logger(__name__)


class SubscriptionRegistry:
    def __init__(self, subscriptions: SubscriptionRepository, users: UserRepository):
        self._subscriptions = subscriptions
        self._users = users

    async def subscribe(
        self,
        user_id: str,
        entity_type: EntityType | str,
        entity_id: str,
        email_enabled: bool | None = None,
        in_app_enabled: bool | None = None,
    ) -> SubscriptionView:
        """Create or update a subscription.

        An existing row only takes the preferences that are not None; a new row
        defaults both channels to enabled.
        """
        entity_type = normalize_subscribable_type(entity_type)
        entity_id = normalize_entity_id(entity_id)
        user = await self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found", details={"user_id": user_id})

        existing = await self._subscriptions.get(user.id, entity_type, entity_id)
        if existing is not None:
            return await self._update_preferences(existing, email_enabled, in_app_enabled)

        try:
            subscription = await self._subscriptions.create(
                user.id,
                entity_type,
                entity_id,
                email_enabled=True if email_enabled is None else email_enabled,
                in_app_enabled=True if in_app_enabled is None else in_app_enabled,
            )
        except IntegrityError:
            # Lost a race with a concurrent subscribe; update the row that won.
            existing = await self._subscriptions.get(user.id, entity_type, entity_id)
            if existing is None:
                raise
            return await self._update_preferences(existing, email_enabled, in_app_enabled)
        logger.info(f"User {user.id} subscribed to {entity_type} #{entity_id}")
        return _view(subscription)

    async def unsubscribe(self, user_id: str, entity_type: EntityType | str, entity_id: str) -> bool:
        """Delete the subscription if present; returns whether a row was removed."""
        entity_type = normalize_subscribable_type(entity_type)
        entity_id = normalize_entity_id(entity_id)
        removed = await self._subscriptions.delete(GUID.canonical(user_id), entity_type, entity_id)
        logger.info(
            f"User {user_id} unsubscribed from {entity_type} #{entity_id}",
            data={"removed": removed},
        )
        return removed

    async def is_subscribed(self, user_id: str, entity_type: EntityType | str, entity_id: str) -> bool:
        return await self._find(user_id, entity_type, entity_id) is not None

    async def get(self, user_id: str, entity_type: EntityType | str, entity_id: str) -> SubscriptionView | None:
        subscription = await self._find(user_id, entity_type, entity_id)
        return _view(subscription) if subscription is not None else None

    async def list_for_user(self, user_id: str) -> list[SubscriptionView]:
        return [_view(s) for s in await self._subscriptions.list_for_user(GUID.canonical(user_id))]

    async def subscribers(self, entity_type: EntityType | str, entity_id: str) -> list[AlertSubscription]:
        return await self._subscriptions.list_for_entity(
            normalize_subscribable_type(entity_type), normalize_entity_id(entity_id)
        )

    async def remove_all_for_entity(self, entity_type: EntityType | str, entity_id: str) -> int:
        """Drop every subscription to an entity that its owning service deleted."""
        entity_type = normalize_subscribable_type(entity_type)
        entity_id = normalize_entity_id(entity_id)
        removed = await self._subscriptions.delete_for_entity(entity_type, entity_id)
        logger.info(f"Removed {removed} subscriptions to {entity_type} #{entity_id}")
        return removed

    async def _update_preferences(
        self,
        subscription: AlertSubscription,
        email_enabled: bool | None,
        in_app_enabled: bool | None,
    ) -> SubscriptionView:
        if email_enabled is not None:
            subscription.email_enabled = email_enabled
        if in_app_enabled is not None:
            subscription.in_app_enabled = in_app_enabled
        await self._subscriptions.save(subscription)
        logger.info(
            f"User {subscription.user_id} updated subscription to {subscription.entity_type} #{subscription.entity_id}",
            data={"email_enabled": subscription.email_enabled, "in_app_enabled": subscription.in_app_enabled},
        )
        return _view(subscription)

    async def _find(self, user_id: str, entity_type: EntityType | str, entity_id: str) -> AlertSubscription | None:
        return await self._subscriptions.get(
            GUID.canonical(user_id), normalize_subscribable_type(entity_type), normalize_entity_id(entity_id)
        )


def _view(subscription: AlertSubscription) -> SubscriptionView:
    return SubscriptionView.model_validate(subscription)
