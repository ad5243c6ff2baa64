"""Read models returned by the core services."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from ..core.enums import AccessLevel

UNKNOWN_USER = "Unknown"
SYSTEM_ACTOR = "System"


class AccessGrantView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    board_id: str
    user_id: str
    username: str = UNKNOWN_USER
    access_level: AccessLevel
    granted_by: str
    granted_by_username: str = UNKNOWN_USER
    created_at: datetime


class ChangeLogView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    entity_type: str
    entity_id: str
    actor_id: str | None
    username: str
    action: str
    field_name: str | None = None
    old_value: str | None = None
    new_value: str | None = None
    created_at: datetime


class SubscriptionView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    entity_type: str
    entity_id: str
    email_enabled: bool
    in_app_enabled: bool
    is_subscribed: bool = True


class NotificationView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    type: str
    message: str | None
    reference_type: str | None
    reference_id: str | None
    is_read: bool
    created_at: datetime
