"""SQLAlchemy ORM models, dual-dialect (Postgres/SQLite).

``users`` and ``boards`` belong to the user directory and the board service; the
core only reads them. The remaining four tables each have exactly one writer.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from ..core.enums import AccessLevel
from .types import GUID


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    pass


# ---------------------------------------------------------------------------
# 1. users (read-only here)
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(GUID(), primary_key=True, default=GUID.new)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    display_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    owned_boards: Mapped[list[Board]] = relationship(back_populates="owner")
    notifications: Mapped[list[Notification]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )


# ---------------------------------------------------------------------------
# 2. boards (read-only here)
# ---------------------------------------------------------------------------
class Board(Base):
    __tablename__ = "boards"

    id: Mapped[str] = mapped_column(GUID(), primary_key=True, default=GUID.new)
    owner_id: Mapped[str] = mapped_column(GUID(), ForeignKey("users.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_template: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    owner: Mapped[User] = relationship(back_populates="owned_boards")
    accesses: Mapped[list[BoardAccess]] = relationship(back_populates="board")


# ---------------------------------------------------------------------------
# 3. board_access (writer: AccessGrantManager)
# ---------------------------------------------------------------------------
class BoardAccess(Base):
    __tablename__ = "board_access"
    __table_args__ = (
        UniqueConstraint("board_id", "user_id", name="uq_board_access_board_user"),
    )

    id: Mapped[str] = mapped_column(GUID(), primary_key=True, default=GUID.new)
    board_id: Mapped[str] = mapped_column(GUID(), ForeignKey("boards.id"), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(GUID(), ForeignKey("users.id"), nullable=False, index=True)
    access_level: Mapped[AccessLevel] = mapped_column(
        Enum(AccessLevel, native_enum=False, length=10, validate_strings=True),
        nullable=False,
    )
    granted_by: Mapped[str] = mapped_column(GUID(), ForeignKey("users.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    board: Mapped[Board] = relationship(back_populates="accesses")


# ---------------------------------------------------------------------------
# 4. change_log (writer: ChangeAuditLog; append-only)
# ---------------------------------------------------------------------------
class ChangeLogEntry(Base):
    __tablename__ = "change_log"
    __table_args__ = (
        Index("ix_change_log_entity_created", "entity_type", "entity_id", "created_at"),
        Index("ix_change_log_actor_created", "actor_id", "created_at"),
    )

    # Integer key: insertion order breaks created_at ties.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entity_type: Mapped[str] = mapped_column(String(20), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False)
    # No FK: history outlives the actor's account.
    actor_id: Mapped[str | None] = mapped_column(GUID(), nullable=True)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    field_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    old_value: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    new_value: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


# ---------------------------------------------------------------------------
# 5. alert_subscriptions (writer: SubscriptionRegistry)
# ---------------------------------------------------------------------------
class AlertSubscription(Base):
    __tablename__ = "alert_subscriptions"
    __table_args__ = (
        UniqueConstraint("user_id", "entity_type", "entity_id", name="uq_alert_subscriptions_user_entity"),
        Index("ix_alert_subscriptions_entity", "entity_type", "entity_id"),
    )

    id: Mapped[str] = mapped_column(GUID(), primary_key=True, default=GUID.new)
    user_id: Mapped[str] = mapped_column(GUID(), ForeignKey("users.id"), nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(String(20), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False)
    email_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    in_app_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


# ---------------------------------------------------------------------------
# 6. notifications (writer: NotificationDispatcher)
# ---------------------------------------------------------------------------
class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_user_unread", "user_id", "is_read", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(GUID(), ForeignKey("users.id"), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    message: Mapped[str | None] = mapped_column(String(500), nullable=True)
    reference_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    reference_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    user: Mapped[User] = relationship(back_populates="notifications")
