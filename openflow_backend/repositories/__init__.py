"""Repository layer: Protocol interfaces + SQLAlchemy implementations."""

from .access_repo import BoardAccessRepository, SQLAlchemyBoardAccessRepository
from .board_repo import BoardRepository, SQLAlchemyBoardRepository
from .change_log_repo import ChangeLogRepository, SQLAlchemyChangeLogRepository
from .notification_repo import NotificationRepository, SQLAlchemyNotificationRepository
from .subscription_repo import SQLAlchemySubscriptionRepository, SubscriptionRepository
from .user_repo import SQLAlchemyUserRepository, UserRepository

__all__ = [
    "UserRepository", "SQLAlchemyUserRepository",
    "BoardRepository", "SQLAlchemyBoardRepository",
    "BoardAccessRepository", "SQLAlchemyBoardAccessRepository",
    "ChangeLogRepository", "SQLAlchemyChangeLogRepository",
    "SubscriptionRepository", "SQLAlchemySubscriptionRepository",
    "NotificationRepository", "SQLAlchemyNotificationRepository",
]
