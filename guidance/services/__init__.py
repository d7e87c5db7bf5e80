"""Service layer: alert dispatch, email rendering and moderation log stores."""
from guidance.services.moderation_log_service import (
    ModerationLogStore,
    NoOpModerationLogStore,
    SqlModerationLogStore,
)
from guidance.services.notification_service import NotificationDispatcher

__all__ = [
    "ModerationLogStore",
    "NoOpModerationLogStore",
    "SqlModerationLogStore",
    "NotificationDispatcher",
]
