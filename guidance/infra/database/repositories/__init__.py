"""Repositories for the guidance database."""
from guidance.infra.database.repositories.base import BaseRepository
from guidance.infra.database.repositories.moderation_log import ModerationLogRepository

__all__ = [
    "BaseRepository",
    "ModerationLogRepository",
]
