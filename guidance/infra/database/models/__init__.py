"""
guidance.infra.database.models – SQLAlchemy 2.0 ORM models.

Exports Base, mixins, and all model classes.
"""
from guidance.infra.database.models.base import Base, TimestampMixin, _uuid_pk
from guidance.infra.database.models.moderation_log import ModerationLog

__all__ = [
    "Base",
    "TimestampMixin",
    "_uuid_pk",
    "ModerationLog",
]
