"""ModerationLog ORM model: one append-only row per moderated or escalated request."""
from __future__ import annotations

import uuid

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from guidance.infra.database.models.base import Base, TimestampMixin, _uuid_pk


class ModerationLog(Base, TimestampMixin):
    __tablename__ = "moderation_logs"
    __table_args__ = (
        Index("ix_moderation_logs_moderation_type", "moderation_type"),
        Index("ix_moderation_logs_created_at", "created_at"),
    )

    id: Mapped[uuid.UUID] = _uuid_pk()

    moderation_type: Mapped[str] = mapped_column(String(32), nullable=False)
    """abusive | spam | off-topic, or a notification type such as CRISIS."""

    user_question: Mapped[str] = mapped_column(Text, nullable=False)
    """Truncated to 500 characters before insert."""

    user_ip: Mapped[str] = mapped_column(String(64), nullable=False, server_default="unknown")
    user_agent: Mapped[str] = mapped_column(String(500), nullable=False, server_default="unknown")
    response_sent: Mapped[str] = mapped_column(Text, nullable=False, server_default="")

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "moderation_type": self.moderation_type,
            "user_question": self.user_question,
            "user_ip": self.user_ip,
            "user_agent": self.user_agent,
            "response_sent": self.response_sent,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
