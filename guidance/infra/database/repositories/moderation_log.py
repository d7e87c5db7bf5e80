"""Repository for the append-only moderation log."""
from __future__ import annotations

from typing import ClassVar, Dict, List

from sqlalchemy import func, select

from guidance.infra.database.models.moderation_log import ModerationLog
from guidance.infra.database.repositories.base import BaseRepository
from guidance.pipeline.types import ModerationLogEntry


class ModerationLogRepository(BaseRepository[ModerationLog]):
    model: ClassVar[type] = ModerationLog

    async def append(self, entry: ModerationLogEntry) -> ModerationLog:
        return await self.create({
            "moderation_type": entry.moderation_type,
            "user_question": entry.question[: ModerationLogEntry.QUESTION_LIMIT],
            "user_ip": entry.client_ip,
            "user_agent": entry.user_agent[: ModerationLogEntry.USER_AGENT_LIMIT],
            "response_sent": entry.response_sent,
            "created_at": entry.timestamp,
        })

    async def list_recent(self, limit: int = 100) -> List[ModerationLog]:
        """Newest first."""
        stmt = select(ModerationLog).order_by(ModerationLog.created_at.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_by_type(self) -> Dict[str, int]:
        stmt = select(ModerationLog.moderation_type, func.count()).group_by(ModerationLog.moderation_type)
        result = await self.session.execute(stmt)
        return {row[0]: int(row[1]) for row in result.all()}
