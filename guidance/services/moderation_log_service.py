"""Moderation log stores: PostgreSQL-backed, or a logging no-op when no database is configured."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List

from guidance.infra.database.repositories.moderation_log import ModerationLogRepository
from guidance.pipeline.types import ModerationLogEntry

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)

STATS_KEYS = {"abusive": "abusive", "spam": "spam", "off-topic": "offTopic"}


class ModerationLogStore(ABC):
    @abstractmethod
    async def append(self, entry: ModerationLogEntry) -> None:
        """Persist one entry. Raises on store failure; callers decide whether to swallow."""

    @abstractmethod
    async def list_recent(self, limit: int = 100) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    async def count_by_type(self) -> Dict[str, int]:
        ...

    async def stats(self) -> Dict[str, int]:
        counts = await self.count_by_type()
        out = {"total": sum(counts.values())}
        for moderation_type, key in STATS_KEYS.items():
            out[key] = counts.get(moderation_type, 0)
        return out


class SqlModerationLogStore(ModerationLogStore):
    """One short transaction per call."""

    def __init__(self, session_factory: "async_sessionmaker[AsyncSession]") -> None:
        self._session_factory = session_factory

    async def append(self, entry: ModerationLogEntry) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                await ModerationLogRepository(session).append(entry)
        logger.info("[MODERATION LOGGED] type=%s ip=%s", entry.moderation_type, entry.client_ip)

    async def list_recent(self, limit: int = 100) -> List[Dict[str, Any]]:
        async with self._session_factory() as session:
            rows = await ModerationLogRepository(session).list_recent(limit)
        return [row.to_dict() for row in rows]

    async def count_by_type(self) -> Dict[str, int]:
        async with self._session_factory() as session:
            return await ModerationLogRepository(session).count_by_type()


class NoOpModerationLogStore(ModerationLogStore):
    """Used when DATABASE_URL is unset: entries go to the application log only."""

    async def append(self, entry: ModerationLogEntry) -> None:
        logger.info(
            "[MODERATION] type=%s ip=%s (no database configured, not persisted)",
            entry.moderation_type, entry.client_ip,
        )

    async def list_recent(self, limit: int = 100) -> List[Dict[str, Any]]:
        return []

    async def count_by_type(self) -> Dict[str, int]:
        return {}
