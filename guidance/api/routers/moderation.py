"""Moderation log router (admin): latest entries plus per-type counts."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from guidance.api.dependencies import get_log_store
from guidance.api.schemas.moderation import (
    ModerationLogSchema,
    ModerationLogsResponse,
    ModerationStats,
)
from guidance.core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)
router = APIRouter(tags=["moderation"])

RECENT_LIMIT = 100


@router.get("/moderation-logs", response_model=ModerationLogsResponse)
async def list_moderation_logs(log_store=Depends(get_log_store)):
    try:
        rows = await log_store.list_recent(RECENT_LIMIT)
        stats = await log_store.stats()
    except Exception as exc:
        raise ExternalServiceError("Failed to fetch logs", http_status=500, cause=exc) from exc
    return ModerationLogsResponse(
        logs=[ModerationLogSchema(**row) for row in rows],
        stats=ModerationStats(
            total=stats.get("total", 0),
            abusive=stats.get("abusive", 0),
            spam=stats.get("spam", 0),
            off_topic=stats.get("offTopic", 0),
        ),
    )
