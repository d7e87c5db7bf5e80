"""Pydantic v2 schemas for the moderation log API."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ModerationLogSchema(BaseModel):
    id: str
    moderation_type: str
    user_question: str
    user_ip: str
    user_agent: str
    response_sent: str
    created_at: Optional[str] = None


class ModerationStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int = 0
    abusive: int = 0
    spam: int = 0
    off_topic: int = 0


class ModerationLogsResponse(BaseModel):
    logs: List[ModerationLogSchema]
    stats: ModerationStats
