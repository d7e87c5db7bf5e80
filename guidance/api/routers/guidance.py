"""Pastoral guidance router: one request through the safety pipeline."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from guidance.api.dependencies import (
    CHAT_RATE_LIMIT,
    build_request_context,
    get_orchestrator,
    limiter,
)
from guidance.api.schemas.guidance import GuidanceRequest, GuidanceResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["guidance"])


@router.post("/pastoral-guidance", response_model=GuidanceResponse)
@limiter.limit(CHAT_RATE_LIMIT)
async def pastoral_guidance(
    request: Request,
    body: GuidanceRequest,
    orchestrator=Depends(get_orchestrator),
):
    context = build_request_context(
        request,
        session_id=body.session_id,
        user_name=body.user_name,
        user_email=body.user_email,
    )
    # GenerationError propagates to the ProjectError handler as a generic 500.
    result = await orchestrator.process(
        body.question,
        conversation_history=body.conversation_history,
        context=context,
    )
    return GuidanceResponse(
        answer=result.answer,
        is_crisis=result.is_crisis,
        is_serious=result.is_serious,
        is_mandatory_report=result.is_mandatory_report,
    )
