"""ResponseGenerator: the one hard dependency of the pipeline."""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, List

from guidance.core.exceptions import GenerationError
from guidance.pipeline.canned import GENERATION_FALLBACK
from guidance.pipeline.types import GenerationRequest

if TYPE_CHECKING:
    from guidance.clients.llm.base import BaseLLMClient, LLMMessage

logger = logging.getLogger(__name__)


class ResponseGenerator:
    """Send the assembled request to the LLM within a timeout.

    Timeout and provider errors raise GenerationError; there is no degraded
    answer because the reply is the product.
    """

    def __init__(self, llm: "BaseLLMClient", *, timeout_seconds: float = 30.0) -> None:
        self._llm = llm
        self._timeout_seconds = timeout_seconds

    @property
    def provider(self) -> str:
        return self._llm.provider

    async def generate(self, request: GenerationRequest) -> str:
        messages: List["LLMMessage"] = [dict(m) for m in request.messages]  # type: ignore[misc]
        try:
            answer = await asyncio.wait_for(self._llm.chat(messages), timeout=self._timeout_seconds)
        except asyncio.TimeoutError as exc:
            logger.error("ResponseGenerator: LLM call timed out (%.0fs)", self._timeout_seconds)
            raise GenerationError(details={"reason": "timeout"}, cause=exc) from exc
        except Exception as exc:
            logger.error("ResponseGenerator: LLM call failed: %s", exc)
            raise GenerationError(details={"reason": type(exc).__name__}, cause=exc) from exc

        answer = (answer or "").strip()
        if not answer:
            logger.warning("ResponseGenerator: empty completion from %s", self._llm.provider)
            return GENERATION_FALLBACK
        return answer
