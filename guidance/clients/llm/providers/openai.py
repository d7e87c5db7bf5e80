"""OpenAI-compatible chat completions provider + registry builder."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from guidance.clients.llm.base import BaseLLMClient, LLMMessage

logger = logging.getLogger(__name__)


class OpenAILLMClient(BaseLLMClient):
    """Works against api.openai.com or any compatible endpoint via ``base_url``."""

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        *,
        api_key: str,
        base_url: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = 1024,
    ) -> None:
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        # No SDK retries; ResponseGenerator enforces the deadline.
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=0)

    @property
    def provider(self) -> str:
        return "openai"

    async def chat(self, messages: List[LLMMessage]) -> str:
        kwargs: Dict[str, Any] = {
            "model": self._model,
            "messages": list(messages),
            "temperature": self._temperature,
        }
        if self._max_tokens is not None:
            kwargs["max_tokens"] = self._max_tokens
        response = await self._client.chat.completions.create(**kwargs)
        if not response.choices:
            logger.warning("OpenAILLMClient: response had no choices (model=%s)", self._model)
            return ""
        return response.choices[0].message.content or ""


def openai_builder(config: Dict[str, Any]) -> OpenAILLMClient:
    return OpenAILLMClient(
        model=config.get("model", "gpt-4o-mini"),
        api_key=config["api_key"],
        base_url=config.get("base_url"),
        temperature=float(config.get("temperature", 0.7)),
        max_tokens=config.get("max_tokens"),
    )
