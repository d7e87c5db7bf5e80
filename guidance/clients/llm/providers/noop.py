"""No-op LLM client for deployments without OPENAI_API_KEY."""
from __future__ import annotations

from typing import Any, Dict, List

from guidance.clients.llm.base import BaseLLMClient, LLMMessage

NOOP_MESSAGE = (
    "The guidance assistant isn't connected to a language model yet. "
    "Please set OPENAI_API_KEY or contact the site administrator."
)


class NoOpLLMClient(BaseLLMClient):
    @property
    def provider(self) -> str:
        return "noop"

    async def chat(self, messages: List[LLMMessage]) -> str:
        return NOOP_MESSAGE


def noop_builder(config: Dict[str, Any]) -> NoOpLLMClient:
    return NoOpLLMClient()
