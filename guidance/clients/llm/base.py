from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Literal, TypedDict


class LLMMessage(TypedDict):
    role: Literal["system", "user", "assistant"]
    content: str


class BaseLLMClient(ABC):
    """Chat-completion provider used by ResponseGenerator."""

    @property
    @abstractmethod
    def provider(self) -> str:
        ...

    @abstractmethod
    async def chat(self, messages: List[LLMMessage]) -> str:
        """Return the assistant text for *messages* (system message first).

        Raises on provider or transport failure; an empty string means the
        provider answered with no content.
        """
        ...
