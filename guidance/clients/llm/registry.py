"""
LLM provider registry: provider name -> builder(config dict) -> client.
"""
from __future__ import annotations

from typing import Any, Callable, Dict

from guidance.clients.llm.base import BaseLLMClient

Builder = Callable[[Dict[str, Any]], BaseLLMClient]


class LLMRegistry:
    def __init__(self) -> None:
        self._builders: Dict[str, Builder] = {}

    def register(self, provider: str, builder: Builder) -> None:
        self._builders[provider] = builder

    @property
    def providers(self) -> list[str]:
        return sorted(self._builders)

    def build(self, provider: str, config: Dict[str, Any]) -> BaseLLMClient:
        """Raises KeyError for an unregistered provider."""
        builder = self._builders.get(provider)
        if builder is None:
            raise KeyError(f"Unknown LLM provider: {provider!r}. Registered: {self.providers}")
        return builder(config)


default_registry = LLMRegistry()

from guidance.clients.llm.providers.noop import noop_builder  # noqa: E402
from guidance.clients.llm.providers.openai import openai_builder  # noqa: E402

default_registry.register("openai", openai_builder)
default_registry.register("noop", noop_builder)
