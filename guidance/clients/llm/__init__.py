"""
LLM clients for response generation.

    cfg = LLMConfig.from_guidance(config)
    client = default_registry.build(cfg.provider, cfg.to_dict())
"""
from guidance.clients.llm.base import BaseLLMClient, LLMMessage
from guidance.clients.llm.config import LLMConfig
from guidance.clients.llm.registry import LLMRegistry, default_registry

__all__ = [
    "BaseLLMClient",
    "LLMMessage",
    "LLMConfig",
    "LLMRegistry",
    "default_registry",
]
