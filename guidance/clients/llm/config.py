from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from guidance.config.guidance import GuidanceConfig


@dataclass
class LLMConfig:
    """Settings handed to a provider builder."""

    model: str
    provider: str = "openai"
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    temperature: float = 0.7
    max_tokens: Optional[int] = 1024

    @classmethod
    def from_guidance(cls, config: "GuidanceConfig") -> "LLMConfig":
        """Selects the no-op provider when no API key is configured."""
        return cls(
            model=config.llm_model,
            provider="openai" if config.llm_api_key else "noop",
            api_key=config.llm_api_key,
            base_url=config.llm_base_url,
            temperature=config.llm_temperature,
            max_tokens=config.llm_max_tokens,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary, filtering out None values."""
        return {k: v for k, v in asdict(self).items() if v is not None}
