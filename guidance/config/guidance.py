"""
guidance.config.guidance – delivery targets, collaborator endpoints and timeouts.

Env vars: PASTOR_EMAIL, ADMIN_EMAIL, PUBLIC_BASE_URL, SERMON_SEARCH_URL,
RETRIEVAL_LIMIT, RETRIEVAL_THRESHOLD, RETRIEVAL_TIMEOUT_SECONDS,
GENERATION_TIMEOUT_SECONDS, MAX_HISTORY_TURNS, OPENAI_API_KEY, LLM_BASE_URL,
LLM_MODEL, RESEND_API_KEY, EMAIL_FROM.

None of these affect classification; they only choose where requests and
alerts go and how long the pipeline waits for them.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from guidance.core.exceptions import ConfigurationError

DEFAULT_ALERT_RECIPIENT = "pastoral-alerts@thebusychristian.com"
DEFAULT_EMAIL_FROM = "Pastoral Guidance <alerts@thebusychristian.com>"


def _optional(name: str) -> Optional[str]:
    value = (os.environ.get(name) or "").strip()
    return value or None


def _check_http_url(value: Optional[str], name: str) -> None:
    if value is not None and not value.startswith(("http://", "https://")):
        raise ConfigurationError(f"{name} must start with http:// or https://, got {value!r}")


@dataclass(frozen=True)
class GuidanceConfig:
    alert_recipient: str = DEFAULT_ALERT_RECIPIENT
    """Where escalation emails go (PASTOR_EMAIL, then ADMIN_EMAIL, then the fixed fallback)."""

    public_base_url: str = "http://localhost:3000"
    """Used to build links inside notification emails."""

    sermon_search_url: Optional[str] = None
    """Full URL of the sermon search endpoint. None disables retrieval."""

    retrieval_limit: int = 3
    retrieval_threshold: float = 0.75
    retrieval_timeout_seconds: float = 10.0

    generation_timeout_seconds: float = 30.0
    max_history_turns: int = 20
    """Most recent history turns forwarded to the model. Alerts always carry the full history."""

    llm_model: str = "gpt-4o-mini"
    llm_api_key: Optional[str] = None
    llm_base_url: Optional[str] = None
    llm_temperature: float = 0.7
    llm_max_tokens: int = 1024

    resend_api_key: Optional[str] = None
    email_from: str = DEFAULT_EMAIL_FROM

    def __post_init__(self) -> None:
        if "@" not in self.alert_recipient:
            raise ConfigurationError(f"alert recipient is not an email address: {self.alert_recipient!r}")
        _check_http_url(self.public_base_url, "PUBLIC_BASE_URL")
        _check_http_url(self.sermon_search_url, "SERMON_SEARCH_URL")
        if self.retrieval_limit < 1:
            raise ConfigurationError(f"retrieval_limit must be >= 1, got {self.retrieval_limit}")
        if not 0.0 <= self.retrieval_threshold <= 1.0:
            raise ConfigurationError(
                f"retrieval_threshold must be within [0, 1], got {self.retrieval_threshold}"
            )
        if self.retrieval_timeout_seconds <= 0 or self.generation_timeout_seconds <= 0:
            raise ConfigurationError("timeouts must be positive")
        if self.max_history_turns < 0:
            raise ConfigurationError(f"max_history_turns must be >= 0, got {self.max_history_turns}")

    @property
    def retrieval_enabled(self) -> bool:
        return self.sermon_search_url is not None

    @classmethod
    def from_env(cls, **overrides: object) -> "GuidanceConfig":
        """Keyword overrides take precedence over env."""
        values: dict[str, object] = {
            "alert_recipient": _optional("PASTOR_EMAIL") or _optional("ADMIN_EMAIL") or DEFAULT_ALERT_RECIPIENT,
            "public_base_url": (_optional("PUBLIC_BASE_URL") or "http://localhost:3000").rstrip("/"),
            "sermon_search_url": _optional("SERMON_SEARCH_URL"),
            "retrieval_limit": int(os.environ.get("RETRIEVAL_LIMIT", "3")),
            "retrieval_threshold": float(os.environ.get("RETRIEVAL_THRESHOLD", "0.75")),
            "retrieval_timeout_seconds": float(os.environ.get("RETRIEVAL_TIMEOUT_SECONDS", "10")),
            "generation_timeout_seconds": float(os.environ.get("GENERATION_TIMEOUT_SECONDS", "30")),
            "max_history_turns": int(os.environ.get("MAX_HISTORY_TURNS", "20")),
            "llm_model": _optional("LLM_MODEL") or "gpt-4o-mini",
            "llm_api_key": _optional("OPENAI_API_KEY"),
            "llm_base_url": _optional("LLM_BASE_URL"),
            "resend_api_key": _optional("RESEND_API_KEY"),
            "email_from": _optional("EMAIL_FROM") or DEFAULT_EMAIL_FROM,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)  # type: ignore[arg-type]


def load_guidance_config(**overrides: object) -> GuidanceConfig:
    return GuidanceConfig.from_env(**overrides)
