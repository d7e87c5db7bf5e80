"""
guidance.config.postgres – PostgreSQL connection config for the moderation log store.

Env vars: DATABASE_URL, DB_POOL_SIZE, DB_MAX_OVERFLOW, DB_POOL_TIMEOUT, DB_POOL_RECYCLE, DB_ECHO.
"""
from __future__ import annotations

import os
from dataclasses import dataclass

from guidance.core.exceptions import ConfigurationError

_TRUTHY = ("1", "true", "yes")


def _validate_url(url: str) -> str:
    url = (url or "").strip()
    if not url:
        raise ConfigurationError("DATABASE_URL is not set; moderation logging needs PostgreSQL")
    if not url.startswith(("postgresql://", "postgres://", "postgresql+asyncpg://")):
        raise ConfigurationError(
            "DATABASE_URL must start with postgresql://, postgres:// or postgresql+asyncpg://"
        )
    return url


@dataclass(frozen=True)
class PostgresConfig:
    """
    Connection and pool settings. Validated on construction; build it with
    load_postgres_config() to read the environment.
    """

    url: str
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    echo: bool = False
    application_name: str = "pastoral-guidance"

    def __post_init__(self) -> None:
        _validate_url(self.url)
        for name in ("pool_size", "pool_timeout", "pool_recycle"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 1:
                raise ConfigurationError(f"{name} must be an integer >= 1, got {value!r}")
        if not isinstance(self.max_overflow, int) or self.max_overflow < 0:
            raise ConfigurationError(
                f"max_overflow must be a non-negative integer, got {self.max_overflow!r}"
            )

    @property
    def async_url(self) -> str:
        """The URL with the asyncpg driver selected."""
        for prefix in ("postgresql://", "postgres://"):
            if self.url.startswith(prefix):
                return self.url.replace(prefix, "postgresql+asyncpg://", 1)
        return self.url

    @classmethod
    def from_env(cls, **overrides: object) -> "PostgresConfig":
        """Overrides (keyword args) take precedence over env."""
        url = str(overrides.get("url") or os.environ.get("DATABASE_URL", "")).strip()

        def _int(attr: str, env: str, default: int) -> int:
            value = overrides.get(attr)
            return int(value if value is not None else os.environ.get(env, default))

        echo = overrides.get("echo")
        if echo is None:
            echo = os.environ.get("DB_ECHO", "").strip().lower() in _TRUTHY
        return cls(
            url=_validate_url(url),
            pool_size=_int("pool_size", "DB_POOL_SIZE", 5),
            max_overflow=_int("max_overflow", "DB_MAX_OVERFLOW", 10),
            pool_timeout=_int("pool_timeout", "DB_POOL_TIMEOUT", 30),
            pool_recycle=_int("pool_recycle", "DB_POOL_RECYCLE", 1800),
            echo=bool(echo),
        )


def load_postgres_config(**overrides: object) -> PostgresConfig:
    """Raises ConfigurationError when DATABASE_URL is missing or malformed."""
    return PostgresConfig.from_env(**overrides)
