"""
Logger configuration, built in code or from env.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Optional

_TRUTHY = ("1", "true", "yes")
_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclass(frozen=True)
class LoggerConfig:
    """
    Configuration for the guidance logger tree.

    Handlers are attached to ``root_name`` ("guidance"); every module logger
    obtained with ``logging.getLogger(__name__)`` inherits them.
    """

    level: str = "INFO"
    # Directory for the rotating JSON file; no file handler when unset
    log_dir: Optional[str] = None
    log_file_basename: str = "guidance"
    max_bytes: int = 5 * 1024 * 1024
    backup_count: int = 5
    root_name: str = "guidance"
    console: bool = True
    # "plain" or "json"
    console_style: str = "plain"

    def __post_init__(self) -> None:
        if self.level.upper() not in _LEVELS:
            raise ValueError(f"level must be one of {sorted(_LEVELS)}, got {self.level!r}")
        if self.console_style not in ("plain", "json"):
            raise ValueError(f"console_style must be 'plain' or 'json', got {self.console_style!r}")
        if self.max_bytes < 1 or self.backup_count < 0:
            raise ValueError("max_bytes must be positive and backup_count non-negative")

    @classmethod
    def from_env(cls) -> "LoggerConfig":
        """Build config from LOG_* environment variables."""
        return cls(
            level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            log_dir=os.environ.get("LOG_DIR") or None,
            log_file_basename=os.environ.get("LOG_FILE_BASENAME", "guidance"),
            max_bytes=int(os.environ.get("LOG_MAX_BYTES", str(5 * 1024 * 1024))),
            backup_count=int(os.environ.get("LOG_BACKUP_COUNT", "5")),
            console=os.environ.get("LOG_CONSOLE", "true").lower() in _TRUTHY,
            console_style=os.environ.get("LOG_CONSOLE_STYLE", "plain").lower(),
        )

    def with_overrides(self, **changes: object) -> "LoggerConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)
