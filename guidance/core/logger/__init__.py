"""
Guidance logger: console plus optional rotating JSON file.

Usage:
    from guidance.core.logger import configure, LoggerConfig

    configure()  # LOG_LEVEL, LOG_DIR, LOG_FILE_BASENAME, LOG_MAX_BYTES, ...
    configure(LoggerConfig(level="DEBUG", log_dir="/var/log/guidance"))

Modules keep using ``logging.getLogger(__name__)``; names under ``guidance.``
inherit the configured handlers.
"""
from guidance.core.logger.config import LoggerConfig
from guidance.core.logger.formatters import JsonFormatter, PlainConsoleFormatter
from guidance.core.logger.setup import (
    build_rotating_file_handler,
    configure,
    get_logger,
)

__all__ = [
    "LoggerConfig",
    "JsonFormatter",
    "PlainConsoleFormatter",
    "configure",
    "get_logger",
    "build_rotating_file_handler",
]
