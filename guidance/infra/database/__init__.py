"""
guidance.infra.database – PostgreSQL async engine, session, models and repositories.

Public API
──────────
  build_engine, build_session_factory, ensure_database_exists, init_db, close_engine
  Base, ModerationLog (models)
  BaseRepository, ModerationLogRepository
"""
from guidance.infra.database.engine import (
    build_engine,
    build_session_factory,
    close_engine,
    ensure_database_exists,
    init_db,
)
from guidance.infra.database.models import Base, ModerationLog
from guidance.infra.database.repositories import BaseRepository, ModerationLogRepository

__all__ = [
    "build_engine",
    "build_session_factory",
    "ensure_database_exists",
    "init_db",
    "close_engine",
    "Base",
    "ModerationLog",
    "BaseRepository",
    "ModerationLogRepository",
]
