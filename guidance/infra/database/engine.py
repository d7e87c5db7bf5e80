"""
guidance.infra.database.engine – async engine and session factory for the moderation log.

One engine per process, built at startup from PostgresConfig and disposed on
shutdown. ensure_database_exists() creates the target database on first run
(it connects to the "postgres" maintenance database to do so).
"""
from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Optional
from urllib.parse import urlparse, urlunparse

import asyncpg
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

# Registers ModerationLog with Base.metadata before create_all()
import guidance.infra.database.models  # noqa: F401
from guidance.infra.database.models.base import Base

if TYPE_CHECKING:
    from guidance.config import PostgresConfig

logger = logging.getLogger(__name__)

_SAFE_DB_NAME = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

_engine: Optional[AsyncEngine] = None


def _maintenance_target(url: str) -> tuple[str, str]:
    """(target database name, plain asyncpg URL of the "postgres" database on the same server)."""
    parsed = urlparse(url)
    dbname = (parsed.path or "").strip("/") or "postgres"
    scheme = parsed.scheme.replace("+asyncpg", "")
    if scheme == "postgres":
        scheme = "postgresql"
    return dbname, urlunparse((scheme, parsed.netloc, "/postgres", "", parsed.query, ""))


async def ensure_database_exists(config: "PostgresConfig") -> None:
    dbname, maintenance_url = _maintenance_target(config.url)
    if dbname == "postgres":
        return
    if not _SAFE_DB_NAME.match(dbname):
        logger.warning("ensure_database_exists: not creating database with unsafe name %r", dbname)
        return
    try:
        conn = await asyncpg.connect(maintenance_url)
    except (OSError, asyncpg.PostgresError) as exc:
        logger.debug("ensure_database_exists: maintenance database unreachable (%s)", exc)
        return
    try:
        exists = await conn.fetchval("SELECT 1 FROM pg_database WHERE datname = $1", dbname)
        if exists is None:
            await conn.execute(f'CREATE DATABASE "{dbname}"')
            logger.info("Database created: %s", dbname)
    finally:
        await conn.close()


def build_engine(config: "PostgresConfig") -> AsyncEngine:
    """Create the process-wide engine; later calls return the same one."""
    global _engine
    if _engine is None:
        _engine = create_async_engine(
            config.async_url,
            echo=config.echo,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_timeout=config.pool_timeout,
            pool_recycle=config.pool_recycle,
            pool_pre_ping=True,
            connect_args={"server_settings": {"application_name": config.application_name}},
        )
        logger.info(
            "AsyncEngine created: pool_size=%d max_overflow=%d",
            config.pool_size, config.max_overflow,
        )
    return _engine


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


async def init_db(config: "PostgresConfig") -> None:
    """Create the moderation_logs table when it does not exist yet."""
    async with build_engine(config).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialised (moderation_logs)")


async def close_engine() -> None:
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        logger.info("AsyncEngine disposed")
