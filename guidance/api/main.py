"""Pastoral guidance FastAPI application: entry point.

Start with:
    uvicorn guidance.api.main:app --reload --host 0.0.0.0 --port 8000

Every collaborator degrades to a local stand-in when unconfigured:
no OPENAI_API_KEY -> no-op LLM, no RESEND_API_KEY -> logging email client,
no DATABASE_URL -> logging moderation store, no SERMON_SEARCH_URL -> no retrieval.
"""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

import asyncpg
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from guidance.api.dependencies import limiter
from guidance.api.errors import register_exception_handlers
from guidance.clients.email import build_email_client
from guidance.clients.llm import LLMConfig, default_registry
from guidance.config import GuidanceConfig, load_guidance_config, load_postgres_config
from guidance.core.exceptions import ConfigurationError, UnauthorizedError
from guidance.core.logger import configure as configure_logging
from guidance.infra.database.engine import (
    build_engine,
    build_session_factory,
    close_engine,
    ensure_database_exists,
    init_db,
)
from guidance.pipeline.generation import ResponseGenerator
from guidance.pipeline.orchestrator import RequestOrchestrator
from guidance.pipeline.prompts import PromptAssembler
from guidance.pipeline.retrieval import ContextRetriever
from guidance.services.moderation_log_service import (
    ModerationLogStore,
    NoOpModerationLogStore,
    SqlModerationLogStore,
)
from guidance.services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)


async def _build_log_store() -> tuple[ModerationLogStore, bool]:
    """SQL store when DATABASE_URL is usable; otherwise the logging no-op."""
    try:
        pg_config = load_postgres_config()
    except ConfigurationError as exc:
        logger.warning("API: moderation logs will not be persisted (%s)", exc)
        return NoOpModerationLogStore(), False
    try:
        await ensure_database_exists(pg_config)
        engine = build_engine(pg_config)
        await init_db(pg_config)
    except (OSError, SQLAlchemyError, asyncpg.PostgresError) as exc:
        logger.warning(
            "API: moderation log database unreachable, logs will not be persisted (%s)", exc, exc_info=True,
        )
        await close_engine()
        return NoOpModerationLogStore(), False
    return SqlModerationLogStore(build_session_factory(engine)), True


def build_orchestrator(config: GuidanceConfig, dispatcher: NotificationDispatcher) -> RequestOrchestrator:
    llm_config = LLMConfig.from_guidance(config)
    llm_client = default_registry.build(llm_config.provider, llm_config.to_dict())
    if llm_client.provider == "noop":
        logger.warning("API: OPENAI_API_KEY not set; replies come from the no-op LLM client")
    else:
        logger.info("API: using %s LLM (%s)", llm_client.provider, config.llm_model)

    retriever = None
    if config.retrieval_enabled:
        retriever = ContextRetriever(
            config.sermon_search_url,
            limit=config.retrieval_limit,
            threshold=config.retrieval_threshold,
            timeout_seconds=config.retrieval_timeout_seconds,
        )
    else:
        logger.info("API: SERMON_SEARCH_URL not set; retrieval disabled")

    return RequestOrchestrator(
        ResponseGenerator(llm_client, timeout_seconds=config.generation_timeout_seconds),
        dispatcher,
        retriever=retriever,
        assembler=PromptAssembler(max_history_turns=config.max_history_turns),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ── Startup ──────────────────────────────────────────────────
    configure_logging()
    config = load_guidance_config()
    app.state.config = config

    log_store, has_db = await _build_log_store()
    email_client = build_email_client(config)
    if email_client.provider == "noop":
        logger.warning("API: RESEND_API_KEY not set; alert emails will only be logged")

    dispatcher = NotificationDispatcher(
        email_client,
        log_store,
        recipient=config.alert_recipient,
        public_base_url=config.public_base_url,
    )
    app.state.log_store = log_store
    app.state.dispatcher = dispatcher
    app.state.orchestrator = build_orchestrator(config, dispatcher)
    logger.info("API: guidance pipeline ready (alerts -> %s)", config.alert_recipient)

    yield

    # ── Shutdown ─────────────────────────────────────────────────
    await dispatcher.drain()
    if has_db:
        await close_engine()
        logger.info("API: engine disposed")


app = FastAPI(
    title="Pastoral Guidance API",
    version="1.0.0",
    description="Safety pipeline for pastoral guidance chat: moderation, generation and escalation alerts.",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_exception_handlers(app)

# CORS: allow the Next.js dev server and any configured origin
_allowed_origins = os.environ.get(
    "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
).split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Optional API key authentication ──────────────────────────────
# Set ADMIN_API_KEY to protect the admin endpoints below.
# Requests must then include the header:  X-Api-Key: <value>
# If ADMIN_API_KEY is not set the check is skipped (dev/open mode).
_ADMIN_API_KEY = os.environ.get("ADMIN_API_KEY", "").strip() or None
_ADMIN_PATHS = ("/api/moderation-logs",)


@app.middleware("http")
async def api_key_middleware(request: Request, call_next):
    if _ADMIN_API_KEY and request.url.path.startswith(_ADMIN_PATHS):
        if request.headers.get("x-api-key") != _ADMIN_API_KEY:
            error = UnauthorizedError("Unauthorized: set X-Api-Key header")
            return JSONResponse(status_code=error.http_status, content=error.to_response())
    return await call_next(request)


# ── Routers ───────────────────────────────────────────────────────
from guidance.api.routers import guidance, mandatory_report, moderation  # noqa: E402

app.include_router(guidance.router, prefix="/api")
app.include_router(mandatory_report.router, prefix="/api")
app.include_router(moderation.router, prefix="/api")


@app.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}
