"""FastAPI dependency providers and request helpers."""
from __future__ import annotations

import os
from typing import Optional

from fastapi import HTTPException, Request, status
from slowapi import Limiter

from guidance.pipeline.types import RequestContext

# Limit is configurable via CHAT_RATE_LIMIT (default 30/minute).
CHAT_RATE_LIMIT = os.environ.get("CHAT_RATE_LIMIT", "30/minute")


def get_client_ip(request: Request) -> str:
    """First x-forwarded-for hop, then x-real-ip, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or "unknown"
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client is not None and request.client.host:
        return request.client.host
    return "unknown"


limiter = Limiter(key_func=get_client_ip)


def build_request_context(
    request: Request,
    *,
    session_id: Optional[str] = None,
    user_name: Optional[str] = None,
    user_email: Optional[str] = None,
) -> RequestContext:
    first_name = None
    if user_name and user_name.strip():
        first_name = user_name.strip().split()[0]
    return RequestContext(
        session_id=session_id,
        client_ip=get_client_ip(request),
        user_agent=request.headers.get("user-agent") or "unknown",
        first_name=first_name,
        user_email=(user_email or "").strip() or None,
    )


def _from_state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{name} not initialised. Check server startup logs.",
        )
    return value


def get_orchestrator(request: Request):
    """The RequestOrchestrator built at startup."""
    return _from_state(request, "orchestrator")


def get_dispatcher(request: Request):
    return _from_state(request, "dispatcher")


def get_log_store(request: Request):
    return _from_state(request, "log_store")
