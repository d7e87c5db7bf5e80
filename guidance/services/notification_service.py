"""NotificationDispatcher: best-effort alert emails and moderation log writes.

``dispatch`` and ``log`` schedule background tasks and return immediately.
Every failure inside those tasks is logged and dropped; nothing here can
delay or fail the reply the caller is about to send.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Coroutine, Optional, Set

from guidance.clients.email.base import EmailMessage
from guidance.pipeline.escalation import urgency_for
from guidance.pipeline.types import (
    EscalationEvent,
    ExternalCallResult,
    ModerationLogEntry,
    NotificationType,
    RequestContext,
)
from guidance.services.notification_templates import (
    render_escalation_email,
    render_mandatory_contact_email,
)

if TYPE_CHECKING:
    from guidance.clients.email.base import BaseEmailClient
    from guidance.services.moderation_log_service import ModerationLogStore

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    def __init__(
        self,
        email_client: "BaseEmailClient",
        log_store: "ModerationLogStore",
        *,
        recipient: str,
        public_base_url: str,
    ) -> None:
        self._email = email_client
        self._log_store = log_store
        self._recipient = recipient
        self._public_base_url = public_base_url.rstrip("/")
        self._pending: Set["asyncio.Task[Any]"] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    # ── Fire-and-forget entry points ─────────────────────────────

    def dispatch(self, event: EscalationEvent) -> None:
        """Send the alert email and write its log row in the background."""
        self._spawn(self.send_event(event), f"alert:{event.type.value}")
        self.log(
            ModerationLogEntry(
                moderation_type=event.type.value,
                question=event.question[: ModerationLogEntry.QUESTION_LIMIT],
                client_ip=event.client_ip,
                user_agent=event.user_agent[: ModerationLogEntry.USER_AGENT_LIMIT],
                response_sent=event.answer or "",
                timestamp=event.timestamp,
            )
        )

    def log(self, entry: ModerationLogEntry) -> None:
        self._spawn(self.write_log(entry), f"log:{entry.moderation_type}")

    async def drain(self) -> None:
        """Wait for every scheduled task. Used on shutdown and in tests."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ── Awaitable bodies (results instead of exceptions) ─────────

    async def send_event(self, event: EscalationEvent) -> ExternalCallResult[Optional[str]]:
        html = render_escalation_email(event, public_base_url=self._public_base_url)
        message = EmailMessage(
            to=[self._recipient],
            subject=event.subject,
            html=html,
            reply_to=event.user_email,
            tags=[event.type.value.lower()],
        )
        result = await self._send(message)
        if result.ok:
            logger.info("NotificationDispatcher: %s alert sent (session=%s)", event.type.value, event.session_id)
        else:
            logger.error(
                "NotificationDispatcher: %s alert NOT sent (session=%s): %s",
                event.type.value, event.session_id, result.error,
            )
        return result

    async def write_log(self, entry: ModerationLogEntry) -> ExternalCallResult[bool]:
        try:
            await self._log_store.append(entry)
        except Exception as exc:
            logger.warning(
                "NotificationDispatcher: failed to log moderation event %s: %s",
                entry.moderation_type, exc, exc_info=True,
            )
            return ExternalCallResult.failure(str(exc))
        return ExternalCallResult.success(True)

    async def send_mandatory_contact_report(
        self,
        *,
        session_id: str,
        full_name: str,
        age: str,
        phone: str,
        address: str,
        google_email: Optional[str],
        context: RequestContext,
    ) -> ExternalCallResult[Optional[str]]:
        """Contact details a minor submitted after a MINOR_ABUSE reply. Awaited by the caller."""
        urgency = urgency_for(NotificationType.MINOR_ABUSE)
        html = render_mandatory_contact_email(
            session_id=session_id,
            full_name=full_name,
            age=age,
            phone=phone,
            address=address,
            google_email=google_email,
            submitted_at=datetime.now(timezone.utc),
            color=urgency.color,
            subject=urgency.subject,
            public_base_url=self._public_base_url,
        )
        result = await self._send(
            EmailMessage(to=[self._recipient], subject=urgency.subject, html=html, tags=["mandatory_report"])
        )
        if not result.ok:
            logger.error("NotificationDispatcher: mandatory report email NOT sent (session=%s): %s", session_id, result.error)
        await self.write_log(
            ModerationLogEntry.build(
                "mandatory_report",
                f"Contact details submitted for session {session_id}",
                "Mandatory report email sent" if result.ok else "Mandatory report email failed",
                context,
            )
        )
        return result

    # ── Internals ────────────────────────────────────────────────

    async def _send(self, message: EmailMessage) -> ExternalCallResult[Optional[str]]:
        try:
            message_id = await self._email.send(message)
        except Exception as exc:
            return ExternalCallResult.failure(f"{type(exc).__name__}: {exc}")
        return ExternalCallResult.success(message_id)

    def _spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> None:
        task = asyncio.create_task(coro, name=name)
        self._pending.add(task)
        task.add_done_callback(lambda t: self._on_done(t, name))

    def _on_done(self, task: "asyncio.Task[Any]", name: str) -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.warning("NotificationDispatcher: task %s cancelled", name)
            return
        exc = task.exception()
        if exc is not None:
            logger.error("NotificationDispatcher: task %s failed: %s", name, exc, exc_info=exc)
