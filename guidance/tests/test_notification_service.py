"""Unit tests for NotificationDispatcher, the moderation log stores and the email templates."""
from __future__ import annotations

import asyncio
import unittest
from datetime import datetime, timezone
from typing import Any, Dict, List

from guidance.clients.email import NoOpEmailClient
from guidance.clients.email.base import BaseEmailClient, EmailMessage
from guidance.pipeline.escalation import EscalationDecider
from guidance.pipeline.types import (
    ClassificationLabel,
    InputClassification,
    ModerationLogEntry,
    NotificationType,
    RequestContext,
)
from guidance.services.moderation_log_service import ModerationLogStore, NoOpModerationLogStore
from guidance.services.notification_service import NotificationDispatcher
from guidance.services.notification_templates import (
    LOUISIANA_CPS_HOTLINE,
    format_timestamp,
    render_escalation_email,
)

_FIXED_TIME = datetime(2026, 3, 1, 18, 30, tzinfo=timezone.utc)
_CONTEXT = RequestContext(session_id="sess 1", client_ip="203.0.113.7", user_agent="pytest", first_name="Ruth")


def _run(coro):
    return asyncio.run(coro)


class MemoryLogStore(ModerationLogStore):
    def __init__(self) -> None:
        self.entries: List[ModerationLogEntry] = []

    async def append(self, entry: ModerationLogEntry) -> None:
        self.entries.append(entry)

    async def list_recent(self, limit: int = 100) -> List[Dict[str, Any]]:
        return [{"moderation_type": e.moderation_type} for e in reversed(self.entries)][:limit]

    async def count_by_type(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for entry in self.entries:
            counts[entry.moderation_type] = counts.get(entry.moderation_type, 0) + 1
        return counts


class BrokenLogStore(MemoryLogStore):
    async def append(self, entry: ModerationLogEntry) -> None:
        raise RuntimeError("database is down")


class BrokenEmailClient(BaseEmailClient):
    @property
    def provider(self) -> str:
        return "broken"

    async def send(self, message: EmailMessage):
        raise RuntimeError("smtp unreachable")


def _event(question="I'm 15 and my stepdad hits me <script>alert(1)</script>", *, mandatory=True, crisis=False):
    classification = InputClassification(
        label=ClassificationLabel.NORMAL,
        crisis_signal=crisis,
        mandatory_report_signal=mandatory,
        extracted_age=15 if mandatory else None,
    )
    return EscalationDecider(clock=lambda: _FIXED_TIME).decide(
        classification,
        is_conversation_ending=False,
        question=question,
        answer="You are not alone.",
        context=_CONTEXT,
        history=[{"role": "user", "content": question}],
    )


def _dispatcher(email=None, store=None) -> NotificationDispatcher:
    return NotificationDispatcher(
        email or NoOpEmailClient(),
        store or MemoryLogStore(),
        recipient="pastor@example.org",
        public_base_url="https://church.example.org/",
    )


class TestDispatch(unittest.TestCase):
    def test_dispatch_sends_email_and_logs(self) -> None:
        email, store = NoOpEmailClient(), MemoryLogStore()
        dispatcher = _dispatcher(email, store)
        event = _event()

        async def scenario():
            dispatcher.dispatch(event)
            self.assertEqual(dispatcher.pending, 2)
            await dispatcher.drain()

        _run(scenario())
        self.assertEqual(dispatcher.pending, 0)
        self.assertEqual(len(email.sent), 1)
        sent = email.sent[0]
        self.assertEqual(sent.to, ["pastor@example.org"])
        self.assertEqual(sent.subject, event.subject)
        self.assertEqual(sent.tags, ["minor_abuse"])
        self.assertEqual([e.moderation_type for e in store.entries], ["MINOR_ABUSE"])
        self.assertEqual(store.entries[0].response_sent, "You are not alone.")

    def test_email_failure_is_swallowed(self) -> None:
        store = MemoryLogStore()
        dispatcher = _dispatcher(BrokenEmailClient(), store)

        async def scenario():
            dispatcher.dispatch(_event())
            await dispatcher.drain()

        with self.assertLogs("guidance.services.notification_service", level="ERROR"):
            _run(scenario())
        self.assertEqual(len(store.entries), 1)

    def test_store_failure_is_swallowed(self) -> None:
        dispatcher = _dispatcher(store=BrokenLogStore())
        result = _run(dispatcher.write_log(ModerationLogEntry.build("spam", "buy now", "reply", _CONTEXT)))
        self.assertFalse(result.ok)
        self.assertIn("database is down", result.error)

    def test_send_event_reports_failure_as_result(self) -> None:
        result = _run(_dispatcher(BrokenEmailClient()).send_event(_event()))
        self.assertFalse(result.ok)
        self.assertIn("RuntimeError", result.error)

    def test_mandatory_contact_report(self) -> None:
        email, store = NoOpEmailClient(), MemoryLogStore()
        result = _run(_dispatcher(email, store).send_mandatory_contact_report(
            session_id="sess 1",
            full_name="Jamie <b>Doe</b>",
            age="15",
            phone="555-0100",
            address="1 Main St",
            google_email=None,
            context=_CONTEXT,
        ))
        self.assertTrue(result.ok)
        html = email.sent[0].html
        self.assertIn("Jamie &lt;b&gt;Doe&lt;/b&gt;", html)
        self.assertIn(LOUISIANA_CPS_HOTLINE, html)
        self.assertIn("session=sess%201", html)
        self.assertEqual(store.entries[0].moderation_type, "mandatory_report")


class TestTemplates(unittest.TestCase):
    def test_user_text_is_escaped(self) -> None:
        html = render_escalation_email(_event(), public_base_url="https://church.example.org")
        self.assertNotIn("<script>", html)
        self.assertIn("&lt;script&gt;", html)
        self.assertIn(LOUISIANA_CPS_HOTLINE, html)
        self.assertIn("https://church.example.org/admin/moderation", html)
        self.assertIn("You are not alone.", html)

    def test_suicide_alert_mentions_911(self) -> None:
        event = _event("I want to end my life", mandatory=False, crisis=True)
        self.assertEqual(event.type, NotificationType.SUICIDE_THREAT)
        html = render_escalation_email(event, public_base_url="https://x.org")
        self.assertIn("call 911", html)
        self.assertNotIn(LOUISIANA_CPS_HOTLINE, html)

    def test_timestamp_in_central_time(self) -> None:
        self.assertEqual(format_timestamp(_FIXED_TIME), "March 01, 2026 at 12:30 PM CST")


class TestLogStores(unittest.TestCase):
    def test_stats_keys(self) -> None:
        store = MemoryLogStore()

        async def scenario():
            for kind in ("abusive", "abusive", "spam", "off-topic", "CRISIS"):
                await store.append(ModerationLogEntry.build(kind, "q", "r", _CONTEXT))
            return await store.stats()

        self.assertEqual(_run(scenario()), {"total": 5, "abusive": 2, "spam": 1, "offTopic": 1})

    def test_noop_store(self) -> None:
        store = NoOpModerationLogStore()
        _run(store.append(ModerationLogEntry.build("spam", "q", "r", _CONTEXT)))
        self.assertEqual(_run(store.list_recent()), [])
        self.assertEqual(_run(store.stats()), {"total": 0, "abusive": 0, "spam": 0, "offTopic": 0})


if __name__ == "__main__":
    unittest.main()
