"""Unit tests for RequestOrchestrator: end-to-end scenarios with stub collaborators."""
from __future__ import annotations

import asyncio
import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock

import httpx

from guidance.core.exceptions import GenerationError
from guidance.pipeline.canned import ABUSIVE_REPLY, GREETINGS, SIGN_OFFS, SPAM_REPLY
from guidance.pipeline.escalation import EscalationDecider
from guidance.pipeline.generation import ResponseGenerator
from guidance.pipeline.orchestrator import RequestOrchestrator, normalize_history
from guidance.pipeline.retrieval import ContextRetriever
from guidance.pipeline.types import (
    ClassificationLabel,
    NotificationType,
    PipelineState,
    RequestContext,
)

_FIXED_TIME = datetime(2026, 3, 1, 18, 30, tzinfo=timezone.utc)
_CONTEXT = RequestContext(
    session_id="sess-1",
    client_ip="203.0.113.7",
    user_agent="pytest",
    first_name="Ruth",
    user_email="ruth@example.com",
)


def _run(coro):
    return asyncio.run(coro)


def _first(options):
    return options[0]


class FakeLLM:
    """Deterministic chat stub that records every message list it receives."""

    provider = "fake"

    def __init__(self, answer: str = "Take heart, God is near.\n\nBlessings to you, Your pastor") -> None:
        self.answer = answer
        self.calls = []

    async def chat(self, messages):
        self.calls.append(messages)
        return self.answer


class FailingLLM:
    provider = "failing"

    async def chat(self, messages):
        raise RuntimeError("provider exploded")


class FakeSearch:
    """httpx.MockTransport handler standing in for the sermon search service."""

    def __init__(self) -> None:
        self.requests = []
        self.sermons = [
            {"title": "Hope in the Valley", "date": "2024-05-12", "scripture_reference": "Psalm 23",
             "content": "The Lord is my shepherd.", "summary": "", "similarity": 0.88},
        ]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(200, json={"sermons": self.sermons})


class OrchestratorTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.llm = FakeLLM()
        self.search = FakeSearch()
        self.dispatcher = MagicMock()
        self.orchestrator = self._build(self.llm)

    def _build(self, llm) -> RequestOrchestrator:
        return RequestOrchestrator(
            ResponseGenerator(llm),
            self.dispatcher,
            retriever=ContextRetriever(
                "http://sermons.test/api/sermons/search",
                transport=httpx.MockTransport(self.search),
            ),
            decider=EscalationDecider(clock=lambda: _FIXED_TIME),
            choose=_first,
        )

    def _process(self, question, history=None):
        return _run(self.orchestrator.process(question, conversation_history=history, context=_CONTEXT))

    def _dispatched(self):
        return [c.args[0] for c in self.dispatcher.dispatch.call_args_list]

    def _logged(self):
        return [c.args[0] for c in self.dispatcher.log.call_args_list]


class TestShortCircuit(OrchestratorTestCase):
    def test_abusive_ends_conversation_without_generation(self) -> None:
        result = self._process("I hate god and this is stupid religion")

        self.assertEqual(result.classification.label, ClassificationLabel.ABUSIVE)
        self.assertTrue(result.short_circuited)
        self.assertEqual(result.answer, f"{ABUSIVE_REPLY}\n\n{SIGN_OFFS[0]}")
        self.assertIn("end our conversation", result.answer)
        self.assertEqual(self.llm.calls, [])
        self.assertEqual(self.search.requests, [])

        events = self._dispatched()
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0].type, NotificationType.ABUSIVE_CHAT_ENDED)
        self.assertEqual(events[0].answer, result.answer)
        self.assertEqual([e.moderation_type for e in self._logged()], ["abusive"])
        self.assertEqual(
            result.states,
            [PipelineState.RECEIVED, PipelineState.CLASSIFIED, PipelineState.SHORT_CIRCUITED, PipelineState.DONE],
        )
        self.assertFalse(result.is_serious)

    def test_abusive_with_crisis_language_keeps_signal_on_event(self) -> None:
        result = self._process("fuck this, I want to die")

        self.assertTrue(result.is_crisis)
        self.assertEqual(self.llm.calls, [])
        event = self._dispatched()[0]
        self.assertEqual(event.type, NotificationType.ABUSIVE_CHAT_ENDED)
        self.assertEqual(event.additional_signals, ("suicide language",))

    def test_spam_is_logged_without_alert(self) -> None:
        result = self._process("Click here to win the lottery")

        self.assertEqual(result.answer, f"{SPAM_REPLY}\n\n{SIGN_OFFS[0]}")
        self.assertEqual(self._dispatched(), [])
        entry = self._logged()[0]
        self.assertEqual(entry.moderation_type, "spam")
        self.assertEqual(entry.client_ip, "203.0.113.7")
        self.assertEqual(entry.response_sent, result.answer)

    def test_greeting_is_not_logged(self) -> None:
        result = self._process("hi!")

        self.assertEqual(result.answer, f"{GREETINGS[0]}\n\n{SIGN_OFFS[0]}")
        self.assertEqual(self.llm.calls, [])
        self.dispatcher.log.assert_not_called()
        self.dispatcher.dispatch.assert_not_called()

    def test_spam_with_crisis_signal_goes_to_generation(self) -> None:
        result = self._process("buy now, I want to kill myself")

        self.assertEqual(result.classification.label, ClassificationLabel.SPAM)
        self.assertFalse(result.short_circuited)
        self.assertEqual(len(self.llm.calls), 1)
        self.assertEqual(self._dispatched()[0].type, NotificationType.SUICIDE_THREAT)


class TestGenerationPath(OrchestratorTestCase):
    def test_biblical_blood_is_not_crisis(self) -> None:
        result = self._process("I've been meditating on the woman with an issue of blood and her faith")

        self.assertFalse(result.is_crisis)
        self.assertEqual(len(self.llm.calls), 1)
        self.assertNotIn("CRISIS DETECTED", self.llm.calls[0][0]["content"])
        self.assertNotIn(NotificationType.CRISIS, [e.type for e in self._dispatched()])

    def test_minor_abuse_event(self) -> None:
        result = self._process("I'm 15 and my stepdad hits me")

        self.assertTrue(result.is_mandatory_report)
        self.assertTrue(result.is_serious)
        self.assertEqual(result.classification.extracted_age, 15)
        events = self._dispatched()
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0].type, NotificationType.MINOR_ABUSE)
        self.assertEqual(events[0].mentioned_age, 15)
        self.assertEqual(events[0].answer, self.llm.answer)

    def test_brief_follow_up_skips_retrieval_but_generates(self) -> None:
        history = [
            {"role": "user", "content": "How do I forgive my brother?"},
            {"role": "assistant", "content": "Forgiveness is a journey..."},
        ]
        result = self._process("thanks", history)

        self.assertEqual(result.classification.label, ClassificationLabel.BRIEF_FOLLOW_UP)
        self.assertEqual(self.search.requests, [])
        self.assertEqual(result.metrics.passages_found, 0)
        self.assertEqual(len(self.llm.calls), 1)
        system = self.llm.calls[0][0]["content"]
        self.assertNotIn("RELEVANT TEACHINGS", system)
        self.assertEqual(self.llm.calls[0][-1], {"role": "user", "content": "thanks"})
        self.assertEqual(len(self.llm.calls[0]), 4)

    def test_normal_question_uses_retrieved_passages(self) -> None:
        result = self._process("How do I forgive my brother?")

        self.assertEqual(len(self.search.requests), 1)
        self.assertEqual(result.metrics.passages_found, 1)
        self.assertIn('"Hope in the Valley"', self.llm.calls[0][0]["content"])
        self.assertIn("named Ruth", self.llm.calls[0][0]["content"])
        self.assertEqual(self._dispatched(), [])
        self.assertFalse(result.is_serious)
        self.assertEqual(
            result.states,
            [
                PipelineState.RECEIVED,
                PipelineState.CLASSIFIED,
                PipelineState.CONTEXT_RETRIEVED,
                PipelineState.PROMPT_BUILT,
                PipelineState.GENERATED,
                PipelineState.OUTPUT_CLASSIFIED,
                PipelineState.ESCALATION_DECIDED,
                PipelineState.DONE,
            ],
        )

    def test_malformed_sermon_fields_do_not_fail_the_request(self) -> None:
        self.search.sermons = [
            {"title": "Numbers", "content": "Be strong.", "similarity": "high", "date": 20240512},
        ]
        result = self._process("How do I forgive my brother?")

        self.assertEqual(result.metrics.passages_found, 1)
        self.assertEqual(len(self.llm.calls), 1)
        system = self.llm.calls[0][0]["content"]
        self.assertIn('"Numbers"', system)
        self.assertIn("Date: ", system)

    def test_conversation_ending_answer_fires_alert(self) -> None:
        self.llm.answer = "I don't think this is the right space for this conversation."
        result = self._process("Tell me about your favourite prayer")

        self.assertEqual(result.classification.label, ClassificationLabel.NORMAL)
        events = self._dispatched()
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0].type, NotificationType.CONVERSATION_ENDED)
        self.assertFalse(result.is_serious)

    def test_crisis_event_carries_answer_and_full_history(self) -> None:
        history = [{"role": "user", "content": "I lost my job"}, {"role": "assistant", "content": "I'm sorry."}]
        result = self._process("I can't go on, I want to end my life", history)

        self.assertTrue(result.is_crisis)
        self.assertIn("CRISIS DETECTED", self.llm.calls[0][0]["content"])
        event = self._dispatched()[0]
        self.assertEqual(event.type, NotificationType.SUICIDE_THREAT)
        self.assertEqual(event.answer, self.llm.answer)
        self.assertEqual(
            [turn["content"] for turn in event.conversation_history],
            ["I lost my job", "I'm sorry.", "I can't go on, I want to end my life"],
        )

    def test_at_most_one_event(self) -> None:
        self._process("I'm 14 and my dad beats me and I want to kill myself")
        events = self._dispatched()
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0].type, NotificationType.MINOR_ABUSE)

    def test_repeated_runs_agree(self) -> None:
        question = "My wife asked for a divorce and I feel hopeless"
        first = self._process(question)
        second = self._process(question)
        self.assertEqual(first.classification, second.classification)
        self.assertEqual(first.is_crisis, second.is_crisis)
        self.assertEqual(first.is_mandatory_report, second.is_mandatory_report)
        events = self._dispatched()
        self.assertEqual(len(events), 2)
        self.assertEqual(events[0].type, events[1].type)


class TestGenerationFailure(OrchestratorTestCase):
    def test_failure_raises_and_skips_escalation(self) -> None:
        orchestrator = self._build(FailingLLM())
        with self.assertRaises(GenerationError):
            _run(orchestrator.process("I want to end my life", context=_CONTEXT))
        self.dispatcher.dispatch.assert_not_called()


class TestNormalizeHistory(unittest.TestCase):
    def test_drops_malformed_turns(self) -> None:
        turns = normalize_history([
            {"role": "user", "content": "hi"},
            "not a turn",
            {"role": "user", "content": "   "},
            {"role": "system", "content": "sneaky"},
            {"role": "assistant"},
        ])
        self.assertEqual(turns, ({"role": "user", "content": "hi"}, {"role": "assistant", "content": "sneaky"}))

    def test_none(self) -> None:
        self.assertEqual(normalize_history(None), ())


if __name__ == "__main__":
    unittest.main()
