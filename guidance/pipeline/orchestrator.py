"""RequestOrchestrator: sequences the safety pipeline for one request.

    RECEIVED → CLASSIFIED → SHORT_CIRCUITED → DONE
    RECEIVED → CLASSIFIED → CONTEXT_RETRIEVED → PROMPT_BUILT → GENERATED
             → OUTPUT_CLASSIFIED → ESCALATION_DECIDED → DONE

A generation failure ends in FAILED and re-raises; no escalation analysis
runs for that request. Alerts and moderation log writes are handed to the
dispatcher, which schedules them without blocking the reply.
"""
from __future__ import annotations

import logging
import random
import time
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

from guidance.core.exceptions import GenerationError
from guidance.pipeline.canned import SIGN_OFFS, canned_reply
from guidance.pipeline.classifiers.output_classifier import OutputClassifier
from guidance.pipeline.classifiers.pattern_classifier import PatternClassifier
from guidance.pipeline.escalation import EscalationDecider
from guidance.pipeline.prompts import PromptAssembler
from guidance.pipeline.types import (
    SERIOUS_TYPES,
    Chooser,
    ClassificationLabel,
    ConversationTurn,
    GuidanceMetrics,
    GuidanceResult,
    InputClassification,
    ModerationLogEntry,
    PipelineState,
    RequestContext,
)

if TYPE_CHECKING:
    from guidance.pipeline.generation import ResponseGenerator
    from guidance.pipeline.retrieval import ContextRetriever
    from guidance.services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

# Short-circuit labels that write a moderation log row under their own name.
_LOGGED_LABELS = (
    ClassificationLabel.ABUSIVE,
    ClassificationLabel.SPAM,
    ClassificationLabel.OFF_TOPIC,
)


def _ms(since: float) -> float:
    return round((time.monotonic() - since) * 1000, 2)


def normalize_history(history: Optional[Sequence[ConversationTurn]]) -> Tuple[ConversationTurn, ...]:
    """Copy caller history into immutable turns, dropping malformed entries."""
    turns: List[ConversationTurn] = []
    for turn in history or ():
        if not isinstance(turn, dict):
            continue
        content = turn.get("content")
        if not isinstance(content, str) or not content.strip():
            continue
        role = "user" if turn.get("role") == "user" else "assistant"
        turns.append({"role": role, "content": content})
    return tuple(turns)


class RequestOrchestrator:
    """Stateless between requests; every collaborator is injected."""

    def __init__(
        self,
        generator: "ResponseGenerator",
        dispatcher: "NotificationDispatcher",
        *,
        retriever: Optional["ContextRetriever"] = None,
        classifier: Optional[PatternClassifier] = None,
        assembler: Optional[PromptAssembler] = None,
        output_classifier: Optional[OutputClassifier] = None,
        decider: Optional[EscalationDecider] = None,
        choose: Chooser = random.choice,
    ) -> None:
        self._generator = generator
        self._dispatcher = dispatcher
        self._retriever = retriever
        self._classifier = classifier or PatternClassifier()
        self._assembler = assembler or PromptAssembler()
        self._output_classifier = output_classifier or OutputClassifier()
        self._decider = decider or EscalationDecider()
        self._choose = choose

    def should_short_circuit(self, classification: InputClassification) -> bool:
        """Abusive always short-circuits; the other canned labels yield to safety signals."""
        if classification.label is ClassificationLabel.ABUSIVE:
            return True
        if not classification.short_circuit_candidate:
            return False
        return not (classification.crisis_signal or classification.mandatory_report_signal)

    async def process(
        self,
        question: str,
        *,
        conversation_history: Optional[Sequence[ConversationTurn]] = None,
        context: Optional[RequestContext] = None,
    ) -> GuidanceResult:
        t_start = time.monotonic()
        context = context or RequestContext()
        states: List[PipelineState] = [PipelineState.RECEIVED]
        metrics = GuidanceMetrics()

        t_stage = time.monotonic()
        classification = self._classifier.classify(question)
        metrics.classification_ms = _ms(t_stage)
        states.append(PipelineState.CLASSIFIED)

        history = normalize_history(conversation_history)
        transcript = history + ({"role": "user", "content": question},)

        if self.should_short_circuit(classification):
            result = self._short_circuit(question, classification, context, transcript, states)
            states.append(PipelineState.DONE)
            metrics.total_ms = _ms(t_start)
            result.metrics = metrics
            return result

        passages = []
        if self._retriever is not None:
            t_stage = time.monotonic()
            passages = await self._retriever.retrieve(question, classification.label)
            metrics.retrieval_ms = _ms(t_stage)
        metrics.passages_found = len(passages)
        states.append(PipelineState.CONTEXT_RETRIEVED)

        request = self._assembler.assemble(
            classification,
            passages,
            history,
            question,
            sign_off=self._choose(SIGN_OFFS),
            first_name=context.first_name,
        )
        states.append(PipelineState.PROMPT_BUILT)

        t_stage = time.monotonic()
        try:
            answer = await self._generator.generate(request)
        except GenerationError:
            states.append(PipelineState.FAILED)
            logger.error(
                "RequestOrchestrator: generation failed (session=%s trace=%s)",
                context.session_id, " → ".join(s.value for s in states),
            )
            raise
        metrics.generation_ms = _ms(t_stage)
        states.append(PipelineState.GENERATED)

        ending = self._output_classifier.is_conversation_ending(answer)
        states.append(PipelineState.OUTPUT_CLASSIFIED)

        event = self._decider.decide(
            classification,
            is_conversation_ending=ending,
            question=question,
            answer=answer,
            context=context,
            history=transcript,
        )
        states.append(PipelineState.ESCALATION_DECIDED)
        if event is not None:
            self._dispatcher.dispatch(event)

        states.append(PipelineState.DONE)
        metrics.total_ms = _ms(t_start)
        logger.info(
            "RequestOrchestrator: label=%s crisis=%s escalation=%s passages=%d total=%.0fms",
            classification.label.value,
            classification.crisis_signal,
            event.type.value if event else None,
            metrics.passages_found,
            metrics.total_ms,
        )
        return GuidanceResult(
            answer=answer,
            classification=classification,
            is_crisis=classification.crisis_signal,
            is_serious=event is not None and event.type in SERIOUS_TYPES,
            is_mandatory_report=classification.mandatory_report_signal,
            escalation=event,
            states=states,
            metrics=metrics,
        )

    def _short_circuit(
        self,
        question: str,
        classification: InputClassification,
        context: RequestContext,
        transcript: Tuple[ConversationTurn, ...],
        states: List[PipelineState],
    ) -> GuidanceResult:
        label = classification.label
        reply = canned_reply(label, self._choose)
        states.append(PipelineState.SHORT_CIRCUITED)
        logger.info("RequestOrchestrator: short-circuit label=%s", label.value)

        if label in _LOGGED_LABELS:
            self._dispatcher.log(ModerationLogEntry.build(label.value, question, reply, context))

        event = None
        if label is ClassificationLabel.ABUSIVE:
            event = self._decider.abuse_report(
                classification,
                question=question,
                answer=reply,
                context=context,
                history=transcript,
            )
            self._dispatcher.dispatch(event)

        return GuidanceResult(
            answer=reply,
            classification=classification,
            is_crisis=classification.crisis_signal,
            is_serious=False,
            is_mandatory_report=classification.mandatory_report_signal,
            escalation=event,
            short_circuited=True,
            states=states,
        )
