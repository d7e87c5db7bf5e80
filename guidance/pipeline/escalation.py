"""EscalationDecider: at most one alert per request, chosen by a first-match table."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from guidance.pipeline.classifiers.pattern_classifier import (
    is_homicide_language,
    is_serious_situation,
    is_suicide_language,
)
from guidance.pipeline.types import (
    ClassificationLabel,
    ConversationTurn,
    EscalationEvent,
    InputClassification,
    NotificationType,
    RequestContext,
    Urgency,
)

logger = logging.getLogger(__name__)

MANDATORY_REPORT_SUBJECT = "🚨 URGENT: MANDATORY REPORT - Child Abuse (Under 18)"

_URGENCY: Dict[NotificationType, Urgency] = {
    NotificationType.MINOR_ABUSE: Urgency("critical", "#dc2626", MANDATORY_REPORT_SUBJECT),
    NotificationType.SUICIDE_THREAT: Urgency("critical", "#dc2626", "🚨 URGENT: Suicide Risk - Immediate Attention Needed"),
    NotificationType.HOMICIDE_THREAT: Urgency("critical", "#991b1b", "🚨 URGENT: Threat to Harm Others - Immediate Attention Needed"),
    NotificationType.CRISIS: Urgency("high", "#ea580c", "⚠️ Crisis Alert - Pastoral Guidance"),
    NotificationType.ABUSIVE_CHAT_ENDED: Urgency("moderate", "#7c3aed", "Abusive Conversation Ended - Pastoral Guidance"),
    NotificationType.CONVERSATION_ENDED: Urgency("moderate", "#f59e0b", "Conversation Ended by Assistant - Pastoral Guidance"),
    NotificationType.SERIOUS: Urgency("standard", "#2563eb", "Serious Situation Shared - Pastoral Guidance"),
}


def urgency_for(notification_type: NotificationType) -> Urgency:
    return _URGENCY[notification_type]


Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EscalationDecider:
    def __init__(self, *, clock: Clock = _utcnow) -> None:
        self._clock = clock

    def select_type(
        self,
        classification: InputClassification,
        *,
        is_conversation_ending: bool,
        question: str,
        answer: Optional[str],
    ) -> Optional[NotificationType]:
        """Rows are evaluated top to bottom; the first that holds wins."""
        if classification.mandatory_report_signal:
            return NotificationType.MINOR_ABUSE
        if classification.crisis_signal and is_suicide_language(question):
            return NotificationType.SUICIDE_THREAT
        if is_homicide_language(question):
            return NotificationType.HOMICIDE_THREAT
        if classification.crisis_signal:
            return NotificationType.CRISIS
        if classification.label is ClassificationLabel.ABUSIVE:
            return NotificationType.ABUSIVE_CHAT_ENDED
        if is_conversation_ending:
            return NotificationType.CONVERSATION_ENDED
        if is_serious_situation(question) or (answer is not None and is_serious_situation(answer)):
            return NotificationType.SERIOUS
        return None

    def decide(
        self,
        classification: InputClassification,
        *,
        is_conversation_ending: bool,
        question: str,
        answer: Optional[str],
        context: RequestContext,
        history: Sequence[ConversationTurn],
    ) -> Optional[EscalationEvent]:
        notification_type = self.select_type(
            classification,
            is_conversation_ending=is_conversation_ending,
            question=question,
            answer=answer,
        )
        if notification_type is None:
            return None
        event = self._build(notification_type, classification, question, answer, context, history)
        logger.warning(
            "EscalationDecider: %s (severity=%s session=%s)",
            notification_type.value, event.urgency.severity, context.session_id,
        )
        return event

    def abuse_report(
        self,
        classification: InputClassification,
        *,
        question: str,
        answer: str,
        context: RequestContext,
        history: Sequence[ConversationTurn],
    ) -> EscalationEvent:
        """Event for the abusive short-circuit, built before any generation.

        Abusive keeps precedence over the other signals for routing; those
        signals are listed on the event so the reader still sees them.
        """
        event = self._build(
            NotificationType.ABUSIVE_CHAT_ENDED,
            classification,
            question,
            answer,
            context,
            history,
            additional_signals=_other_signals(classification, question),
        )
        logger.warning(
            "EscalationDecider: abusive conversation ended (session=%s signals=%s)",
            context.session_id, ", ".join(event.additional_signals) or "none",
        )
        return event

    def _build(
        self,
        notification_type: NotificationType,
        classification: InputClassification,
        question: str,
        answer: Optional[str],
        context: RequestContext,
        history: Sequence[ConversationTurn],
        *,
        additional_signals: Tuple[str, ...] = (),
    ) -> EscalationEvent:
        urgency = urgency_for(notification_type)
        return EscalationEvent(
            type=notification_type,
            urgency=urgency,
            subject=urgency.subject,
            question=question,
            answer=answer,
            session_id=context.session_id,
            client_ip=context.client_ip,
            user_agent=context.user_agent,
            first_name=context.first_name,
            user_email=context.user_email,
            mentioned_age=classification.extracted_age,
            conversation_history=tuple(dict(turn) for turn in history),
            timestamp=self._clock(),
            additional_signals=additional_signals,
        )


def _other_signals(classification: InputClassification, question: str) -> Tuple[str, ...]:
    signals: List[str] = []
    if classification.mandatory_report_signal:
        signals.append("possible abuse of a minor")
    if classification.crisis_signal:
        signals.append("suicide language" if is_suicide_language(question) else "crisis language")
    if is_homicide_language(question):
        signals.append("threat to harm others")
    return tuple(signals)
