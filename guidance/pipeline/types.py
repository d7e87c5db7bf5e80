"""Core data structures for the guidance safety pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, Tuple, TypeVar

ConversationTurn = Dict[str, str]
"""A single turn: {"role": "user" | "assistant", "content": "..."}."""

Chooser = Callable[[Sequence[str]], str]
"""Picks one cosmetic variant (sign-off, greeting). Production uses random.choice."""

T = TypeVar("T")


class ClassificationLabel(str, Enum):
    """Mutually exclusive input label. Declaration order is the evaluation priority."""
    ABUSIVE = "abusive"
    SPAM = "spam"
    OFF_TOPIC = "off-topic"
    TRIVIAL_GREETING = "trivial-greeting"
    BRIEF_FOLLOW_UP = "brief-follow-up"
    NORMAL = "normal"


class NotificationType(str, Enum):
    """Escalation categories. Declaration order is the decision-table priority."""
    MINOR_ABUSE = "MINOR_ABUSE"
    SUICIDE_THREAT = "SUICIDE_THREAT"
    HOMICIDE_THREAT = "HOMICIDE_THREAT"
    CRISIS = "CRISIS"
    ABUSIVE_CHAT_ENDED = "ABUSIVE_CHAT_ENDED"
    CONVERSATION_ENDED = "CONVERSATION_ENDED"
    SERIOUS = "SERIOUS"


HIGH_URGENCY_TYPES = frozenset({
    NotificationType.MINOR_ABUSE,
    NotificationType.SUICIDE_THREAT,
    NotificationType.HOMICIDE_THREAT,
    NotificationType.CRISIS,
})

SERIOUS_TYPES = HIGH_URGENCY_TYPES | {NotificationType.SERIOUS}


class PipelineState(str, Enum):
    RECEIVED = "RECEIVED"
    CLASSIFIED = "CLASSIFIED"
    SHORT_CIRCUITED = "SHORT_CIRCUITED"
    CONTEXT_RETRIEVED = "CONTEXT_RETRIEVED"
    PROMPT_BUILT = "PROMPT_BUILT"
    GENERATED = "GENERATED"
    OUTPUT_CLASSIFIED = "OUTPUT_CLASSIFIED"
    ESCALATION_DECIDED = "ESCALATION_DECIDED"
    DONE = "DONE"
    FAILED = "FAILED"


@dataclass(frozen=True)
class InputClassification:
    """Output of PatternClassifier.classify()."""

    label: ClassificationLabel
    crisis_signal: bool = False
    mandatory_report_signal: bool = False
    extracted_age: Optional[int] = None
    matched_rule: Optional[str] = None
    """Pattern fragment that decided the label (for logs only)."""

    @property
    def short_circuit_candidate(self) -> bool:
        return self.label in (
            ClassificationLabel.ABUSIVE,
            ClassificationLabel.SPAM,
            ClassificationLabel.OFF_TOPIC,
            ClassificationLabel.TRIVIAL_GREETING,
        )


@dataclass(frozen=True)
class Urgency:
    severity: str
    """critical | high | moderate | standard"""
    color: str
    subject: str


@dataclass(frozen=True)
class RequestContext:
    """Who sent the message; copied into alerts and log entries."""

    session_id: Optional[str] = None
    client_ip: str = "unknown"
    user_agent: str = "unknown"
    first_name: Optional[str] = None
    user_email: Optional[str] = None


@dataclass(frozen=True)
class EscalationEvent:
    """A request to alert a human. Transient: lives only until the email is sent."""

    type: NotificationType
    urgency: Urgency
    subject: str
    question: str
    answer: Optional[str]
    session_id: Optional[str]
    client_ip: str
    user_agent: str
    first_name: Optional[str]
    user_email: Optional[str]
    mentioned_age: Optional[int]
    conversation_history: Tuple[ConversationTurn, ...]
    timestamp: datetime
    additional_signals: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ModerationLogEntry:
    moderation_type: str
    question: str
    client_ip: str
    user_agent: str
    response_sent: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    QUESTION_LIMIT = 500
    USER_AGENT_LIMIT = 500

    @classmethod
    def build(
        cls,
        moderation_type: str,
        question: str,
        response_sent: str,
        context: RequestContext,
    ) -> "ModerationLogEntry":
        """Truncate free-text fields to what the log store accepts."""
        return cls(
            moderation_type=moderation_type,
            question=question[: cls.QUESTION_LIMIT],
            client_ip=context.client_ip,
            user_agent=context.user_agent[: cls.USER_AGENT_LIMIT],
            response_sent=response_sent,
        )


def _optional_text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


@dataclass(frozen=True)
class SupportingPassage:
    """One ranked sermon excerpt returned by the retrieval service."""

    title: str
    content: str
    date: Optional[str] = None
    scripture_reference: Optional[str] = None
    summary: Optional[str] = None
    similarity: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SupportingPassage":
        """Coerce one search hit; fields of the wrong type become text or defaults."""
        try:
            similarity = float(data.get("similarity") or 0.0)
        except (TypeError, ValueError):
            similarity = 0.0
        return cls(
            title=str(data.get("title") or "Untitled sermon"),
            content=str(data.get("content") or ""),
            date=_optional_text(data.get("date")),
            scripture_reference=_optional_text(data.get("scripture_reference")),
            summary=_optional_text(data.get("summary")),
            similarity=similarity,
        )


@dataclass(frozen=True)
class ExternalCallResult(Generic[T]):
    """Outcome of one call to an external collaborator.

    Soft boundaries collapse the error variant with ``unwrap_or``; the hard
    boundary (generation) raises instead of returning one of these.
    """

    value: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "ExternalCallResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> "ExternalCallResult[T]":
        return cls(error=error)

    def unwrap_or(self, default: T) -> T:
        if self.ok and self.value is not None:
            return self.value
        return default


@dataclass(frozen=True)
class GenerationRequest:
    """Chat-style request for the generation provider: system block first, then turns."""

    messages: Tuple[Dict[str, str], ...]

    @property
    def system_prompt(self) -> str:
        return self.messages[0]["content"] if self.messages else ""


@dataclass
class GuidanceMetrics:
    """Timing for a single pipeline run."""

    classification_ms: float = 0.0
    retrieval_ms: float = 0.0
    generation_ms: float = 0.0
    total_ms: float = 0.0
    passages_found: int = 0


@dataclass
class GuidanceResult:
    """Final output of RequestOrchestrator.process()."""

    answer: str
    classification: InputClassification
    is_crisis: bool = False
    is_serious: bool = False
    is_mandatory_report: bool = False
    escalation: Optional[EscalationEvent] = None
    short_circuited: bool = False
    states: List[PipelineState] = field(default_factory=list)
    metrics: Optional[GuidanceMetrics] = None
