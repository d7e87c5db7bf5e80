"""Detects when a generated reply closes the conversation."""
from __future__ import annotations

import logging
import re
from typing import Pattern, Sequence

logger = logging.getLogger(__name__)

ENDING_PHRASES: Sequence[str] = (
    r"(?:do not|don'?t) think this is the right (?:space|place)",
    r"best (?:that )?we end (?:our|this) conversation",
    r"this conversation is over",
    r"(?:not going to|unable to|can'?t|cannot) continue this conversation",
    r"(?:i am|i'?m) ending (?:our|this) conversation",
)


class OutputClassifier:
    """Matches termination phrasing in a reply. Independent of the input label."""

    def __init__(self, phrases: Sequence[str] = ENDING_PHRASES) -> None:
        self._pattern: Pattern[str] = re.compile("|".join(f"(?:{p})" for p in phrases), re.IGNORECASE)

    def is_conversation_ending(self, answer: str | None) -> bool:
        if not answer:
            return False
        match = self._pattern.search(answer.replace("’", "'"))
        if match:
            logger.debug("OutputClassifier: ending phrase %r", match.group(0))
        return match is not None


_default = OutputClassifier()


def is_conversation_ending(answer: str | None) -> bool:
    return _default.is_conversation_ending(answer)
