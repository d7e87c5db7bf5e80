"""Fixed replies for short-circuited requests and the cosmetic variants picked per reply."""
from __future__ import annotations

from typing import Sequence

from guidance.pipeline.types import Chooser, ClassificationLabel

SIGN_OFFS: Sequence[str] = (
    "Blessings to you, Your pastor",
    "Grace and peace, Your pastor",
    "With you in prayer, Your pastor",
    "In His love, Your pastor",
)

ABUSIVE_REPLY = (
    "I understand you may be going through a difficult time, but I'm here to provide "
    "compassionate spiritual guidance. If you're feeling angry or frustrated, I encourage "
    "you to reach out to a counselor who can help you process those emotions.\n\n"
    "For now, I think it's best we end our conversation tonight. You're welcome to return "
    "when you're ready for genuine spiritual support."
)

SPAM_REPLY = (
    "This space is dedicated to spiritual guidance and pastoral care. If you have questions "
    "about faith, life challenges, or spiritual growth, I'm here to help."
)

OFF_TOPIC_REPLY = (
    "I'm here specifically to provide spiritual guidance and biblical wisdom. For questions "
    "about general topics like weather, sports, or practical advice, you might find other "
    "resources more helpful.\n\n"
    "If you have questions about faith, relationships, struggles, or spiritual growth, "
    "I'm here to help."
)

_TOPICS = (
    "• Faith and spiritual growth\n"
    "• Life challenges and struggles\n"
    "• Relationships and forgiveness\n"
    "• Questions about God and the Bible\n"
    "• Finding hope and encouragement"
)

GREETINGS: Sequence[str] = (
    "Hello! I'm here to provide spiritual guidance and biblical wisdom. "
    "Feel free to ask me about:\n\n" + _TOPICS + "\n\nWhat's on your heart today?",
    "Hi there! I'm glad you stopped by. You can talk with me about:\n\n"
    + _TOPICS + "\n\nWhat would you like to talk about?",
    "Welcome, friend. This is a place to bring whatever you're carrying. I can help with:\n\n"
    + _TOPICS + "\n\nWhere would you like to start?",
)

GENERATION_FALLBACK = "I apologize, but I was unable to generate a response."

_FIXED_REPLIES = {
    ClassificationLabel.ABUSIVE: ABUSIVE_REPLY,
    ClassificationLabel.SPAM: SPAM_REPLY,
    ClassificationLabel.OFF_TOPIC: OFF_TOPIC_REPLY,
}


def sign(body: str, sign_off: str) -> str:
    return f"{body}\n\n{sign_off}"


def canned_reply(label: ClassificationLabel, choose: Chooser) -> str:
    """Signed reply for a short-circuit label. KeyError for labels that generate."""
    if label is ClassificationLabel.TRIVIAL_GREETING:
        body = choose(GREETINGS)
    else:
        body = _FIXED_REPLIES[label]
    return sign(body, choose(SIGN_OFFS))
