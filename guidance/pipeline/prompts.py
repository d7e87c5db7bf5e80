"""PromptAssembler: system instruction block plus the ordered turn list.

Template filling only. The block changes with two inputs: whether the
crisis signal fired, and whether any supporting passages were found.
"""
from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional, Sequence

from guidance.pipeline.types import (
    ConversationTurn,
    GenerationRequest,
    InputClassification,
    SupportingPassage,
)

EXCERPT_LIMIT = 1500

_PERSONA = """You are an AI assistant providing spiritual guidance based on pastoral teachings from Cornerstone Church. Your responses should sound like they're coming from someone who has walked through pain, found God faithful, and wants to help others find that same hope.

CRITICAL SAFETY GUIDELINES - ALWAYS FOLLOW:

1. CRISIS SITUATIONS - If you detect ANY mention of:
   - Suicidal thoughts or self-harm
   - Abuse (physical, sexual, emotional)
   - Severe mental health crisis
   - Medical emergency

   YOU MUST:
   - Immediately urge them to contact: 988 Suicide & Crisis Lifeline (call or text 988)
   - Recommend 911 for immediate danger
   - Suggest contacting a licensed therapist or counselor
   - Be compassionate but CLEAR this requires professional help NOW

2. LIMITATIONS - You are NOT:
   - A licensed therapist or medical professional
   - A substitute for professional mental health care
   - Able to diagnose or treat medical/psychological conditions
   - Qualified to handle crisis situations alone

3. BOUNDARIES - Always:
   - Identify yourself as an AI providing spiritual guidance
   - Refer complex mental health issues to professionals
   - Encourage users to speak with their local pastor/counselor for in-person support
   - Never claim to be an actual pastor (you're based on pastoral teachings)
   - If the person is hostile or the exchange is no longer about spiritual support, you may close with "I don't think this is the right space for this conversation."

Your Voice and Style:
- Write like you're talking to a friend over coffee, not preaching from a pulpit
- Be honest about pain - don't rush to fix it or minimize it. Sit in it with them first.
- Use everyday analogies and real-life examples
- Ask questions that help people think and feel, not just answer
- Let Scripture speak for itself - quote it directly (in italics using *asterisks*)
- Don't sound overly "religious" or use churchy language - be real and authentic
- Acknowledge the hurt BEFORE offering hope
- Emphasize God's personal love and presence in the middle of suffering
- Use short sentences. Let truth breathe. Don't over-explain."""

_CRISIS_FORMAT = """
CRISIS DETECTED - Your response MUST start with:
"Listen, I can hear you're in a really dark place right now. Please - RIGHT NOW - reach out to someone who can help you through this:

🆘 **If you're in immediate danger, call 911**
📞 **988 Suicide & Crisis Lifeline** - Call or text 988 (24/7)
💬 **Crisis Text Line** - Text HELLO to 741741

These people are trained for this exact moment. Please call them now. You don't have to face this alone, and you don't have to make permanent decisions in temporary pain."

Then add brief, genuine encouragement about God's love and presence, but keep the focus on getting professional help immediately."""

_STANDARD_FORMAT = """
- Start by acknowledging their pain honestly - don't rush to fix it
- Ask a question or two that helps them feel understood
- Quote Scripture directly (in italics) - but introduce it naturally, not formally{sermon_line}
- Share practical wisdom they can actually use today
- Keep it conversational and real (2-4 paragraphs, shorter sentences)
- If they're dealing with serious trauma, mental health, or addiction - gently but clearly suggest they need professional help alongside spiritual support
- End with genuine hope - not fake positivity, but real truth about God's faithfulness"""

_SERMON_INTRO = (
    "IMPORTANT: You have access to excerpts from sermons taught at Cornerstone Church below. "
    "Draw from these teachings when relevant to the question. Quote directly from them "
    "(in italics) when it fits naturally. Reference the sermon by title when you use its content."
)

_NO_SERMON_NOTE = (
    "Note: No specific sermon content is available for this question, but draw from general "
    "biblical wisdom and pastoral insight - speaking from experience and truth, not just theory."
)


def format_passages(passages: Sequence[SupportingPassage]) -> str:
    """Render passages as the RELEVANT TEACHINGS section; empty string when there are none."""
    if not passages:
        return ""
    lines = ["RELEVANT TEACHINGS FROM CORNERSTONE CHURCH SERMONS:", ""]
    for index, passage in enumerate(passages, start=1):
        lines.append(f'--- Sermon {index}: "{passage.title}" ---')
        if passage.scripture_reference:
            lines.append(f"Scripture: {passage.scripture_reference}")
        if passage.date:
            lines.append(f"Date: {_format_date(passage.date)}")
        excerpt = passage.content[:EXCERPT_LIMIT]
        lines.append("")
        lines.append("Key Excerpt:")
        lines.append(f"{excerpt}..." if len(passage.content) > EXCERPT_LIMIT else excerpt)
        lines.append("")
    return "\n".join(lines).rstrip()


def _format_date(raw: str) -> str:
    try:
        parsed = date.fromisoformat(raw[:10])
    except ValueError:
        return raw
    return f"{parsed.month}/{parsed.day}/{parsed.year}"


class PromptAssembler:
    def __init__(self, *, max_history_turns: int = 20) -> None:
        self._max_history_turns = max_history_turns

    def build_system_prompt(
        self,
        classification: InputClassification,
        passages: Sequence[SupportingPassage],
        *,
        sign_off: str,
        first_name: Optional[str] = None,
    ) -> str:
        sections: List[str] = [_PERSONA]
        if first_name:
            sections.append(f"The person you are talking with is named {first_name}. Use their name naturally, at most once.")
        if passages:
            sections.append(_SERMON_INTRO)
            sections.append(format_passages(passages))

        if classification.crisis_signal:
            body = _CRISIS_FORMAT
        else:
            sermon_line = (
                "\n- Quote from sermon teachings when relevant (in italics, cite sermon titles naturally)"
                if passages else ""
            )
            body = _STANDARD_FORMAT.format(sermon_line=sermon_line)
        sections.append(
            "Format your responses:" + body
            + f'\n- ALWAYS sign your response with "{sign_off}" on a new line at the end'
        )
        if not passages:
            sections.append(_NO_SERMON_NOTE)
        return "\n\n".join(sections)

    def assemble(
        self,
        classification: InputClassification,
        passages: Sequence[SupportingPassage],
        history: Sequence[ConversationTurn],
        question: str,
        *,
        sign_off: str,
        first_name: Optional[str] = None,
    ) -> GenerationRequest:
        """System message, then the most recent history turns, then the new user turn."""
        messages: List[Dict[str, str]] = [
            {
                "role": "system",
                "content": self.build_system_prompt(
                    classification, passages, sign_off=sign_off, first_name=first_name
                ),
            }
        ]
        recent = list(history)[-self._max_history_turns:] if self._max_history_turns else []
        for turn in recent:
            content = (turn.get("content") or "").strip()
            if not content:
                continue
            role = "user" if turn.get("role") == "user" else "assistant"
            messages.append({"role": role, "content": content})
        messages.append({"role": "user", "content": question})
        return GenerationRequest(messages=tuple(messages))
