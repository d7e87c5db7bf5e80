"""HTML bodies for alert emails. All user-supplied text passes through html.escape."""
from __future__ import annotations

import html
from datetime import datetime
from typing import List, Optional, Sequence
from urllib.parse import quote
from zoneinfo import ZoneInfo

from guidance.pipeline.types import ConversationTurn, EscalationEvent, NotificationType

DISPLAY_TZ = ZoneInfo("America/Chicago")
LOUISIANA_CPS_HOTLINE = "1-855-452-5437"

_INTROS = {
    NotificationType.MINOR_ABUSE: (
        "A user who appears to be under 18 described abuse. This may require a mandatory report."
    ),
    NotificationType.SUICIDE_THREAT: "A user expressed suicidal thoughts. Please follow up immediately.",
    NotificationType.HOMICIDE_THREAT: "A user expressed intent to harm another person. Please follow up immediately.",
    NotificationType.CRISIS: "A user's message contained crisis language. Crisis resources were shown in the reply.",
    NotificationType.ABUSIVE_CHAT_ENDED: "A conversation was ended because the user's message was abusive.",
    NotificationType.CONVERSATION_ENDED: "The assistant ended a conversation. Please review the exchange.",
    NotificationType.SERIOUS: "A user shared a serious life situation that may benefit from personal pastoral care.",
}


def _e(value: Optional[object]) -> str:
    if value is None or value == "":
        return "<em>not provided</em>"
    return html.escape(str(value))


def _multiline(value: str) -> str:
    return html.escape(value).replace("\n", "<br>")


def format_timestamp(ts: datetime) -> str:
    return ts.astimezone(DISPLAY_TZ).strftime("%B %d, %Y at %I:%M %p %Z")


def _row(label: str, value: str) -> str:
    return (
        f'<tr><td style="padding:4px 12px 4px 0;color:#6b7280;vertical-align:top">{label}</td>'
        f'<td style="padding:4px 0">{value}</td></tr>'
    )


def render_transcript(turns: Sequence[ConversationTurn]) -> str:
    if not turns:
        return "<p><em>No prior conversation.</em></p>"
    parts: List[str] = []
    for turn in turns:
        speaker = "User" if turn.get("role") == "user" else "Assistant"
        parts.append(
            f'<p style="margin:6px 0"><strong>{speaker}:</strong> '
            f'{_multiline(turn.get("content") or "")}</p>'
        )
    return "\n".join(parts)


def _shell(color: str, title: str, body: str) -> str:
    return (
        '<div style="font-family:Arial,Helvetica,sans-serif;max-width:680px;margin:0 auto">'
        f'<div style="background:{color};color:#ffffff;padding:16px 20px;border-radius:6px 6px 0 0">'
        f'<h2 style="margin:0">{html.escape(title)}</h2></div>'
        f'<div style="border:1px solid #e5e7eb;border-top:none;padding:20px">{body}</div></div>'
    )


def render_escalation_email(event: EscalationEvent, *, public_base_url: str) -> str:
    rows = [
        _row("Time", html.escape(format_timestamp(event.timestamp))),
        _row("Severity", html.escape(event.urgency.severity)),
        _row("Name", _e(event.first_name)),
        _row("Email", _e(event.user_email)),
        _row("Mentioned age", _e(event.mentioned_age)),
        _row("Session", _e(event.session_id)),
        _row("IP address", _e(event.client_ip)),
        _row("User agent", _e(event.user_agent)),
    ]
    if event.additional_signals:
        rows.append(_row("Also detected", html.escape(", ".join(event.additional_signals))))

    sections = [
        f"<p>{html.escape(_INTROS[event.type])}</p>",
        f'<table style="border-collapse:collapse;font-size:14px">{"".join(rows)}</table>',
        "<h3>Triggering message</h3>",
        f'<blockquote style="border-left:4px solid {event.urgency.color};margin:0;padding:8px 12px">'
        f"{_multiline(event.question)}</blockquote>",
        "<h3>Reply sent to the user</h3>",
        f"<p>{_multiline(event.answer) if event.answer else '<em>none</em>'}</p>",
        "<h3>Full conversation</h3>",
        render_transcript(event.conversation_history),
    ]
    if event.type is NotificationType.MINOR_ABUSE:
        sections.append(
            "<p><strong>Louisiana Child Protective Services hotline: "
            f"{LOUISIANA_CPS_HOTLINE}</strong> (24/7). Report before contacting the family.</p>"
        )
    if event.type in (NotificationType.SUICIDE_THREAT, NotificationType.HOMICIDE_THREAT):
        sections.append("<p><strong>If there is imminent danger, call 911.</strong></p>")
    sections.append(
        f'<p style="font-size:12px;color:#6b7280">Review moderation activity at '
        f'<a href="{html.escape(public_base_url)}/admin/moderation">'
        f"{html.escape(public_base_url)}/admin/moderation</a>.</p>"
    )
    return _shell(event.urgency.color, event.subject, "\n".join(sections))


def render_mandatory_contact_email(
    *,
    session_id: str,
    full_name: str,
    age: str,
    phone: str,
    address: str,
    google_email: Optional[str],
    submitted_at: datetime,
    color: str,
    subject: str,
    public_base_url: str,
) -> str:
    rows = "".join([
        _row("Full name", _e(full_name)),
        _row("Age", _e(age)),
        _row("Phone", _e(phone)),
        _row("Address", _e(address)),
        _row("Google email", _e(google_email)),
        _row("Session", _e(session_id)),
        _row("Submitted", html.escape(format_timestamp(submitted_at))),
    ])
    body = "\n".join([
        "<p>A minor who described abuse has provided contact details for follow-up. "
        "Louisiana law requires clergy to report suspected child abuse.</p>",
        f'<table style="border-collapse:collapse;font-size:14px">{rows}</table>',
        f"<p><strong>Call Louisiana Child Protective Services: {LOUISIANA_CPS_HOTLINE}</strong> "
        "(24/7), or 911 if the child is in immediate danger.</p>",
        f'<p style="font-size:12px;color:#6b7280">Session conversation: '
        f'{html.escape(public_base_url)}/admin/guidance-logs?session={html.escape(quote(session_id))}</p>',
    ])
    return _shell(color, subject, body)
