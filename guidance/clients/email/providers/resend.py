"""Resend REST provider: POST https://api.resend.com/emails with a bearer key."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from guidance.clients.email.base import BaseEmailClient, EmailMessage
from guidance.core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"
_TIMEOUT_SECONDS = 10


class ResendEmailClient(BaseEmailClient):
    def __init__(
        self,
        api_key: str,
        sender: str,
        *,
        api_url: str = RESEND_API_URL,
        timeout_seconds: float = _TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._sender = sender
        self._api_url = api_url
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def provider(self) -> str:
        return "resend"

    def _payload(self, message: EmailMessage) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "from": self._sender,
            "to": list(message.to),
            "subject": message.subject,
            "html": message.html,
        }
        if message.reply_to:
            payload["reply_to"] = message.reply_to
        if message.tags:
            payload["tags"] = [{"name": "category", "value": tag} for tag in message.tags]
        return payload

    async def send(self, message: EmailMessage) -> Optional[str]:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds, transport=self._transport
            ) as client:
                resp = await client.post(
                    self._api_url,
                    json=self._payload(message),
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
        except httpx.HTTPError as exc:
            raise ExternalServiceError(
                "Email delivery failed", details={"provider": "resend"}, cause=exc
            ) from exc

        if resp.status_code >= 400:
            raise ExternalServiceError(
                "Email delivery failed",
                details={"provider": "resend", "status": resp.status_code, "body": resp.text[:500]},
            )
        try:
            message_id = resp.json().get("id")
        except ValueError:
            message_id = None
        logger.info("ResendEmailClient: sent %r (id=%s)", message.subject, message_id)
        return message_id
