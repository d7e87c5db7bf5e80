"""No-op email client for deployments without RESEND_API_KEY: logs instead of sending."""
from __future__ import annotations

import logging
from typing import List, Optional

from guidance.clients.email.base import BaseEmailClient, EmailMessage

logger = logging.getLogger(__name__)


class NoOpEmailClient(BaseEmailClient):
    def __init__(self) -> None:
        self.sent: List[EmailMessage] = []

    @property
    def provider(self) -> str:
        return "noop"

    async def send(self, message: EmailMessage) -> Optional[str]:
        self.sent.append(message)
        logger.warning(
            "NoOpEmailClient: email not sent (no provider configured) to=%s subject=%r",
            ", ".join(message.to), message.subject,
        )
        return None
