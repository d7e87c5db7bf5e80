"""
Email clients: base, Resend provider, no-op fallback.

build_email_client(config) picks Resend when RESEND_API_KEY is set.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from guidance.clients.email.base import BaseEmailClient, EmailMessage
from guidance.clients.email.providers.noop import NoOpEmailClient
from guidance.clients.email.providers.resend import ResendEmailClient

if TYPE_CHECKING:
    from guidance.config.guidance import GuidanceConfig


def build_email_client(config: "GuidanceConfig") -> BaseEmailClient:
    if config.resend_api_key:
        return ResendEmailClient(config.resend_api_key, config.email_from)
    return NoOpEmailClient()


__all__ = [
    "BaseEmailClient",
    "EmailMessage",
    "NoOpEmailClient",
    "ResendEmailClient",
    "build_email_client",
]
