"""Unit tests for the Resend email client and the email client factory."""
from __future__ import annotations

import asyncio
import json
import unittest

import httpx

from guidance.clients.email import EmailMessage, NoOpEmailClient, ResendEmailClient, build_email_client
from guidance.config.guidance import GuidanceConfig
from guidance.core.exceptions import ExternalServiceError

_MESSAGE = EmailMessage(
    to=["pastor@example.org"],
    subject="Crisis Alert",
    html="<p>hello</p>",
    reply_to="ruth@example.com",
    tags=["crisis"],
)


def _run(coro):
    return asyncio.run(coro)


class TestResendEmailClient(unittest.TestCase):
    def test_posts_payload_with_bearer_key(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"id": "email_123"})

        client = ResendEmailClient("re_key", "Alerts <alerts@example.org>", transport=httpx.MockTransport(handler))
        message_id = _run(client.send(_MESSAGE))

        self.assertEqual(message_id, "email_123")
        request = seen[0]
        self.assertEqual(str(request.url), "https://api.resend.com/emails")
        self.assertEqual(request.headers["authorization"], "Bearer re_key")
        body = json.loads(request.content)
        self.assertEqual(body["from"], "Alerts <alerts@example.org>")
        self.assertEqual(body["to"], ["pastor@example.org"])
        self.assertEqual(body["reply_to"], "ruth@example.com")
        self.assertEqual(body["tags"], [{"name": "category", "value": "crisis"}])

    def test_optional_fields_omitted(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"id": "x"})

        client = ResendEmailClient("k", "a@b.c", transport=httpx.MockTransport(handler))
        _run(client.send(EmailMessage(to=["p@example.org"], subject="s", html="h")))
        self.assertNotIn("reply_to", seen[0])
        self.assertNotIn("tags", seen[0])

    def test_error_status_raises(self) -> None:
        client = ResendEmailClient(
            "k", "a@b.c", transport=httpx.MockTransport(lambda r: httpx.Response(422, json={"message": "bad"}))
        )
        with self.assertRaises(ExternalServiceError) as ctx:
            _run(client.send(_MESSAGE))
        self.assertEqual(ctx.exception.details["status"], 422)

    def test_transport_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused")

        client = ResendEmailClient("k", "a@b.c", transport=httpx.MockTransport(handler))
        with self.assertRaises(ExternalServiceError):
            _run(client.send(_MESSAGE))


class TestBuildEmailClient(unittest.TestCase):
    def test_resend_when_key_present(self) -> None:
        client = build_email_client(GuidanceConfig(resend_api_key="re_key"))
        self.assertEqual(client.provider, "resend")

    def test_noop_without_key(self) -> None:
        client = build_email_client(GuidanceConfig())
        self.assertIsInstance(client, NoOpEmailClient)
        _run(client.send(_MESSAGE))
        self.assertEqual(client.sent, [_MESSAGE])


if __name__ == "__main__":
    unittest.main()
