"""Unit tests for the LLM registry and providers."""
from __future__ import annotations

import asyncio
import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock

from guidance.clients.llm import LLMConfig, default_registry
from guidance.clients.llm.providers.noop import NOOP_MESSAGE
from guidance.clients.llm.providers.openai import OpenAILLMClient
from guidance.config.guidance import GuidanceConfig


def _run(coro):
    return asyncio.run(coro)


def _completion(*contents):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=c)) for c in contents])


class TestRegistry(unittest.TestCase):
    def test_noop_without_key(self) -> None:
        cfg = LLMConfig.from_guidance(GuidanceConfig())
        client = default_registry.build(cfg.provider, cfg.to_dict())
        self.assertEqual(client.provider, "noop")
        self.assertEqual(_run(client.chat([{"role": "user", "content": "hi"}])), NOOP_MESSAGE)

    def test_openai_with_key(self) -> None:
        cfg = LLMConfig.from_guidance(GuidanceConfig(llm_api_key="sk-test", llm_model="gpt-4o"))
        client = default_registry.build(cfg.provider, cfg.to_dict())
        self.assertIsInstance(client, OpenAILLMClient)

    def test_unknown_provider(self) -> None:
        with self.assertRaises(KeyError):
            default_registry.build("nope", {})


class TestOpenAILLMClient(unittest.TestCase):
    def setUp(self) -> None:
        self.client = OpenAILLMClient("gpt-4o-mini", api_key="sk-test", temperature=0.7, max_tokens=1024)
        self.create = AsyncMock(return_value=_completion("Peace be with you."))
        self.client._client = SimpleNamespace(
            chat=SimpleNamespace(completions=SimpleNamespace(create=self.create))
        )

    def test_chat_sends_messages(self) -> None:
        messages = [{"role": "system", "content": "be kind"}, {"role": "user", "content": "hello"}]
        self.assertEqual(_run(self.client.chat(messages)), "Peace be with you.")
        kwargs = self.create.await_args.kwargs
        self.assertEqual(kwargs["model"], "gpt-4o-mini")
        self.assertEqual(kwargs["messages"], messages)
        self.assertEqual(kwargs["temperature"], 0.7)
        self.assertEqual(kwargs["max_tokens"], 1024)

    def test_no_choices_is_empty(self) -> None:
        self.create.return_value = _completion()
        self.assertEqual(_run(self.client.chat([{"role": "user", "content": "hi"}])), "")

    def test_errors_propagate(self) -> None:
        self.create.side_effect = RuntimeError("rate limited")
        with self.assertRaises(RuntimeError):
            _run(self.client.chat([{"role": "user", "content": "hi"}]))


if __name__ == "__main__":
    unittest.main()
