"""Unit tests for PromptAssembler."""
from __future__ import annotations

import unittest

from guidance.pipeline.prompts import EXCERPT_LIMIT, PromptAssembler, format_passages
from guidance.pipeline.types import ClassificationLabel, InputClassification, SupportingPassage

_NORMAL = InputClassification(label=ClassificationLabel.NORMAL)
_CRISIS = InputClassification(label=ClassificationLabel.NORMAL, crisis_signal=True)

_PASSAGE = SupportingPassage(
    title="Hope in the Valley",
    content="Even though I walk through the darkest valley...",
    date="2024-05-12",
    scripture_reference="Psalm 23:4",
)


class TestPromptAssembler(unittest.TestCase):
    def setUp(self) -> None:
        self.assembler = PromptAssembler(max_history_turns=4)

    def test_crisis_requires_hotlines_first(self) -> None:
        prompt = self.assembler.build_system_prompt(_CRISIS, [], sign_off="Blessings to you, Your pastor")
        self.assertIn("CRISIS DETECTED", prompt)
        self.assertIn("988", prompt)
        self.assertIn("911", prompt)
        self.assertIn("741741", prompt)

    def test_no_crisis_block_for_normal(self) -> None:
        prompt = self.assembler.build_system_prompt(_NORMAL, [], sign_off="x")
        self.assertNotIn("CRISIS DETECTED", prompt)

    def test_passages_are_cited(self) -> None:
        prompt = self.assembler.build_system_prompt(_NORMAL, [_PASSAGE], sign_off="x")
        self.assertIn("RELEVANT TEACHINGS FROM CORNERSTONE CHURCH SERMONS", prompt)
        self.assertIn('"Hope in the Valley"', prompt)
        self.assertIn("Scripture: Psalm 23:4", prompt)
        self.assertIn("Date: 5/12/2024", prompt)
        self.assertNotIn("No specific sermon content", prompt)

    def test_no_passages_falls_back_to_general_wisdom(self) -> None:
        prompt = self.assembler.build_system_prompt(_NORMAL, [], sign_off="x")
        self.assertIn("No specific sermon content is available", prompt)
        self.assertNotIn("RELEVANT TEACHINGS", prompt)

    def test_sign_off_and_name_injected(self) -> None:
        prompt = self.assembler.build_system_prompt(
            _NORMAL, [], sign_off="Grace and peace, Your pastor", first_name="Ruth",
        )
        self.assertIn('"Grace and peace, Your pastor"', prompt)
        self.assertIn("named Ruth", prompt)

    def test_excerpt_truncated(self) -> None:
        long_passage = SupportingPassage(title="Long", content="a" * (EXCERPT_LIMIT + 50))
        text = format_passages([long_passage])
        self.assertIn("a" * EXCERPT_LIMIT + "...", text)
        self.assertNotIn("a" * (EXCERPT_LIMIT + 1), text)

    def test_message_order_and_roles(self) -> None:
        history = [
            {"role": "user", "content": "first"},
            {"role": "bot", "content": "reply"},
            {"role": "user", "content": "   "},
        ]
        request = self.assembler.assemble(_NORMAL, [], history, "new question", sign_off="x")
        roles = [m["role"] for m in request.messages]
        self.assertEqual(roles, ["system", "user", "assistant", "user"])
        self.assertEqual(request.messages[-1]["content"], "new question")
        self.assertEqual(request.system_prompt, request.messages[0]["content"])

    def test_history_capped_to_most_recent(self) -> None:
        history = [{"role": "user", "content": f"turn {i}"} for i in range(10)]
        request = self.assembler.assemble(_NORMAL, [], history, "q", sign_off="x")
        contents = [m["content"] for m in request.messages[1:-1]]
        self.assertEqual(contents, ["turn 6", "turn 7", "turn 8", "turn 9"])


if __name__ == "__main__":
    unittest.main()
