from __future__ import annotations

import unittest
from unittest.mock import MagicMock

from authenticity.config import Settings
from authenticity.models.schemas import ParaphraseStyle
from authenticity.services.errors import ContentBlockedError, InputValidationError, MalformedResponseError
from authenticity.services.paraphraser import (
    PARAPHRASE_PROMPT,
    STYLE_MODIFIERS,
    Paraphraser,
    build_prompt,
    resolve_style,
)
from authenticity.services.retry import RetryingFetchClient


class TestResolveStyle(unittest.TestCase):
    def test_known_styles(self) -> None:
        self.assertIs(resolve_style("formal"), ParaphraseStyle.FORMAL)
        self.assertIs(resolve_style(" Casual "), ParaphraseStyle.CASUAL)
        self.assertIs(resolve_style(ParaphraseStyle.SIMPLE), ParaphraseStyle.SIMPLE)

    def test_unknown_or_missing_falls_back_to_default(self) -> None:
        for value in (None, "", "shakespearean", 3):
            self.assertIs(resolve_style(value), ParaphraseStyle.DEFAULT)


class TestBuildPrompt(unittest.TestCase):
    def test_default_is_base_prompt(self) -> None:
        self.assertEqual(build_prompt(ParaphraseStyle.DEFAULT), PARAPHRASE_PROMPT)

    def test_style_modifier_is_appended(self) -> None:
        prompt = build_prompt(ParaphraseStyle.FORMAL)
        self.assertTrue(prompt.startswith(PARAPHRASE_PROMPT))
        self.assertIn(STYLE_MODIFIERS[ParaphraseStyle.FORMAL], prompt)


class TestParaphraser(unittest.TestCase):
    def setUp(self) -> None:
        self.llm = MagicMock()
        self.paraphraser = Paraphraser(
            settings=Settings(),
            llm=self.llm,
            fetcher=RetryingFetchClient(sleep=lambda _s: None),
        )

    def test_rejects_blank_text(self) -> None:
        with self.assertRaises(InputValidationError):
            self.paraphraser.paraphrase("  ")
        self.llm.assert_not_called()

    def test_output_is_trimmed_and_style_reported(self) -> None:
        self.llm.return_value = "\n  Rewritten text.  \n"
        result = self.paraphraser.paraphrase("Original text.", "casual")

        self.assertEqual(result.paraphrased_text, "Rewritten text.")
        self.assertIs(result.style, ParaphraseStyle.CASUAL)
        payload = self.llm.call_args.args[0]
        self.assertIn(STYLE_MODIFIERS[ParaphraseStyle.CASUAL], payload["system_prompt"])
        self.assertNotIn("response_schema", payload)

    def test_unknown_style_uses_default_prompt(self) -> None:
        self.llm.return_value = "ok"
        result = self.paraphraser.paraphrase("Original text.", "pirate")
        self.assertIs(result.style, ParaphraseStyle.DEFAULT)
        self.assertEqual(self.llm.call_args.args[0]["system_prompt"], PARAPHRASE_PROMPT)

    def test_empty_reply_is_malformed(self) -> None:
        self.llm.return_value = "   "
        with self.assertRaises(MalformedResponseError):
            self.paraphraser.paraphrase("Original text.")

    def test_safety_block_is_not_retried(self) -> None:
        self.llm.side_effect = ContentBlockedError("blocked", "SAFETY")
        with self.assertRaises(ContentBlockedError):
            self.paraphraser.paraphrase("Original text.")
        self.assertEqual(self.llm.call_count, 1)


if __name__ == "__main__":
    unittest.main()
