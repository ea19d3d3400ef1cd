from __future__ import annotations

import unittest

from authenticity.utils.text_processing import (
    convert_line_breaks,
    is_blank,
    prepare_for_display,
    sanitize,
)


class TestSanitize(unittest.TestCase):
    def test_escapes_markup_characters(self) -> None:
        self.assertEqual(sanitize("<a href=\"x\">'&'</a>"), "&lt;a href=&quot;x&quot;&gt;&#x27;&amp;&#x27;&lt;/a&gt;")

    def test_ampersand_is_escaped_once(self) -> None:
        self.assertEqual(sanitize("&lt;"), "&amp;lt;")

    def test_clean_text_is_unchanged(self) -> None:
        clean = "Plain words, numbers 123 and ünïcödé."
        self.assertEqual(sanitize(clean), clean)
        self.assertEqual(sanitize(sanitize(clean)), clean)

    def test_total_on_empty_and_none(self) -> None:
        self.assertEqual(sanitize(""), "")
        self.assertEqual(sanitize(None), "")

    def test_control_characters_pass_through(self) -> None:
        self.assertEqual(sanitize("a\tb\x00c"), "a\tb\x00c")


class TestLineBreaks(unittest.TestCase):
    def test_converts_all_newline_styles(self) -> None:
        self.assertEqual(convert_line_breaks("a\nb\r\nc\rd"), "a<br />b<br />c<br />d")

    def test_prepare_sanitizes_before_converting(self) -> None:
        self.assertEqual(prepare_for_display("<x>\n&"), "&lt;x&gt;<br />&amp;")


class TestIsBlank(unittest.TestCase):
    def test_blank_values(self) -> None:
        for value in (None, "", "   \n\t", 42):
            self.assertTrue(is_blank(value))
        self.assertFalse(is_blank(" text "))


if __name__ == "__main__":
    unittest.main()
