"""Tests for lexer lookup, highlighting and terminal sanitization."""

from __future__ import annotations

import re
import unittest

from remotebrowser.highlight import has_lexer, highlight_text, sanitize_terminal_text

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


class HighlightTests(unittest.TestCase):
    def test_has_lexer(self) -> None:
        self.assertTrue(has_lexer("main.py"))
        self.assertTrue(has_lexer("/srv/app/Makefile"))
        self.assertFalse(has_lexer("archive.zip"))
        self.assertFalse(has_lexer(""))

    def test_sanitize_escapes_control_bytes(self) -> None:
        self.assertEqual(sanitize_terminal_text("a\x1b[31mb\x07"), "a\\x1b[31mb\\x07")
        self.assertEqual(sanitize_terminal_text("tab\tline\n"), "tab\tline\n")

    def test_terminal_output_keeps_text(self) -> None:
        rendered = highlight_text("x = 1\n", "a.py")
        self.assertIn("\x1b[", rendered)
        self.assertEqual(_ANSI_RE.sub("", rendered), "x = 1\n")

    def test_terminal_output_neutralizes_remote_escapes(self) -> None:
        rendered = highlight_text("\x1b]0;title\x07\n", "notes.txt")
        self.assertNotIn("\x07", rendered)
        self.assertIn("\\x1b", rendered)

    def test_html_output(self) -> None:
        rendered = highlight_text("def f():\n    return 1\n", "a.py", output="html")
        self.assertIn("<span", rendered)
        self.assertIn("return", rendered)

    def test_unknown_style_and_name_fall_back(self) -> None:
        rendered = highlight_text("<plain>\n", "data.unknownext", style="no-such-style", output="html")
        self.assertEqual(rendered, "&lt;plain&gt;\n")

    def test_unknown_output_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            highlight_text("x", "a.py", output="latex")


if __name__ == "__main__":
    unittest.main()
