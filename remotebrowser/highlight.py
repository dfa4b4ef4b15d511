"""Syntax highlighting and lexer lookup for remote text content.

Pygments renders text previews (ANSI for terminals, HTML for browser views)
and its lexer registry is the fallback oracle for "is this a text file?".
Also neutralizes terminal control bytes before remote text is printed.
"""

from __future__ import annotations

import re
from functools import lru_cache

from pygments import highlight as pygments_highlight
from pygments.formatters import HtmlFormatter, TerminalFormatter
from pygments.lexers import TextLexer, get_lexer_for_filename
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from .model import paths

DEFAULT_STYLE = "monokai"
FORMATS = ("terminal", "html")

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")

_VALID_STYLES: set[str] = set()
_INVALID_STYLES: set[str] = set()
_FORMATTERS: dict[tuple[str, str], object] = {}


def sanitize_terminal_text(source: str) -> str:
    """Escape terminal control bytes to avoid side effects (bell, cursor moves, etc.)."""
    if _CONTROL_RE.search(source) is None:
        return source

    out: list[str] = []
    for ch in source:
        code = ord(ch)
        if ch in {"\n", "\r", "\t"}:
            out.append(ch)
            continue
        # C0 controls + DEL + C1 controls.
        if code < 32 or code == 127 or 0x80 <= code <= 0x9F:
            out.append(f"\\x{code:02x}")
            continue
        out.append(ch)
    return "".join(out)


@lru_cache(maxsize=512)
def _lexer_known(lookup_name: str) -> bool:
    try:
        get_lexer_for_filename(lookup_name)
    except ClassNotFound:
        return False
    return True


def has_lexer(name: str) -> bool:
    """Return whether Pygments recognizes ``name`` as some source/text format."""
    leaf = paths.basename(name) if "/" in name else name
    if not leaf:
        return False
    ext = paths.extension(leaf)
    # Cache by extension; full names only matter for extensionless files (Makefile).
    return _lexer_known(f"x.{ext}" if ext and not leaf.startswith(".") else leaf)


def _normalize_style(style: str) -> str:
    """Validate/canonicalize requested style name with cache-backed checks."""
    if style in _VALID_STYLES:
        return style
    if style in _INVALID_STYLES:
        return DEFAULT_STYLE

    try:
        get_style_by_name(style)
    except ClassNotFound:
        _INVALID_STYLES.add(style)
        return DEFAULT_STYLE
    _VALID_STYLES.add(style)
    return style


def _formatter(style: str, output: str):
    key = (style, output)
    formatter = _FORMATTERS.get(key)
    if formatter is not None:
        return formatter
    if output == "html":
        formatter = HtmlFormatter(style=style, nowrap=True)
    else:
        formatter = TerminalFormatter(style=style)
    _FORMATTERS[key] = formatter
    return formatter


def highlight_text(source: str, name: str, style: str = DEFAULT_STYLE, output: str = "terminal") -> str:
    """Highlight ``source`` for display, picking the lexer from the file name.

    Unknown names fall back to the plain text lexer. Terminal output is
    sanitized first so remote content cannot drive the terminal.
    """
    if output not in FORMATS:
        raise ValueError(f"unknown highlight output: {output!r}")
    style = _normalize_style(style)
    try:
        lexer = get_lexer_for_filename(paths.basename(name) if "/" in name else name, source)
    except ClassNotFound:
        lexer = TextLexer()
    text = sanitize_terminal_text(source) if output == "terminal" else source
    return pygments_highlight(text, lexer, _formatter(style, output))


__all__ = ["DEFAULT_STYLE", "has_lexer", "highlight_text", "sanitize_terminal_text"]
