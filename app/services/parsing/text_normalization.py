"""
Text normalization for parsing - strip WhatsApp copy/paste noise, keep line structure.

Identity and address answers are multi-line, so unlike a plain whitespace collapse we
keep newlines and only tidy up each line.
"""

import re
import unicodedata

NBSP = "\u00A0"
ZWSP = "\u200B"
ZWNBSP = "\uFEFF"

_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_INLINE_SPACES = re.compile(r"[ \t]+")


def normalize_text(text: str | None) -> str:
    """
    Normalize user input: fix common unicode, collapse spaces within lines, strip.

    Args:
        text: Raw user message (or None)

    Returns:
        Normalized string with line breaks preserved as "\\n" (empty if input is None)
    """
    if not text or not isinstance(text, str):
        return ""
    s = text.replace(NBSP, " ").replace(ZWSP, "").replace(ZWNBSP, "")
    s = unicodedata.normalize("NFC", s)
    lines = [_INLINE_SPACES.sub(" ", line).strip() for line in _LINE_BREAK.split(s)]
    return "\n".join(lines).strip()


def non_empty_lines(text: str | None) -> list[str]:
    return [line for line in normalize_text(text).split("\n") if line]
