"""Cleanup of raw text extracted from PDFs."""

import re

# Any whitespace run containing two or more newlines marks a paragraph break.
_PARAGRAPH_BREAK = re.compile(r"\s*\n\s*\n\s*")
_WHITESPACE = re.compile(r"\s+")


def normalize(raw_text: str) -> str:
    """Normalize extracted text into single-spaced paragraphs.

    Line endings are unified to ``\\n``; paragraph breaks (2+ newlines) become
    exactly ``\\n\\n``; every other whitespace run, single newlines included,
    becomes one space. Sentence punctuation is left untouched.
    The result is stable: ``normalize(normalize(x)) == normalize(x)``.

    Raises:
        TypeError: if ``raw_text`` is not a string
    """
    if not isinstance(raw_text, str):
        raise TypeError(f"normalize() expects str, got {type(raw_text).__name__}")

    text = raw_text.replace("\r\n", "\n").replace("\r", "\n")
    paragraphs = (_WHITESPACE.sub(" ", part).strip() for part in _PARAGRAPH_BREAK.split(text))
    return "\n\n".join(p for p in paragraphs if p)
