"""
Module: correlator.formatting

Purpose:
    Turn event payloads into the short inline text and the detail text of
    a LineAnnotation.
"""

from __future__ import annotations

import re
from typing import Tuple

from inline_repl.core.models.events import (
    ConsoleText,
    ErrorDescriptor,
    EventValue,
    ExpressionValue,
)

NEWLINES = re.compile(r"\r?\n")
ELLIPSIS = "…"


def one_line(text: str) -> str:
    """Replace line breaks with single spaces."""
    return NEWLINES.sub(" ", text)


def shorten(text: str, limit: int) -> str:
    """
    One-line ``text`` and cut it to ``limit`` characters.

    Example:
        >>> shorten("abcdef", 4)
        'abc…'
    """
    text = one_line(text)
    if len(text) <= limit:
        return text
    return text[: limit - 1] + ELLIPSIS


def describe(value: EventValue, limit: int) -> Tuple[str, str]:
    """Return (short_text, detail_value) for a classified payload."""
    if isinstance(value, ExpressionValue):
        return shorten(value.text, limit), value.detail or value.text
    if isinstance(value, ErrorDescriptor):
        return shorten(value.summary, limit), value.detail or value.summary
    if isinstance(value, ConsoleText):
        return shorten(value.text, limit), value.text
    raise TypeError(f"Cannot describe unclassified payload {type(value).__name__}")
