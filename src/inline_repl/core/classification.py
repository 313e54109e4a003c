"""
Module: core.classification

Purpose:
    Classify raw REPL output text into line-attributed events. Shared by the
    driver (which pre-classifies) and the correlator (which classifies any
    event that arrives raw), so both deployment shapes use one rule set.

    Rules, checked in order:
    1. Noise (empty text, "..." continuation prompts, a literal "undefined")
       is discarded.
    2. Uncaught error: the first non-empty line of the block is
       ``[Uncaught ]<Name>[ [CODE]]: <message>`` where <Name> ends in
       "Error" or "Exception" (a leading bare "Uncaught:" line is skipped).
       Attributed to the line current at the time the text was printed.
    3. Console output: the block starts with a console tag `{N}`;
       attributed to line N.
    Anything else is logged verbatim at INFO and discarded.

Key Functions:
    - is_noise(): Control noise check
    - match_uncaught_error(): Rule 2
    - classify_output(): Apply all rules

Used By:
    - inline_repl.driver.driver
    - inline_repl.correlator.correlator
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from .markers import split_console_tag
from .models.events import ErrorDescriptor, OutputEvent, RawOutput

logger = logging.getLogger(__name__)

CONTINUATION_PROMPT = re.compile(r"^\.{3,}$")

UNCAUGHT_ERROR = re.compile(
    r"^(?:Uncaught\s+)?"
    r"(?P<name>(?:[A-Za-z_$][\w$]*)?(?:Error|Exception)(?:\s\[[^\]]+\])?)"
    r":\s(?P<message>.*)$"
)

NO_VALUE_ECHO = "undefined"

UNCAUGHT_HEADER = "Uncaught:"


def is_noise(text: str) -> bool:
    """True for output that never becomes an event."""
    stripped = text.strip()
    return (
        stripped == ""
        or stripped == NO_VALUE_ECHO
        or CONTINUATION_PROMPT.match(stripped) is not None
    )


def match_uncaught_error(text: str) -> Optional[ErrorDescriptor]:
    """
    Match an uncaught-error block.

    Example:
        >>> match_uncaught_error("Uncaught TypeError: x is not a function\\n    at REPL1:1:1").name
        'TypeError'
    """
    stripped = text.strip()
    lines = stripped.splitlines()
    # Node puts long error lines under a bare "Uncaught:" header
    if len(lines) > 1 and lines[0].strip() == UNCAUGHT_HEADER:
        lines = lines[1:]
    first_line = lines[0] if lines else ""
    match = UNCAUGHT_ERROR.match(first_line)
    if match is None:
        return None
    return ErrorDescriptor(
        name=match.group("name"),
        message=match.group("message").strip(),
        detail=stripped,
    )


def classify_output(event: OutputEvent) -> Optional[OutputEvent]:
    """
    Classify a raw output event.

    Already-classified events are returned unchanged. Returns None when the
    text is noise or matches no rule; unmatched text is logged at INFO.
    """
    if event.is_classified:
        return event
    assert isinstance(event.value, RawOutput)

    text = event.value.text
    if is_noise(text):
        return None

    error = match_uncaught_error(text)
    if error is not None:
        return OutputEvent.error(event.line, error, event.run_id)

    tagged = split_console_tag(text.strip())
    if tagged is not None:
        line, message = tagged
        return OutputEvent.terminal(line, message, event.run_id)

    logger.info(text.rstrip("\r\n"))
    return None
