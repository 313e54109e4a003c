"""
Module: core.markers

Purpose:
    Formats of the markers the rewriter embeds in source and the host
    script prints back. Kept in one place so the rewriter, driver and
    correlator agree on them.

    Line-delta marker (in rewritten source):
        /*`3`*/        three newlines were removed here
    Console tag (in rewritten source):
        global['`console`'].log(7, ...)   call on physical line 7
    Console tag (in interpreter output):
        `{7}`text      text printed by the call on line 7

Key Functions:
    - line_delta_marker(): Encode a line-delta marker
    - scan_line_deltas(): Sum the deltas found in one logical line
    - console_wrapper_call(): Source prefix for a tagged console call
    - split_console_tag(): Parse a tagged output block

Used By:
    - inline_repl.rewriter.console
    - inline_repl.rewriter.chains
    - inline_repl.driver.driver
    - inline_repl.core.classification
"""

from __future__ import annotations

import re
from typing import Optional, Tuple

# Name of the console shim installed in the REPL context by repl_server.js
CONSOLE_SHIM_NAME = "`console`"

LINE_DELTA_PATTERN = re.compile(r"/\*`(\d+)`\*/")
CONSOLE_TAG_PATTERN = re.compile(r"^`\{(\d+)\}`([\s\S]*)$")


def line_delta_marker(delta: int) -> str:
    """Encode a line-delta marker for ``delta`` collapsed newlines."""
    if delta < 0:
        raise ValueError(f"Line delta cannot be negative: {delta}")
    return f"/*`{delta}`*/"


def scan_line_deltas(text: str) -> int:
    """
    Sum every line-delta marker in ``text``.

    Example:
        >>> scan_line_deltas("a /*`1`*/.b() /*`2`*/.c()")
        3
    """
    return sum(int(match.group(1)) for match in LINE_DELTA_PATTERN.finditer(text))


def console_wrapper_call(function: str, line: int) -> str:
    """Source text that replaces ``console.<function>(`` on a physical line."""
    return f"global['{CONSOLE_SHIM_NAME}'].{function}({line}, "


def split_console_tag(text: str) -> Optional[Tuple[int, str]]:
    """
    Split a tagged output block into (line, message).

    Returns None when the block does not start with a console tag.

    Example:
        >>> split_console_tag("`{3}`hello")
        (3, 'hello')
    """
    match = CONSOLE_TAG_PATTERN.match(text)
    if match is None:
        return None
    return int(match.group(1)), match.group(2) or ""
