"""
Module: rewriter.chains

Purpose:
    Join fluent call chains that continue on a new line with a leading ".".
    The REPL reads input line by line and treats a line starting with "." as
    a REPL command, so

        "foo"
          .toUpperCase()

    becomes one logical line. The removed newlines are recorded in a
    line-delta marker so the driver keeps its line counter exact:

        "foo" /*`1`*/.toUpperCase()

    Known limitations: a "//" comment at the end of the line before the dot
    swallows the joined call, and dots inside strings or template literals
    that start a line are joined too.

Key Functions:
    - collapse_chained_calls(): Join every chain continuation in a document
"""

from __future__ import annotations

import re

from inline_repl.core.markers import line_delta_marker

# Whitespace containing at least one newline, followed by a dot
CHAIN_CONTINUATION = re.compile(r"[ \t]*(?:\r?\n[ \t]*)+(?=\.)")


def collapse_chained_calls(source: str) -> str:
    """
    Replace newline whitespace before a leading "." with a space and a
    line-delta marker.

    Example:
        >>> collapse_chained_calls('a\\n  .b()\\n  .c()')
        'a /*`1`*/.b() /*`1`*/.c()'
    """
    return CHAIN_CONTINUATION.sub(
        lambda m: " " + line_delta_marker(m.group(0).count("\n")),
        source,
    )
