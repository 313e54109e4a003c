"""
Module: rewriter.console

Purpose:
    Tag console calls with the physical line they are written on. A console
    call can run long after the REPL has moved past its line (callbacks,
    timers, loops), so the REPL's current line cannot be trusted for it. The
    tag travels with the call and is printed back by the console shim.

        console.log(x)   on line 7  ->  global['`console`'].log(7, x)

Key Functions:
    - tag_console_calls(): Tag every console call in a document
    - split_lines(): Split text into lines, keeping the line endings
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import List, Sequence, Tuple

from inline_repl.config import DEFAULT_CONSOLE_FUNCTIONS
from inline_repl.core.markers import console_wrapper_call

LINE_BREAK = re.compile(r"(\r?\n)")


@lru_cache(maxsize=8)
def _console_call_pattern(functions: Tuple[str, ...]) -> re.Pattern:
    names = "|".join(re.escape(name) for name in functions)
    return re.compile(rf"(?<![\w$])console\s*\.\s*({names})\s*\(")


def split_lines(source: str) -> Tuple[List[str], List[str]]:
    """
    Split ``source`` into lines and the line endings between them.

    ``lines[i] + endings[i]`` for all i, plus the last line, rebuilds the text.
    """
    parts = LINE_BREAK.split(source)
    return parts[0::2], parts[1::2]


def join_lines(lines: Sequence[str], endings: Sequence[str]) -> str:
    out = []
    for index, line in enumerate(lines):
        out.append(line)
        if index < len(endings):
            out.append(endings[index])
    return "".join(out)


def tag_console_calls(
    source: str,
    functions: Sequence[str] = DEFAULT_CONSOLE_FUNCTIONS,
) -> str:
    """
    Pass the 1-based physical line number as the first argument of every
    console call, routed through the shim installed by the host script.

    Example:
        >>> tag_console_calls("let x = 1;\\nconsole.log(x);")
        "let x = 1;\\nglobal['`console`'].log(2, x);"
    """
    pattern = _console_call_pattern(tuple(functions))
    lines, endings = split_lines(source)
    tagged = [
        pattern.sub(lambda m, n=number: console_wrapper_call(m.group(1), n), line)
        for number, line in enumerate(lines, start=1)
    ]
    return join_lines(tagged, endings)
