"""
Module: rewriter.pipeline

Purpose:
    Compose the rewrite stages in their fixed order:
    import normalization -> module-path resolution -> console tagging ->
    chained-call collapsing.

    Console tagging must run before chain collapsing because it counts
    physical lines; collapsing removes them.

Key Classes:
    - SourceUnit: Document text plus the paths used for resolution

Key Functions:
    - rewrite_source(): Run all stages on raw text
    - rewrite_unit(): Run all stages on a SourceUnit

Used By:
    - inline_repl.session: rewrites each submission before feeding
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from inline_repl.config import DEFAULT_CONSOLE_FUNCTIONS, ReplConfig
from .chains import collapse_chained_calls
from .console import tag_console_calls
from .imports import normalize_imports
from .module_paths import PathLike, resolve_module_paths

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceUnit:
    """
    A document submitted for interpretation (immutable).

    Attributes:
        text: Full document text.
        base_path: Project root, also the REPL working directory.
        file_path: Path of the document, None for unsaved buffers.
    """

    text: str
    base_path: Optional[Path] = None
    file_path: Optional[Path] = None

    @property
    def line_count(self) -> int:
        return self.text.count("\n") + 1


def build_stages(
    base_path: Optional[PathLike] = None,
    file_path: Optional[PathLike] = None,
    console_functions: Sequence[str] = DEFAULT_CONSOLE_FUNCTIONS,
) -> List[Tuple[str, Callable[[str], str]]]:
    """Return the (name, transform) stages in application order."""
    return [
        ("imports", normalize_imports),
        ("module_paths", lambda text: resolve_module_paths(text, base_path, file_path)),
        ("console", lambda text: tag_console_calls(text, console_functions)),
        ("chains", collapse_chained_calls),
    ]


def rewrite_source(
    source: str,
    base_path: Optional[PathLike] = None,
    file_path: Optional[PathLike] = None,
    console_functions: Sequence[str] = DEFAULT_CONSOLE_FUNCTIONS,
) -> str:
    """
    Prepare JavaScript source for line-by-line feeding.

    Identity on text with no imports, requires, console calls or chain
    continuations. Running it on its own output changes nothing.

    Example:
        >>> rewrite_source('"foo"\\n  .toUpperCase()')
        '"foo" /*`1`*/.toUpperCase()'
    """
    for name, stage in build_stages(base_path, file_path, console_functions):
        rewritten = stage(source)
        if rewritten != source:
            logger.debug(f"Rewrite stage '{name}' changed the source")
        source = rewritten
    return source


def rewrite_unit(unit: SourceUnit, config: Optional[ReplConfig] = None) -> str:
    """Rewrite a SourceUnit using the console functions from ``config``."""
    config = config or ReplConfig()
    return rewrite_source(
        unit.text,
        base_path=unit.base_path,
        file_path=unit.file_path,
        console_functions=config.console_functions,
    )
