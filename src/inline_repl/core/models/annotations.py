"""
Module: annotations

Purpose:
    Display-ready, per-line state produced by the correlator.

Key Classes:
    - LineAnnotation: One line's aggregated result

Used By:
    - inline_repl.correlator.correlator
    - inline_repl.gui.annotation_model
    - inline_repl.cli
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from .events import OutputKind


@dataclass(frozen=True, slots=True)
class LineAnnotation:
    """
    Aggregated result for one source line.

    Attributes:
        line: 1-based physical source line.
        kind: Kind of the last replacing event, or Terminal for merged output.
        short_text: Single-line text shown next to the source line.
        detail_value: Full text for a detail / hover view.

    Example:
        >>> a = LineAnnotation(3, OutputKind.TERMINAL, "1, 2", "1\\n2")
        >>> a.short_text
        '1, 2'
    """

    line: int
    kind: OutputKind
    short_text: str
    detail_value: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "line": self.line,
            "kind": self.kind.value,
            "shortText": self.short_text,
            "detailValue": self.detail_value,
        }
