"""
Module: correlator.correlator

Purpose:
    Merge a run's OutputEvents into one LineAnnotation per source line.
    Events may arrive out of line order (async results settle late), so
    every mutation is keyed by the event's line, never by arrival order.

    - Terminal events append to the line's console annotation
      (short text joined with ", ", detail with newlines).
    - Expression and Error events replace the line's annotation.
    - Raw events are classified first; noise is dropped.
    - Console and error output is echoed to the log at INFO.

Key Classes:
    - Correlator: Owns the annotation table for the current run

Used By:
    - inline_repl.session.ReplSession
    - inline_repl.gui.bridge
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Optional

from inline_repl.core.classification import classify_output
from inline_repl.core.models.annotations import LineAnnotation
from inline_repl.core.models.events import ConsoleText, ErrorDescriptor, OutputEvent, OutputKind
from .formatting import describe, shorten

logger = logging.getLogger(__name__)

DEFAULT_MAX_SHORT_TEXT = 120

AnnotationListener = Callable[[List[LineAnnotation]], None]


class Correlator:
    """
    Per-line annotation table for the current run.

    Thread-safe: ``update`` normally runs on the session's listener thread
    while a UI reads ``annotations()`` from its own thread.

    Example:
        >>> c = Correlator()
        >>> _ = c.update(OutputEvent.terminal(3, "a"))
        >>> [a.short_text for a in c.update(OutputEvent.terminal(3, "b"))]
        ['a, b']
    """

    def __init__(self, max_short_text: int = DEFAULT_MAX_SHORT_TEXT) -> None:
        self.max_short_text = max_short_text
        self._table: Dict[int, LineAnnotation] = {}
        self._lock = threading.Lock()
        self._listeners: List[AnnotationListener] = []

    def add_listener(self, listener: AnnotationListener) -> None:
        """Call ``listener`` with the full table after every change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: AnnotationListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def reset(self) -> None:
        """Clear the table. Called once at the start of every run."""
        with self._lock:
            self._table.clear()
        self._publish([])

    def update(self, event: OutputEvent) -> List[LineAnnotation]:
        """
        Apply one event and return the updated table, ordered by line.

        Unclassifiable raw output leaves the table unchanged.
        """
        classified = classify_output(event)
        if classified is None:
            logger.debug(f"Discarded output on line {event.line}")
            return self.annotations()

        short, detail = describe(classified.value, self.max_short_text)
        with self._lock:
            if classified.kind is OutputKind.TERMINAL:
                annotation = self._merge_console(classified.line, short, detail)
            else:
                annotation = LineAnnotation(classified.line, classified.kind, short, detail)
            self._table[classified.line] = annotation
            snapshot = self._snapshot()

        logger.debug(f"  line {annotation.line} [{annotation.kind.value}] {annotation.short_text}")
        self._log_output(classified)
        self._publish(snapshot)
        return snapshot

    @staticmethod
    def _log_output(event: OutputEvent) -> None:
        """Echo console and error output to the log (the editor's output panel)."""
        value = event.value
        if isinstance(value, ConsoleText):
            logger.info(f"  {value.text}")
        elif isinstance(value, ErrorDescriptor):
            logger.info(f"  {value.summary}\n\tat line {event.line}")

    def _merge_console(self, line: int, short: str, detail: str) -> LineAnnotation:
        existing = self._table.get(line)
        if existing is None or existing.kind is not OutputKind.TERMINAL:
            return LineAnnotation(line, OutputKind.TERMINAL, short, detail)
        return LineAnnotation(
            line,
            OutputKind.TERMINAL,
            shorten(f"{existing.short_text}, {short}", self.max_short_text),
            f"{existing.detail_value}\n{detail}",
        )

    def _snapshot(self) -> List[LineAnnotation]:
        return [self._table[line] for line in sorted(self._table)]

    def _publish(self, snapshot: List[LineAnnotation]) -> None:
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Annotation listener failed")

    def annotations(self) -> List[LineAnnotation]:
        """The whole table, ordered by line."""
        with self._lock:
            return self._snapshot()

    def annotations_except(self, line: int) -> List[LineAnnotation]:
        """The table without ``line``, for redrawing while that line is edited."""
        return [a for a in self.annotations() if a.line != line]

    def get(self, line: int) -> Optional[LineAnnotation]:
        with self._lock:
            return self._table.get(line)

    def __len__(self) -> int:
        with self._lock:
            return len(self._table)
