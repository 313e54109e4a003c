"""
Module: gui.bridge

Purpose:
    Deliver a ReplSession's annotation table, failures and log lines to the
    Qt main thread. Correlator and failure callbacks fire on worker threads,
    so they only put onto queues; a QTimer drains the queues on the GUI
    thread and re-emits the contents as signals.

Key Classes:
    - SessionBridge: QObject wrapper around one ReplSession

Dependencies:
    - PySide6
"""

from __future__ import annotations

import logging
import queue
from pathlib import Path
from typing import List, Optional, Union

from PySide6.QtCore import QObject, QTimer, Signal

from inline_repl.config import ReplConfig
from inline_repl.core.models.annotations import LineAnnotation
from inline_repl.errors import DriverError
from inline_repl.logging_utils import attach_queue_handler, detach_queue_handler
from inline_repl.session import ReplSession

logger = logging.getLogger(__name__)

DRAIN_INTERVAL_MS = 100


class SessionBridge(QObject):
    """
    Qt-facing wrapper for one editor context.

    Usage:
        bridge = SessionBridge(base_path=project_root)
        bridge.annotationsChanged.connect(model.set_annotations)
        bridge.logMessage.connect(console.append_log)
        bridge.submit(editor.toPlainText(), file_path=document_path)
    """

    # Full annotation table, ordered by line (list of LineAnnotation)
    annotationsChanged = Signal(list)
    # Process-level failure message
    runFailed = Signal(str)
    # (level, message)
    logMessage = Signal(str, str)

    def __init__(
        self,
        config: Optional[ReplConfig] = None,
        *,
        base_path: Optional[Union[str, Path]] = None,
        session: Optional[ReplSession] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self.annotation_queue: queue.Queue = queue.Queue()
        self.failure_queue: queue.Queue = queue.Queue()
        self.log_queue: queue.Queue = queue.Queue()
        self._log_handler = attach_queue_handler(self.log_queue)

        self.session = session or ReplSession(config, base_path=base_path)
        self.session.add_annotation_listener(self.annotation_queue.put)
        self.session.add_failure_listener(self.failure_queue.put)

        self.drain_timer = QTimer(self)
        self.drain_timer.timeout.connect(self.drain)
        self.drain_timer.start(DRAIN_INTERVAL_MS)

    def submit(
        self,
        text: str,
        *,
        base_path: Optional[Union[str, Path]] = None,
        file_path: Optional[Union[str, Path]] = None,
    ) -> Optional[int]:
        """Start a new run. Returns the run id, or None if the process failed to start."""
        try:
            return self.session.submit(text, base_path=base_path, file_path=file_path)
        except DriverError:
            # Already logged and queued by the session
            return None

    def annotations_except(self, line: int) -> List[LineAnnotation]:
        return self.session.annotations_except(line)

    def drain(self) -> None:
        """Emit everything queued since the last tick. Runs on the GUI thread."""
        latest = None
        while True:
            try:
                latest = self.annotation_queue.get_nowait()
                self.annotation_queue.task_done()
            except queue.Empty:
                break
        # Each item is a full snapshot, only the newest matters
        if latest is not None:
            self.annotationsChanged.emit(latest)

        while True:
            try:
                error = self.failure_queue.get_nowait()
                self.runFailed.emit(str(error))
                self.failure_queue.task_done()
            except queue.Empty:
                break

        while True:
            try:
                msg = self.log_queue.get_nowait()
                if isinstance(msg, tuple) and len(msg) == 2:
                    text, level = msg
                    self.logMessage.emit(level, text)
                else:
                    self.logMessage.emit("INFO", str(msg))
                self.log_queue.task_done()
            except queue.Empty:
                break

    def close(self) -> None:
        """Stop the timer, terminate the session and flush what is left."""
        self.drain_timer.stop()
        self.session.close()
        detach_queue_handler(self._log_handler)
        self.drain()
