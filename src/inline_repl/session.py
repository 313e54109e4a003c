"""
Module: session

Purpose:
    One editor context's REPL session. Wires the rewriter, a fresh
    InterpreterDriver per run and the Correlator together, and guarantees at
    most one live interpreter process per context: submitting new source
    terminates the previous run before the next process is spawned.

    Threads:
    - the driver's reader thread puts events on a per-run queue;
    - a per-run listener thread takes them off and updates the correlator,
      dropping any event whose run id is not the current run.

Key Classes:
    - ReplSession: Submit / wait / close for one context

Used By:
    - inline_repl.cli
    - inline_repl.gui.bridge
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from queue import Queue
from typing import Callable, List, Optional, Union

from .config import ReplConfig
from .core.models.annotations import LineAnnotation
from .core.models.events import OutputEvent
from .correlator import Correlator
from .driver import DriverState, InterpreterDriver
from .errors import DriverError, InlineReplError
from .rewriter import SourceUnit, rewrite_unit

logger = logging.getLogger(__name__)

PathArg = Optional[Union[str, Path]]
FailureListener = Callable[[DriverError], None]


class ReplSession:
    """
    Live evaluation session for one document.

    Usage:
        with ReplSession(base_path=project_root) as session:
            session.submit(source_text, file_path=document_path)
            session.wait_drained()
            for annotation in session.annotations():
                ...

    Attributes:
        config: Session configuration.
        correlator: Annotation table shared with the UI layer.
        last_failure: Most recent process-level failure, if any.
    """

    def __init__(
        self,
        config: Optional[ReplConfig] = None,
        *,
        base_path: PathArg = None,
        file_path: PathArg = None,
        correlator: Optional[Correlator] = None,
        driver_factory: Callable[..., InterpreterDriver] = InterpreterDriver,
    ) -> None:
        self.config = config or ReplConfig()
        self.correlator = correlator or Correlator(self.config.max_short_text)
        self.last_failure: Optional[DriverError] = None
        self._driver_factory = driver_factory
        self._driver: Optional[InterpreterDriver] = None
        self._events: Optional[Queue] = None
        self._listener: Optional[threading.Thread] = None
        self._run_id = 0
        self._lock = threading.RLock()
        self._failure_listeners: List[FailureListener] = []
        self._closed = False
        self.base_path: Optional[Path] = None
        self.file_path: Optional[Path] = None

        logger.info("Initializing REPL session.")
        logger.warning(
            "Be careful with CRUD operations: the code runs again on every submission."
        )
        self.set_context(base_path, file_path)

    # ------------------------------------------------------------------
    # Context
    # ------------------------------------------------------------------

    def set_context(self, base_path: PathArg = None, file_path: PathArg = None) -> None:
        """Set the working directory and document path used by later runs."""
        if base_path is not None:
            self.base_path = Path(base_path)
        if file_path is not None:
            self.file_path = Path(file_path) if str(file_path) else None
            if self.base_path is None and self.file_path is not None:
                self.base_path = self.file_path.parent
        if self.base_path is not None:
            logger.info(f"Working at: {self.base_path}")

    @property
    def run_id(self) -> int:
        return self._run_id

    @property
    def state(self) -> DriverState:
        """State of the current run's driver (IDLE before the first run)."""
        driver = self._driver
        return driver.state if driver else DriverState.IDLE

    @property
    def is_closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    def submit(
        self,
        text: str,
        *,
        base_path: PathArg = None,
        file_path: PathArg = None,
    ) -> int:
        """
        Start a new run for ``text``.

        Terminates the previous run's process, clears the annotation table,
        spawns a fresh interpreter and feeds it the rewritten source.

        Returns:
            The new run id.

        Raises:
            InlineReplError: Session is closed.
            ProcessStartError: The interpreter could not be started. The
                failure is also logged and sent to failure listeners.
        """
        with self._lock:
            if self._closed:
                raise InlineReplError("Session is closed")
            self.set_context(base_path, file_path)

            # Bump first so stragglers from the old run are dropped
            self._run_id += 1
            run_id = self._run_id
            self._stop_run()
            self.correlator.reset()

            unit = SourceUnit(text, self.base_path, self.file_path)
            code = rewrite_unit(unit, self.config)

            events: Queue = Queue()
            listener = threading.Thread(
                target=self._listen,
                args=(events,),
                name=f"repl-run-{run_id}",
                daemon=True,
            )
            listener.start()
            driver = self._driver_factory(
                events.put,
                config=self.config,
                cwd=self.base_path,
                run_id=run_id,
                on_failure=lambda error, rid=run_id: self._handle_failure(rid, error),
            )
            self._driver, self._events, self._listener = driver, events, listener

            logger.info(f"Starting to interpret {len(text)} bytes of code (run {run_id})")
            try:
                driver.start()
            except DriverError as e:
                self._handle_failure(run_id, e)
                self._stop_run()
                raise

            driver.feed(code)
            return run_id

    def wait_drained(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until the current run has no pending async results and every
        received event has been applied to the correlator.

        Returns False if the interpreter did not drain within ``timeout``
        (default ``config.drain_timeout``).
        """
        driver, events, listener = self._driver, self._events, self._listener
        if driver is None:
            return True
        drained = driver.wait_drained(timeout)
        if events is not None and listener is not None and listener.is_alive():
            events.join()
        return drained

    def close(self) -> None:
        """Terminate the current run. The session accepts no more runs."""
        with self._lock:
            if self._closed:
                return
            logger.info("Disposing REPL session.")
            self._closed = True
            self._run_id += 1
            self._stop_run()

    def _stop_run(self) -> None:
        driver, events, listener = self._driver, self._events, self._listener
        self._driver = self._events = self._listener = None
        if driver is not None:
            driver.terminate()
        if events is not None:
            events.put(None)
        if listener is not None and listener is not threading.current_thread():
            listener.join(timeout=self.config.terminate_timeout)

    def _listen(self, events: Queue) -> None:
        while True:
            event = events.get()
            try:
                if event is None:  # Sentinel value
                    break
                self._apply(event)
            except Exception:
                logger.exception("Failed to apply output event")
            finally:
                events.task_done()

    def _apply(self, event: OutputEvent) -> None:
        if event.run_id != self._run_id:
            logger.debug(f"Dropped event from stale run {event.run_id}")
            return
        self.correlator.update(event)

    # ------------------------------------------------------------------
    # Failures
    # ------------------------------------------------------------------

    def add_failure_listener(self, listener: FailureListener) -> None:
        """Call ``listener`` with process-level failures of the current run."""
        self._failure_listeners.append(listener)

    def _handle_failure(self, run_id: int, error: DriverError) -> None:
        if run_id != self._run_id:
            return
        self.last_failure = error
        logger.error(f"[Repl Server] {error}")
        tail = getattr(error, "stderr_tail", "")
        if tail:
            logger.error(f"[Repl Server] stderr:\n{tail}")
        for listener in list(self._failure_listeners):
            try:
                listener(error)
            except Exception:
                logger.exception("Failure listener failed")

    # ------------------------------------------------------------------
    # Annotation table
    # ------------------------------------------------------------------

    def annotations(self) -> List[LineAnnotation]:
        return self.correlator.annotations()

    def annotations_except(self, line: int) -> List[LineAnnotation]:
        return self.correlator.annotations_except(line)

    def add_annotation_listener(self, listener: Callable[[List[LineAnnotation]], None]) -> None:
        self.correlator.add_listener(listener)

    def __enter__(self) -> "ReplSession":
        return self

    def __exit__(self, *args) -> None:
        self.close()
