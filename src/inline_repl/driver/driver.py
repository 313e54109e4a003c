"""
Module: driver.driver

Purpose:
    Line-tracking interpreter driver for one run. Feeds rewritten source to
    the REPL host one logical line at a time, keeps the running line counter
    that maps logical lines back to physical lines, and turns host messages
    into line-attributed OutputEvents.

    State machine per run:
        IDLE -> RUNNING -> DRAINING -> TERMINATED
    RUNNING while lines are fed, DRAINING once all lines are sent and async
    results may still arrive, TERMINATED on terminate() or process end.

Key Classes:
    - DriverState: Run states
    - LogicalLine: One line to feed, with its physical line number
    - InterpreterDriver: Owns the process and the line counter for one run

Key Functions:
    - plan_logical_lines(): Assign physical line numbers to logical lines

Used By:
    - inline_repl.session.ReplSession
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from inline_repl.config import ReplConfig
from inline_repl.core.classification import classify_output
from inline_repl.core.markers import scan_line_deltas
from inline_repl.core.models.events import OutputEvent
from inline_repl.errors import DriverError, ProcessExitedError, TransportError
from .process import ReplProcess
from .protocol import MSG_DRAINED, OP_END, OP_EVAL, message_to_event

logger = logging.getLogger(__name__)

LINE_BREAK = re.compile(r"\r?\n")

EventSink = Callable[[OutputEvent], None]
FailureHandler = Callable[[DriverError], None]


class DriverState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    TERMINATED = "terminated"


@dataclass(frozen=True, slots=True)
class LogicalLine:
    """
    One unit of text fed to the REPL.

    Attributes:
        line: Physical source line where this logical line starts (1-based).
        code: Rewritten text of the line.
        collapsed: Physical lines folded into it by chain collapsing.
    """

    line: int
    code: str
    collapsed: int = 0


def plan_logical_lines(code: str, first_line: int = 1) -> List[LogicalLine]:
    """
    Split rewritten text into logical lines tagged with physical lines.

    Each logical line is tagged with the counter value when it is fed. The
    counter then advances by one plus the line-delta markers found in it, so
    a chain folded from three physical lines still lets the next statement
    land on its own physical line.

    Example:
        >>> [(l.line, l.code) for l in plan_logical_lines('a /*`2`*/.b()\\nc')]
        [(1, 'a /*`2`*/.b()'), (4, 'c')]
    """
    planned = []
    counter = first_line
    for text in LINE_BREAK.split(code):
        delta = scan_line_deltas(text)
        planned.append(LogicalLine(counter, text, delta))
        counter += 1 + delta
    return planned


class InterpreterDriver:
    """
    Drives one interpreter session for one run.

    Events go to ``sink`` from the process reader thread. Synchronous
    results arrive in feed order; async results arrive whenever they
    settle, each tagged with the line of the call that created them.

    Usage:
        driver = InterpreterDriver(events.put, config=config, cwd=root, run_id=3)
        driver.start()
        driver.feed(rewritten)
        driver.wait_drained(timeout=5)
        driver.terminate()

    Attributes:
        run_id: Identifier stamped on every event of this run.
        state: Current DriverState.
    """

    def __init__(
        self,
        sink: EventSink,
        *,
        config: Optional[ReplConfig] = None,
        cwd: Optional[Path] = None,
        run_id: int = 0,
        on_failure: Optional[FailureHandler] = None,
        preclassify: bool = True,
        process_factory: Callable[..., ReplProcess] = ReplProcess,
    ) -> None:
        self.config = config or ReplConfig()
        self.cwd = cwd
        self.run_id = run_id
        self.preclassify = preclassify
        self._sink = sink
        self._on_failure = on_failure
        self._state = DriverState.IDLE
        self._state_lock = threading.Lock()
        self._drained = threading.Event()
        self._next_line = 1
        self._process = process_factory(
            self._handle_message,
            self._handle_exit,
            config=self.config,
            cwd=cwd,
        )

    @property
    def state(self) -> DriverState:
        return self._state

    @property
    def next_line(self) -> int:
        """Physical line number the next fed logical line will get."""
        return self._next_line

    def _transition(self, expected: tuple, new: DriverState) -> bool:
        with self._state_lock:
            if self._state not in expected:
                return False
            logger.debug(f"Run {self.run_id}: {self._state.value} -> {new.value}")
            self._state = new
            return True

    def start(self) -> None:
        """
        Spawn the interpreter process. IDLE -> RUNNING.

        Raises:
            DriverError: Called twice.
            ProcessStartError: The process could not be started.
        """
        if self._state is not DriverState.IDLE:
            raise DriverError(f"Cannot start a driver in state {self._state.value}")
        try:
            self._process.start()
        except DriverError:
            with self._state_lock:
                self._state = DriverState.TERMINATED
            self._drained.set()
            raise
        self._transition((DriverState.IDLE,), DriverState.RUNNING)

    def feed(self, code: str) -> int:
        """
        Feed rewritten source, one logical line per eval command, then
        signal end of input. RUNNING -> DRAINING.

        Does not wait for evaluation or for pending async results.

        Returns:
            Number of logical lines sent.

        Raises:
            DriverError: Driver is not RUNNING.
        """
        if self._state is not DriverState.RUNNING:
            raise DriverError(f"Cannot feed a driver in state {self._state.value}")

        sent = 0
        for logical in plan_logical_lines(code, self._next_line):
            self._next_line = logical.line + 1 + logical.collapsed
            try:
                self._process.send(OP_EVAL, line=logical.line, code=logical.code)
            except TransportError as e:
                # The process is gone; the exit handler reports the failure.
                logger.warning(f"Run {self.run_id}: stopped feeding at line {logical.line}: {e}")
                return sent
            sent += 1

        try:
            self._process.send(OP_END)
        except TransportError as e:
            logger.warning(f"Run {self.run_id}: end of input not delivered: {e}")
        self._transition((DriverState.RUNNING,), DriverState.DRAINING)
        logger.debug(f"Run {self.run_id}: fed {sent} logical lines")
        return sent

    def wait_drained(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until the host reports no pending async results, or the
        process ends. Returns False on timeout.
        """
        if timeout is None:
            timeout = self.config.drain_timeout
        return self._drained.wait(timeout)

    def terminate(self) -> None:
        """
        End the run and make sure the interpreter process is gone.
        Any state -> TERMINATED. Safe to call more than once.
        """
        with self._state_lock:
            already = self._state is DriverState.TERMINATED
            self._state = DriverState.TERMINATED
        if not already:
            logger.debug(f"Run {self.run_id}: terminating")
        self._process.terminate()
        self._drained.set()

    def _emit(self, event: OutputEvent) -> None:
        if self._state is DriverState.TERMINATED:
            return
        try:
            self._sink(event)
        except Exception:
            logger.exception(f"Run {self.run_id}: event sink failed, event dropped")

    def _handle_message(self, message: Dict[str, Any]) -> None:
        if message["type"] == MSG_DRAINED:
            self._drained.set()
            return

        try:
            event = message_to_event(message, self.run_id)
        except TransportError as e:
            logger.warning(f"Run {self.run_id}: dropped malformed message: {e}")
            return
        if event is None:
            return
        if self.preclassify:
            event = classify_output(event)
            if event is None:
                return
        self._emit(event)

    def _handle_exit(self, returncode: Optional[int], requested: bool) -> None:
        self._drained.set()
        with self._state_lock:
            was_live = self._state in (DriverState.RUNNING, DriverState.DRAINING)
            self._state = DriverState.TERMINATED
        if requested or not was_live:
            return

        failure = ProcessExitedError(
            f"REPL host exited unexpectedly (code {returncode})",
            returncode=returncode,
            stderr_tail=self._process.stderr_tail,
        )
        logger.error(f"Run {self.run_id}: {failure}")
        if self._on_failure is not None:
            self._on_failure(failure)

    def __enter__(self) -> "InterpreterDriver":
        return self

    def __exit__(self, *args) -> None:
        self.terminate()
