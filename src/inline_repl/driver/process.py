"""
Module: driver.process

Purpose:
    Owns the Node child process running ``repl_server.js``. Writes commands
    to its stdin, reads host messages from its stdout on a reader thread and
    keeps the tail of its stderr for failure reports. Knows nothing about
    lines or events; the driver interprets the messages.

Key Classes:
    - ReplProcess: One Node process with a JSON-lines channel

Dependencies:
    - subprocess (std): process management
    - threading (std): reader threads

Used By:
    - inline_repl.driver.driver.InterpreterDriver
"""

from __future__ import annotations

import logging
import os
import subprocess
import threading
from collections import deque
from pathlib import Path
from typing import Any, Callable, Deque, Dict, Optional

from inline_repl.config import ReplConfig
from inline_repl.errors import ProcessStartError, TransportError
from .protocol import MSG_READY, OP_EXIT, decode_message, encode_command

logger = logging.getLogger(__name__)

HOST_SCRIPT = Path(__file__).with_name("repl_server.js")

STDERR_TAIL_LINES = 20

MessageHandler = Callable[[Dict[str, Any]], None]
ExitHandler = Callable[[Optional[int], bool], None]


class ReplProcess:
    """
    A Node process hosting one REPL, reachable only through messages.

    ``on_message`` and ``on_exit`` are called from the reader thread.
    ``on_exit(returncode, requested)`` runs once, after stdout closes;
    ``requested`` is True when ``terminate()`` asked for the exit.

    Usage:
        process = ReplProcess(handle_message, handle_exit, cwd=project_root)
        process.start()
        try:
            process.send("eval", line=1, code="1 + 1")
        finally:
            process.terminate()
    """

    def __init__(
        self,
        on_message: MessageHandler,
        on_exit: ExitHandler,
        *,
        config: Optional[ReplConfig] = None,
        cwd: Optional[Path] = None,
    ) -> None:
        self.config = config or ReplConfig()
        self.cwd = cwd
        self._on_message = on_message
        self._on_exit = on_exit
        self._proc: Optional[subprocess.Popen] = None
        self._ready = threading.Event()
        self._handshake_done = False
        self._exit_requested = False
        self._write_lock = threading.Lock()
        self._stderr_tail: Deque[str] = deque(maxlen=STDERR_TAIL_LINES)
        self._threads: list[threading.Thread] = []
        self.node_version: Optional[str] = None

    @property
    def pid(self) -> Optional[int]:
        return self._proc.pid if self._proc else None

    @property
    def is_alive(self) -> bool:
        return self._proc is not None and self._proc.poll() is None

    @property
    def stderr_tail(self) -> str:
        return "\n".join(self._stderr_tail)

    def _command(self) -> list[str]:
        return [self.config.node_executable, *self.config.extra_node_args, str(HOST_SCRIPT)]

    def _environment(self) -> Dict[str, str]:
        env = dict(os.environ)
        env["INLINE_REPL_INSPECT_DEPTH"] = str(self.config.inspect_depth)
        env["INLINE_REPL_CONSOLE_FUNCTIONS"] = ",".join(self.config.console_functions)
        return env

    def start(self) -> None:
        """
        Spawn the process and wait for the host's ready message.

        Raises:
            ProcessStartError: Executable missing, spawn failed, or no ready
                message within ``startup_timeout``.
        """
        command = self._command()
        logger.debug(f"Spawning REPL host: {' '.join(command)} (cwd={self.cwd})")
        try:
            self._proc = subprocess.Popen(
                command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=str(self.cwd) if self.cwd else None,
                env=self._environment(),
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            raise ProcessStartError(
                f"Could not start '{self.config.node_executable}': {e}"
            ) from e

        self._threads = [
            threading.Thread(target=self._read_stdout, name="repl-stdout", daemon=True),
            threading.Thread(target=self._read_stderr, name="repl-stderr", daemon=True),
        ]
        for thread in self._threads:
            thread.start()

        self._ready.wait(self.config.startup_timeout)
        if not self._handshake_done:
            tail = self.stderr_tail
            self.terminate()
            detail = f": {tail}" if tail else ""
            raise ProcessStartError(
                f"REPL host did not become ready within {self.config.startup_timeout}s{detail}"
            )
        logger.debug(f"REPL host ready (pid={self.pid}, node={self.node_version})")

    def send(self, op: str, **fields: Any) -> None:
        """
        Write one command to the host.

        Raises:
            TransportError: Process not started or its stdin is closed.
        """
        if self._proc is None or self._proc.stdin is None:
            raise TransportError("REPL host is not running")
        payload = encode_command(op, **fields)
        with self._write_lock:
            try:
                self._proc.stdin.write(payload)
                self._proc.stdin.flush()
            except (BrokenPipeError, OSError, ValueError) as e:
                raise TransportError(f"Could not send '{op}' to REPL host: {e}") from e

    def terminate(self) -> None:
        """
        End the process: ask politely, wait, then kill.

        Safe to call more than once. Returns only once the process is gone.
        """
        if self._proc is None:
            return
        self._exit_requested = True

        if self._proc.poll() is None:
            try:
                self.send(OP_EXIT)
            except TransportError as e:
                logger.debug(f"Exit request not delivered: {e}")
            try:
                self._proc.wait(timeout=self.config.terminate_timeout)
            except subprocess.TimeoutExpired:
                logger.warning(f"REPL host (pid={self.pid}) ignored exit request, killing")
                self._proc.kill()
                self._proc.wait()

        try:
            if self._proc.stdin:
                self._proc.stdin.close()
        except OSError:
            pass

        current = threading.current_thread()
        for thread in self._threads:
            if thread is not current:
                thread.join(timeout=self.config.terminate_timeout)

    def _read_stdout(self) -> None:
        assert self._proc is not None and self._proc.stdout is not None
        for raw in self._proc.stdout:
            raw = raw.strip()
            if not raw:
                continue
            try:
                message = decode_message(raw)
            except TransportError as e:
                logger.warning(f"Dropped message: {e}")
                continue

            if message["type"] == MSG_READY:
                self.node_version = message.get("node")
                self._handshake_done = True
                self._ready.set()
                continue

            try:
                self._on_message(message)
            except Exception:
                logger.exception("Message handler failed")

        returncode = self._proc.wait()
        self._ready.set()
        self._on_exit(returncode, self._exit_requested)

    def _read_stderr(self) -> None:
        assert self._proc is not None and self._proc.stderr is not None
        for raw in self._proc.stderr:
            line = raw.rstrip()
            if line:
                self._stderr_tail.append(line)
                logger.debug(f"[repl stderr] {line}")
