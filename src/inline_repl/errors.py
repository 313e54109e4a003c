"""
Module: errors

Purpose:
    Exception hierarchy for inline-repl. Evaluation errors raised by the
    user's JavaScript are NOT exceptions here; they travel as Error-kind
    output events. These classes cover configuration and process-level
    failures only.

Key Classes:
    - InlineReplError: Base class
    - ConfigError: Invalid configuration value
    - DriverError: Base for interpreter process failures
    - ProcessStartError: Node process could not be spawned
    - ProcessExitedError: Node process ended without an exit request
    - TransportError: A message could not be sent or decoded

Used By:
    - inline_repl.config
    - inline_repl.driver
    - inline_repl.session
"""

from __future__ import annotations

from typing import Optional


class InlineReplError(Exception):
    """Base class for all inline-repl errors."""


class ConfigError(InlineReplError, ValueError):
    """Raised when a ReplConfig value is out of range."""


class DriverError(InlineReplError):
    """Raised for interpreter process failures. Fatal to the current run."""


class ProcessStartError(DriverError):
    """The interpreter process failed to start."""


class ProcessExitedError(DriverError):
    """
    The interpreter process ended while the run was still live.

    Attributes:
        returncode: Exit status reported by the OS (None if unknown).
        stderr_tail: Last lines the process wrote to stderr, for diagnostics.
    """

    def __init__(
        self,
        message: str,
        returncode: Optional[int] = None,
        stderr_tail: str = "",
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr_tail = stderr_tail


class TransportError(DriverError):
    """A message between driver and interpreter could not be delivered."""
