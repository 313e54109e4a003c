"""
Logging utilities: route the session log to a queue for UI display, and
set up console logging for the command line runner.

The ``inline_repl`` logger is the log surface for process-level failures;
they never become line annotations.
"""
from __future__ import annotations

import logging
import sys
from queue import Queue
from typing import Optional, TextIO

ROOT_LOGGER_NAME = "inline_repl"

CLI_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


class QueueLogHandler(logging.Handler):
    """
    A logging handler that sends (message, level) tuples to a queue.

    Used to show the session log in a UI console without touching the UI
    from the reader or listener threads.
    """

    def __init__(self, log_queue: Queue, level: int = logging.INFO):
        super().__init__(level)
        self.log_queue = log_queue
        self.setFormatter(logging.Formatter("%(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            level = record.levelname
            # Map DEBUG to INFO for display
            if level == "DEBUG":
                level = "INFO"
            self.log_queue.put((message, level))
        except Exception:
            self.handleError(record)


def attach_queue_handler(
    log_queue: Queue,
    logger_name: Optional[str] = ROOT_LOGGER_NAME,
    level: int = logging.INFO,
) -> QueueLogHandler:
    """
    Attach a QueueLogHandler to the specified logger.

    Args:
        log_queue: Queue to send log messages to.
        logger_name: Name of logger to attach to. None = root logger.
        level: Minimum level forwarded to the queue.

    Returns:
        The attached handler (for later removal).
    """
    logger = logging.getLogger(logger_name)
    handler = QueueLogHandler(log_queue, level)
    logger.addHandler(handler)
    if logger.getEffectiveLevel() > level:
        logger.setLevel(level)
    return handler


def detach_queue_handler(
    handler: QueueLogHandler,
    logger_name: Optional[str] = ROOT_LOGGER_NAME,
) -> None:
    """
    Remove a QueueLogHandler from the specified logger.

    Args:
        handler: The handler to remove.
        logger_name: Name of logger to detach from. None = root logger.
    """
    logger = logging.getLogger(logger_name)
    logger.removeHandler(handler)


def configure_cli_logging(verbosity: int = 0, stream: Optional[TextIO] = None) -> logging.Handler:
    """
    Log ``inline_repl`` messages to stderr for the command line runner.

    Args:
        verbosity: 0 = warnings, 1 = info, 2+ = debug.
        stream: Output stream (default stderr).

    Returns:
        The installed handler.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(CLI_FORMAT, datefmt="%H:%M:%S"))
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.handlers = [handler]
    logger.setLevel(level)
    logger.propagate = False
    return handler
