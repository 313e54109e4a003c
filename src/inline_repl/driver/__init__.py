"""
Module: driver

Purpose:
    Runs rewritten JavaScript in an isolated Node.js REPL process and emits
    line-attributed OutputEvents.

Key Classes:
    - InterpreterDriver: One run's driver (state machine + line counter)
    - ReplProcess: The Node child process and its message channel
    - DriverState: IDLE / RUNNING / DRAINING / TERMINATED

Dependencies:
    - Node.js on PATH (or ReplConfig.node_executable)
"""

from .driver import DriverState, InterpreterDriver, LogicalLine, plan_logical_lines
from .process import HOST_SCRIPT, ReplProcess

__all__ = [
    "DriverState",
    "HOST_SCRIPT",
    "InterpreterDriver",
    "LogicalLine",
    "plan_logical_lines",
    "ReplProcess",
]
