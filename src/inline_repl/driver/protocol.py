"""
Module: driver.protocol

Purpose:
    Wire format between the driver and the Node host script
    (``repl_server.js``): newline-delimited JSON in both directions.

    Commands (driver -> host):
        {"op": "eval", "line": 3, "code": "x + 1;"}
        {"op": "end"}
        {"op": "exit"}

    Messages (host -> driver):
        ready    host is up, carries the Node version
        result   expression value for a line
        error    error raised while evaluating a line
        output   raw text the REPL printed, tagged with the current line
        drained  all input consumed and no async result pending

Key Functions:
    - encode_command(): Serialize a command
    - decode_message(): Parse and validate one host message
    - message_to_event(): Convert a host message to an OutputEvent

Used By:
    - inline_repl.driver.process: reads/writes the channel
    - inline_repl.driver.driver: converts messages to events
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from inline_repl.core.models.events import (
    ErrorDescriptor,
    ExpressionValue,
    OutputEvent,
)
from inline_repl.errors import TransportError

OP_EVAL = "eval"
OP_END = "end"
OP_EXIT = "exit"

MSG_READY = "ready"
MSG_RESULT = "result"
MSG_ERROR = "error"
MSG_OUTPUT = "output"
MSG_DRAINED = "drained"

MESSAGE_TYPES = frozenset({MSG_READY, MSG_RESULT, MSG_ERROR, MSG_OUTPUT, MSG_DRAINED})

# Message types that must carry a line number
_LINE_MESSAGES = frozenset({MSG_RESULT, MSG_ERROR, MSG_OUTPUT})


def encode_command(op: str, **fields: Any) -> str:
    """
    Serialize a command as one JSON line.

    Example:
        >>> encode_command("eval", line=1, code="1 + 1")
        '{"op": "eval", "line": 1, "code": "1 + 1"}\\n'
    """
    return json.dumps({"op": op, **fields}) + "\n"


def decode_message(raw: str) -> Dict[str, Any]:
    """
    Parse one line from the host.

    Raises:
        TransportError: Line is not JSON, not an object, has an unknown
            type, or lacks a valid line number where one is required.
    """
    try:
        message = json.loads(raw)
    except json.JSONDecodeError as e:
        raise TransportError(f"Undecodable message from REPL host: {raw[:200]!r}") from e

    if not isinstance(message, dict):
        raise TransportError(f"Message is not an object: {raw[:200]!r}")

    kind = message.get("type")
    if kind not in MESSAGE_TYPES:
        raise TransportError(f"Unknown message type: {kind!r}")

    if kind in _LINE_MESSAGES:
        line = message.get("line")
        if not isinstance(line, int) or isinstance(line, bool) or line < 0:
            raise TransportError(f"Invalid line in {kind} message: {line!r}")

    return message


def _expression_value(payload: Any) -> ExpressionValue:
    if not isinstance(payload, dict):
        raise TransportError(f"Invalid result payload: {payload!r}")
    return ExpressionValue(
        text=str(payload.get("text", "")),
        detail=str(payload.get("detail", "")),
        type_name=str(payload.get("type", "")),
    )


def _error_descriptor(payload: Any) -> ErrorDescriptor:
    if not isinstance(payload, dict):
        raise TransportError(f"Invalid error payload: {payload!r}")
    return ErrorDescriptor(
        name=str(payload.get("name") or "Error"),
        message=str(payload.get("message", "")),
        detail=str(payload.get("detail", "")),
    )


def message_to_event(message: Dict[str, Any], run_id: int = 0) -> Optional[OutputEvent]:
    """
    Convert a decoded host message to an OutputEvent.

    Control messages (ready, drained) return None. Output messages become
    unclassified raw events.
    """
    kind = message["type"]
    if kind == MSG_RESULT:
        return OutputEvent.expression(message["line"], _expression_value(message.get("value")), run_id)
    if kind == MSG_ERROR:
        return OutputEvent.error(message["line"], _error_descriptor(message.get("error")), run_id)
    if kind == MSG_OUTPUT:
        return OutputEvent.raw(message["line"], str(message.get("text", "")), run_id)
    return None
