"""
Module: events

Purpose:
    Output events emitted by the interpreter driver and consumed by the
    correlator. The payload is a tagged union keyed by the event kind rather
    than an untyped value.

Key Classes:
    - OutputKind: Expression | Terminal | Error
    - ExpressionValue: Serialized result of an expression statement
    - ConsoleText: Text printed by a tagged console call
    - ErrorDescriptor: Name, message and detail of a raised error
    - RawOutput: Unclassified REPL output (driver → correlator only)
    - OutputEvent: One line-attributed event

Dependencies:
    - dataclasses (std)
    - enum (std)

Used By:
    - inline_repl.driver: creates events
    - inline_repl.core.classification: turns raw output into events
    - inline_repl.correlator: merges events into annotations
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union


class OutputKind(str, Enum):
    """Kind of an output event. Values are the wire names."""

    EXPRESSION = "Expression"
    TERMINAL = "Terminal"
    ERROR = "Error"


@dataclass(frozen=True, slots=True)
class ExpressionValue:
    """
    Result of evaluating an expression statement.

    Attributes:
        text: Display form (strings unquoted, objects as JSON when possible).
        detail: ``util.inspect`` rendering, used for the hover / detail view.
        type_name: JavaScript ``typeof`` of the value (or "array", "null").
    """

    text: str
    detail: str = ""
    type_name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "detail": self.detail, "type": self.type_name}


@dataclass(frozen=True, slots=True)
class ConsoleText:
    """Message printed by one console call."""

    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text}


@dataclass(frozen=True, slots=True)
class ErrorDescriptor:
    """
    A runtime error raised by evaluated code.

    Attributes:
        name: Error class name, e.g. "TypeError".
        message: Error message without the name prefix.
        detail: Stack trace or full text when available.
    """

    name: str
    message: str
    detail: str = ""

    @property
    def summary(self) -> str:
        """``Name: message`` as shown inline."""
        if not self.message:
            return self.name
        return f"{self.name}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "message": self.message, "detail": self.detail}


@dataclass(frozen=True, slots=True)
class RawOutput:
    """Text the REPL printed, not yet classified."""

    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text}


EventValue = Union[ExpressionValue, ConsoleText, ErrorDescriptor, RawOutput]

_PAYLOAD_FOR_KIND = {
    OutputKind.EXPRESSION: ExpressionValue,
    OutputKind.TERMINAL: ConsoleText,
    OutputKind.ERROR: ErrorDescriptor,
}


@dataclass(frozen=True, slots=True)
class OutputEvent:
    """
    One line-attributed output event.

    ``kind`` is None only for unclassified raw output, in which case the
    payload is a RawOutput and the correlator classifies it.

    Attributes:
        line: 1-based physical source line the event belongs to (0 if unknown).
        kind: Event kind, or None for raw output.
        value: Payload matching ``kind``.
        run_id: Run that produced the event.

    Invariants:
        - line >= 0
        - kind is None iff value is a RawOutput
        - otherwise value has the payload type of ``kind``

    Example:
        >>> event = OutputEvent.expression(2, ExpressionValue("2"))
        >>> event.to_message()["kind"]
        'Expression'
    """

    line: int
    kind: Optional[OutputKind]
    value: EventValue
    run_id: int = 0

    def __post_init__(self) -> None:
        """Validate event on construction."""
        if self.line < 0:
            raise ValueError(f"Event line cannot be negative: {self.line}")
        if self.kind is None:
            if not isinstance(self.value, RawOutput):
                raise ValueError("Unclassified events must carry RawOutput")
        elif not isinstance(self.value, _PAYLOAD_FOR_KIND[self.kind]):
            raise ValueError(
                f"{self.kind.value} event cannot carry {type(self.value).__name__}"
            )

    @property
    def is_classified(self) -> bool:
        return self.kind is not None

    @classmethod
    def expression(cls, line: int, value: ExpressionValue, run_id: int = 0) -> "OutputEvent":
        return cls(line, OutputKind.EXPRESSION, value, run_id)

    @classmethod
    def terminal(cls, line: int, text: str, run_id: int = 0) -> "OutputEvent":
        return cls(line, OutputKind.TERMINAL, ConsoleText(text), run_id)

    @classmethod
    def error(cls, line: int, error: ErrorDescriptor, run_id: int = 0) -> "OutputEvent":
        return cls(line, OutputKind.ERROR, error, run_id)

    @classmethod
    def raw(cls, line: int, text: str, run_id: int = 0) -> "OutputEvent":
        return cls(line, None, RawOutput(text), run_id)

    def to_message(self) -> Dict[str, Any]:
        """Wire form: ``{line, kind, value}``."""
        return {
            "line": self.line,
            "kind": self.kind.value if self.kind else None,
            "value": self.value.to_dict(),
        }
