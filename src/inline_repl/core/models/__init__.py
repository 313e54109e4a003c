"""
Core Models Package

Immutable data models passed between the driver, the correlator and the UI
layer. All models are frozen dataclasses so they can cross the reader and
listener threads without copying.
"""

from .events import (
    ConsoleText,
    ErrorDescriptor,
    EventValue,
    ExpressionValue,
    OutputEvent,
    OutputKind,
    RawOutput,
)
from .annotations import LineAnnotation

__all__ = [
    "ConsoleText",
    "ErrorDescriptor",
    "EventValue",
    "ExpressionValue",
    "LineAnnotation",
    "OutputEvent",
    "OutputKind",
    "RawOutput",
]
