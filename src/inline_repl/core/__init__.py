"""
Module: core

Purpose:
    Shared models, marker formats and output classification rules used by
    the rewriter, the driver and the correlator.
"""

from .classification import classify_output, is_noise, match_uncaught_error
from .models import LineAnnotation, OutputEvent, OutputKind

__all__ = [
    "classify_output",
    "is_noise",
    "match_uncaught_error",
    "LineAnnotation",
    "OutputEvent",
    "OutputKind",
]
