"""
Module: correlator

Purpose:
    Classifies and merges OutputEvents per originating line and exposes the
    resulting annotation table to the UI layer.
"""

from .correlator import Correlator
from .formatting import one_line, shorten

__all__ = ["Correlator", "one_line", "shorten"]
