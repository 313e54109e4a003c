"""
Module: rewriter

Purpose:
    Stateless text-to-text transforms that prepare JavaScript source for a
    line-oriented REPL while keeping a mapping back to physical lines.
    Deliberately regex based; constructs the patterns do not recognise pass
    through unchanged.

Key Functions:
    - rewrite_source(): Full pipeline
    - normalize_imports(), resolve_module_paths(), tag_console_calls(),
      collapse_chained_calls(): Individual stages

Key Classes:
    - SourceUnit: A submitted document
"""

from .chains import collapse_chained_calls
from .console import tag_console_calls
from .imports import normalize_imports
from .module_paths import resolve_module_name, resolve_module_paths
from .pipeline import SourceUnit, rewrite_source, rewrite_unit

__all__ = [
    "collapse_chained_calls",
    "normalize_imports",
    "resolve_module_name",
    "resolve_module_paths",
    "rewrite_source",
    "rewrite_unit",
    "SourceUnit",
    "tag_console_calls",
]
