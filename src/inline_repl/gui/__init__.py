"""
Qt integration for editor hosts.

Built on PySide6, a core dependency of the package.
"""

from .annotation_model import AnnotationTableModel
from .bridge import SessionBridge

__all__ = ["AnnotationTableModel", "SessionBridge"]
