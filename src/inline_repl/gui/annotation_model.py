"""
Table model for the annotation list (Line | Kind | Text).

Foreground color follows the annotation kind; the tooltip carries the
full detail value.
"""
from __future__ import annotations

from typing import Any, List, Optional, Sequence

from PySide6.QtCore import QAbstractTableModel, QModelIndex, QObject, Qt, Slot
from PySide6.QtGui import QColor

from inline_repl.core.models.annotations import LineAnnotation
from inline_repl.core.models.events import OutputKind

KIND_COLORS = {
    OutputKind.EXPRESSION: "green",
    OutputKind.TERMINAL: "#457abb",
    OutputKind.ERROR: "red",
}

HEADERS = ("Line", "Kind", "Text")


class AnnotationTableModel(QAbstractTableModel):
    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._rows: List[LineAnnotation] = []
        self._hidden_line: Optional[int] = None
        self._all: List[LineAnnotation] = []

    @Slot(list)
    def set_annotations(self, annotations: Sequence[LineAnnotation]) -> None:
        """Replace the table with a new snapshot."""
        self._all = list(annotations)
        self._refresh()

    def except_line(self, line: Optional[int]) -> None:
        """Hide ``line`` while it is being edited (None shows everything)."""
        self._hidden_line = line
        self._refresh()

    def _refresh(self) -> None:
        self.beginResetModel()
        self._rows = [a for a in self._all if a.line != self._hidden_line]
        self.endResetModel()

    def annotation_at(self, row: int) -> LineAnnotation:
        return self._rows[row]

    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:
        return 0 if parent.isValid() else len(self._rows)

    def columnCount(self, parent: QModelIndex = QModelIndex()) -> int:
        return 0 if parent.isValid() else len(HEADERS)

    def headerData(self, section: int, orientation: Qt.Orientation, role: int = Qt.ItemDataRole.DisplayRole) -> Any:
        if role == Qt.ItemDataRole.DisplayRole and orientation == Qt.Orientation.Horizontal:
            return HEADERS[section]
        return None

    def data(self, index: QModelIndex, role: int = Qt.ItemDataRole.DisplayRole) -> Any:
        if not index.isValid() or index.row() >= len(self._rows):
            return None
        annotation = self._rows[index.row()]

        if role == Qt.ItemDataRole.DisplayRole:
            column = index.column()
            if column == 0:
                return annotation.line
            if column == 1:
                return annotation.kind.value
            return annotation.short_text
        if role == Qt.ItemDataRole.ForegroundRole:
            return QColor(KIND_COLORS[annotation.kind])
        if role == Qt.ItemDataRole.ToolTipRole:
            return annotation.detail_value
        return None
