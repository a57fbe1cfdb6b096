"""
List model over the session's visible records.
"""

from __future__ import annotations

from typing import Any, Optional

from PyQt6.QtCore import QAbstractListModel, QModelIndex, QObject, Qt

from xfer.core.models import FileRecord
from xfer.services.session import TransferSession


class RecordListModel(QAbstractListModel):
    """
    Model for the file list.

    Rows are the session's filtered, sorted projection. Untransferred
    rows are checkable and the check state is the record's selection;
    transferred rows carry a check mark and cannot be selected.
    """

    RecordIdRole = Qt.ItemDataRole.UserRole

    TRANSFERRED_PREFIX = "✓  "

    def __init__(self, session: TransferSession, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._session = session
        self._records: list[FileRecord] = []

    def refresh(self) -> None:
        """Rebuild the rows from the session."""
        self.beginResetModel()
        self._records = self._session.visible_records()
        self.endResetModel()

    def record_at(self, row: int) -> Optional[FileRecord]:
        if 0 <= row < len(self._records):
            return self._records[row]
        return None

    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return len(self._records)

    def flags(self, index: QModelIndex) -> Qt.ItemFlag:
        record = self.record_at(index.row()) if index.isValid() else None
        if record is None:
            return Qt.ItemFlag.NoItemFlags

        flags = Qt.ItemFlag.ItemIsEnabled | Qt.ItemFlag.ItemIsSelectable
        if not record.exists_in_destination:
            flags |= Qt.ItemFlag.ItemIsUserCheckable
        return flags

    def data(self, index: QModelIndex, role: int = Qt.ItemDataRole.DisplayRole) -> Any:
        record = self.record_at(index.row()) if index.isValid() else None
        if record is None:
            return None

        if role == Qt.ItemDataRole.DisplayRole:
            if record.exists_in_destination:
                return f"{self.TRANSFERRED_PREFIX}{record.name}"
            return record.name

        elif role == Qt.ItemDataRole.CheckStateRole:
            if record.exists_in_destination:
                return None
            return Qt.CheckState.Checked if record.selected else Qt.CheckState.Unchecked

        elif role == Qt.ItemDataRole.ToolTipRole:
            return str(record.path)

        elif role == self.RecordIdRole:
            return record.record_id

        return None

    def setData(self, index: QModelIndex, value: Any, role: int = Qt.ItemDataRole.EditRole) -> bool:
        if role != Qt.ItemDataRole.CheckStateRole:
            return False

        record = self.record_at(index.row()) if index.isValid() else None
        if record is None:
            return False

        checked = Qt.CheckState(value) == Qt.CheckState.Checked
        if not self._session.set_selected(record.record_id, checked):
            return False

        self.dataChanged.emit(index, index, [Qt.ItemDataRole.CheckStateRole])
        return True
