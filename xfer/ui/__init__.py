"""
PyQt6 presentation shell.
"""

from xfer.ui.dialogs import QtFolderChooser
from xfer.ui.main_window import MainWindow
from xfer.ui.record_model import RecordListModel

__all__ = [
    'MainWindow',
    'QtFolderChooser',
    'RecordListModel',
]
