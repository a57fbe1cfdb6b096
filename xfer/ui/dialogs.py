"""
Dialogs used by the main window.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from PyQt6.QtWidgets import QFileDialog, QWidget

from xfer.core.models import Role


class QtFolderChooser:
    """
    Folder chooser backed by QFileDialog.

    Only the destination dialog lets the user create new folders.
    """

    def __init__(self, parent: Optional[QWidget] = None):
        self._parent = parent

    def set_parent(self, parent: QWidget) -> None:
        self._parent = parent

    def choose(self, role: Role, start_directory: Optional[Path] = None) -> Optional[Path]:
        options = QFileDialog.Option.ShowDirsOnly
        if role == Role.ORIGIN:
            options |= QFileDialog.Option.ReadOnly

        title = "Select Origin" if role == Role.ORIGIN else "Select Destination"
        start = str(start_directory) if start_directory else ""
        selected = QFileDialog.getExistingDirectory(self._parent, title, start, options)
        return Path(selected) if selected else None
