"""
Main application window.

Thin shell over TransferSession: every button issues a session command
and every widget is refreshed from session state.
"""

from __future__ import annotations

from typing import Optional

from PyQt6.QtCore import Qt, QTimer, pyqtSlot
from PyQt6.QtGui import QCloseEvent
from PyQt6.QtWidgets import (
    QCheckBox, QComboBox, QFrame, QHBoxLayout, QLabel, QLineEdit,
    QListView, QMainWindow, QProgressBar, QPushButton, QSplitter,
    QVBoxLayout, QWidget,
)

from xfer.core.models import CopyState, ScanState
from xfer.services.session import TransferSession
from xfer.ui.record_model import RecordListModel


class MainWindow(QMainWindow):
    """
    Window with a sidebar of folder and transfer controls and a list of
    origin files.
    """

    SORT_CHOICES = ["Name A-Z", "Name Z-A", "Type A-Z", "Type Z-A"]

    def __init__(self, session: TransferSession, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self._session = session

        self._setup_ui()
        self._setup_connections()
        self._refresh_roots()
        self._refresh_list()
        self._on_scan_state_changed(session.scan_state)
        self._on_copy_state_changed(session.copy_state)

    def _setup_ui(self) -> None:
        """Set up the main UI layout."""
        self.setWindowTitle("Xfer")
        self.setMinimumSize(800, 500)

        splitter = QSplitter(Qt.Orientation.Horizontal)
        splitter.addWidget(self._create_sidebar())
        splitter.addWidget(self._create_file_panel())
        splitter.setStretchFactor(0, 0)
        splitter.setStretchFactor(1, 1)
        self.setCentralWidget(splitter)

    def _create_sidebar(self) -> QWidget:
        """Create the folder and progress sidebar."""
        sidebar = QWidget()
        sidebar.setMinimumWidth(320)
        layout = QVBoxLayout(sidebar)

        self._origin_button = QPushButton("Select Origin")
        self._origin_label = QLabel()
        self._origin_label.setWordWrap(True)
        layout.addWidget(self._origin_button)
        layout.addWidget(self._origin_label)
        layout.addWidget(self._separator())

        self._destination_button = QPushButton("Select Destination")
        self._destination_label = QLabel()
        self._destination_label.setWordWrap(True)
        layout.addWidget(self._destination_button)
        layout.addWidget(self._destination_label)
        layout.addWidget(self._separator())

        self._dated_checkbox = QCheckBox("Import into dated subfolders")
        self._dated_checkbox.setChecked(self._session.dated_subfolders)
        self._untransferred_checkbox = QCheckBox("Show only untransferred")
        self._untransferred_checkbox.setChecked(self._session.query.show_only_untransferred)
        layout.addWidget(self._dated_checkbox)
        layout.addWidget(self._untransferred_checkbox)

        self._scan_button = QPushButton("Scan")
        layout.addWidget(self._scan_button)

        self._error_label = QLabel()
        self._error_label.setWordWrap(True)
        self._error_label.setStyleSheet("color: red;")
        layout.addWidget(self._error_label)

        # Scan progress
        self._scan_label = QLabel("Scanning…")
        self._scan_progress = QProgressBar()
        self._scan_progress.setRange(0, 1000)
        self._scan_counts = QLabel()
        self._cancel_button = QPushButton("Cancel")
        for widget in (self._scan_label, self._scan_progress, self._scan_counts, self._cancel_button):
            layout.addWidget(widget)

        # Copy progress
        self._copy_label = QLabel("Copying files...")
        self._copy_progress = QProgressBar()
        self._copy_progress.setRange(0, 1000)
        self._copy_counts = QLabel()
        for widget in (self._copy_label, self._copy_progress, self._copy_counts):
            layout.addWidget(widget)

        layout.addStretch()
        return sidebar

    def _create_file_panel(self) -> QWidget:
        """Create the file list with search, sort and action buttons."""
        panel = QWidget()
        layout = QVBoxLayout(panel)

        toolbar = QHBoxLayout()
        self._search_box = QLineEdit()
        self._search_box.setPlaceholderText("Search files...")
        self._search_box.setClearButtonEnabled(True)
        toolbar.addWidget(self._search_box, 1)

        self._sort_combo = QComboBox()
        self._sort_combo.addItems(self.SORT_CHOICES)
        query = self._session.query
        self._sort_combo.setCurrentIndex(
            (2 if query.sort_by_file_type else 0) + (0 if query.sort_ascending else 1)
        )
        toolbar.addWidget(QLabel("Sort:"))
        toolbar.addWidget(self._sort_combo)
        layout.addLayout(toolbar)

        self._model = RecordListModel(self._session, self)
        self._file_list = QListView()
        self._file_list.setModel(self._model)
        self._file_list.setUniformItemSizes(True)
        self._file_list.setMinimumHeight(400)
        layout.addWidget(self._file_list, 1)

        # Merges bursts of view changes into one model reset
        self._refresh_timer = QTimer(self)
        self._refresh_timer.setSingleShot(True)
        self._refresh_timer.setInterval(0)

        buttons = QHBoxLayout()
        self._select_all_button = QPushButton("Select All Untransferred")
        self._copy_button = QPushButton("Copy Selected Files")
        buttons.addStretch()
        buttons.addWidget(self._select_all_button)
        buttons.addWidget(self._copy_button)
        layout.addLayout(buttons)

        return panel

    @staticmethod
    def _separator() -> QFrame:
        line = QFrame()
        line.setFrameShape(QFrame.Shape.HLine)
        return line

    def _setup_connections(self) -> None:
        """Set up signal connections."""
        session = self._session

        self._origin_button.clicked.connect(session.select_origin)
        self._destination_button.clicked.connect(session.select_destination)
        self._scan_button.clicked.connect(session.start_scan)
        self._cancel_button.clicked.connect(session.cancel_scan)
        self._select_all_button.clicked.connect(session.select_all_untransferred)
        self._copy_button.clicked.connect(session.start_copy)

        self._dated_checkbox.toggled.connect(session.set_dated_subfolders)
        self._untransferred_checkbox.toggled.connect(session.set_show_only_untransferred)
        self._search_box.textChanged.connect(session.set_search_text)
        self._sort_combo.currentIndexChanged.connect(self._on_sort_changed)
        self._refresh_timer.timeout.connect(self._refresh_list)

        session.roots_changed.connect(self._refresh_roots)
        session.view_changed.connect(self._schedule_refresh)
        session.scan_coordinator.state_changed.connect(self._on_scan_state_changed)
        session.scan_coordinator.error_message_changed.connect(self._error_label.setText)
        session.copy_engine.state_changed.connect(self._on_copy_state_changed)

    # === Refresh ===

    @pyqtSlot()
    def _refresh_roots(self) -> None:
        origin = self._session.origin
        destination = self._session.destination
        self._origin_label.setText(f"Origin: {origin}" if origin else "")
        self._destination_label.setText(f"Destination: {destination}" if destination else "")
        self._update_buttons()

    @pyqtSlot()
    def _schedule_refresh(self) -> None:
        self._refresh_timer.start()

    @pyqtSlot()
    def _refresh_list(self) -> None:
        self._model.refresh()

    @pyqtSlot(object)
    def _on_scan_state_changed(self, state: ScanState) -> None:
        running = state.is_running
        for widget in (self._scan_label, self._scan_progress, self._scan_counts, self._cancel_button):
            widget.setVisible(running)
        self._scan_progress.setValue(int(state.progress * 1000))
        self._scan_counts.setText(f"{state.scanned_count} of {state.total_count} files")
        self._update_buttons()

    @pyqtSlot(object)
    def _on_copy_state_changed(self, state: CopyState) -> None:
        running = state.is_running
        for widget in (self._copy_label, self._copy_progress, self._copy_counts):
            widget.setVisible(running)
        self._copy_progress.setValue(int(state.progress * 1000))
        self._copy_counts.setText(f"{state.copied_count} of {state.total_to_copy} files")
        self._update_buttons()

    def _update_buttons(self) -> None:
        busy = self._session.is_busy
        has_roots = self._session.origin is not None and self._session.destination is not None
        self._scan_button.setVisible(has_roots)
        self._scan_button.setEnabled(not busy)
        self._select_all_button.setEnabled(not busy)
        self._copy_button.setEnabled(not busy)

    # === Actions ===

    @pyqtSlot(int)
    def _on_sort_changed(self, index: int) -> None:
        self._session.set_sort_by_file_type(index >= 2)
        self._session.set_sort_ascending(index % 2 == 0)

    def closeEvent(self, event: QCloseEvent) -> None:
        """Handle window close."""
        self._session.close()
        super().closeEvent(event)
