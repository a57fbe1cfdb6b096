"""
Transfer session: the surface the presentation layer talks to.

Wires the authorization store, scan coordinator and copy engine
together, holds the chosen roots and the filter/sort predicates, and
exposes commands plus observable state.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol

from PyQt6.QtCore import QObject, pyqtSignal

from xfer.core.models import CopyState, FileRecord, Role, ScanState
from xfer.core.view_query import ViewQuery
from xfer.services.authorization import AuthorizationStore, Grant
from xfer.services.copy_engine import CopyEngine
from xfer.services.scan_coordinator import ScanCoordinator
from xfer.services.settings import SettingsManager


class FolderChooser(Protocol):
    """Asks the user for a folder. Returns None if the user cancelled."""

    def choose(self, role: Role, start_directory: Optional[Path] = None) -> Optional[Path]:
        ...


class TransferSession(QObject):
    """
    Commands and observable state for one application window.

    Usage:
        session = TransferSession(store, settings_manager, chooser)
        session.restore()          # re-open last folders and scan
        ...
        session.close()            # stop workers, release access
    """

    # Emitted when the visible projection may have changed
    view_changed = pyqtSignal()

    # Emitted when the origin or destination root changes
    roots_changed = pyqtSignal()

    def __init__(
        self,
        store: AuthorizationStore,
        settings_manager: SettingsManager,
        chooser: Optional[FolderChooser] = None,
        throttle_interval: Optional[float] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self._store = store
        self._settings_manager = settings_manager
        self._chooser = chooser

        self.scan_coordinator = ScanCoordinator(throttle_interval=throttle_interval, parent=self)
        self.copy_engine = CopyEngine(self.scan_coordinator, throttle_interval=throttle_interval, parent=self)

        self._grants: dict[Role, Grant] = {}
        self._search_text = ""
        self._closed = False

        self.scan_coordinator.records_changed.connect(self.view_changed)

    # === Observable state ===

    @property
    def origin(self) -> Optional[Path]:
        grant = self._grants.get(Role.ORIGIN)
        return grant.handle.path if grant else None

    @property
    def destination(self) -> Optional[Path]:
        grant = self._grants.get(Role.DESTINATION)
        return grant.handle.path if grant else None

    @property
    def scan_state(self) -> ScanState:
        return self.scan_coordinator.state

    @property
    def copy_state(self) -> CopyState:
        return self.copy_engine.state

    @property
    def error_message(self) -> Optional[str]:
        return self.scan_coordinator.error_message

    @property
    def is_busy(self) -> bool:
        return self.scan_state.is_running or self.copy_state.is_running

    @property
    def dated_subfolders(self) -> bool:
        return self._settings_manager.settings.transfer.dated_subfolders

    @property
    def query(self) -> ViewQuery:
        return self._settings_manager.settings.view.to_query(self._search_text)

    def recent_paths(self, role: Role) -> list[Path]:
        """Recently chosen folders for role that still exist, newest first."""
        settings = self._settings_manager.settings
        paths = settings.recent_origin_paths if role == Role.ORIGIN else settings.recent_destination_paths
        return [Path(path) for path in paths if Path(path).is_dir()]

    def visible_records(self) -> list[FileRecord]:
        """The filtered, sorted projection of the current result set."""
        return self.query.apply(self.scan_coordinator.iter_records())

    # === Start-up and shutdown ===

    def restore(self) -> bool:
        """
        Re-open the folders chosen in a previous run.

        Returns:
            True if both roots resolved and a scan was started
        """
        for role in Role:
            grant = self._store.resolve(role)
            if grant is not None:
                self._grants[role] = grant

        if self._grants:
            self.roots_changed.emit()

        if self.origin is None or self.destination is None:
            logging.info("TransferSession - No previous folders to restore")
            return False

        self.start_scan()
        return True

    def close(self) -> None:
        """Stop background work and release folder access. Safe to repeat."""
        if self._closed:
            return
        self._closed = True
        self.scan_coordinator.shutdown()
        self.copy_engine.shutdown()
        self._store.release_all()
        self._grants.clear()
        logging.info("TransferSession - Closed")

    # === Commands ===

    def select_origin(self) -> bool:
        return self._select_root(Role.ORIGIN)

    def select_destination(self) -> bool:
        return self._select_root(Role.DESTINATION)

    def set_root(self, role: Role, path: Path | str) -> bool:
        """
        Use path as the root for role, as if the user had chosen it.

        Starts a scan when both roots are known.
        """
        grant = self._store.grant(role, path)
        if grant is None:
            return False

        self._grants[role] = grant
        self._settings_manager.add_recent_path(str(grant.path), role)
        self.roots_changed.emit()

        if self.origin is None or self.destination is None:
            return True

        if self.copy_state.is_running:
            # The rescan that ends the batch picks up the new pair
            self.scan_coordinator.set_roots(self.origin, self.destination)
        else:
            self.start_scan()
        return True

    def start_scan(self) -> bool:
        if self.origin is None or self.destination is None:
            logging.debug("TransferSession - Scan requested before both folders were chosen")
            return False
        if self.copy_state.is_running:
            logging.info("TransferSession - Scan requested while copying, ignored")
            return False
        self.scan_coordinator.start(self.origin, self.destination)
        return True

    def cancel_scan(self) -> None:
        self.scan_coordinator.cancel()

    def start_copy(self) -> bool:
        if self.destination is None:
            return False
        if self.scan_state.is_running:
            logging.info("TransferSession - Copy requested while scanning, ignored")
            return False
        return self.copy_engine.copy(
            self.scan_coordinator.iter_records(),
            self.destination,
            dated_subfolders=self.dated_subfolders,
        )

    def select_all_untransferred(self) -> int:
        """Select every record not yet in the destination. Returns how many changed."""
        changed = 0
        for record in self.scan_coordinator.iter_records():
            if not record.exists_in_destination and not record.selected:
                record.selected = True
                changed += 1
        if changed:
            self.view_changed.emit()
        return changed

    def set_selected(self, record_id: int, selected: bool) -> bool:
        """Toggle one record. The projection does not depend on selection, so no view_changed."""
        record = self.scan_coordinator.get_record(record_id)
        if record is None or record.exists_in_destination:
            return False
        record.selected = selected
        return True

    # === Filter, sort and option mutators ===

    def set_search_text(self, text: str) -> None:
        if text != self._search_text:
            self._search_text = text
            self.view_changed.emit()

    def set_show_only_untransferred(self, value: bool) -> None:
        self._update_view_setting('show_only_untransferred', value)

    def set_sort_by_file_type(self, value: bool) -> None:
        self._update_view_setting('sort_by_file_type', value)

    def set_sort_ascending(self, value: bool) -> None:
        self._update_view_setting('sort_ascending', value)

    def set_dated_subfolders(self, value: bool) -> None:
        settings = self._settings_manager.settings
        if settings.transfer.dated_subfolders != value:
            settings.transfer.dated_subfolders = value
            self._settings_manager.save()

    # === Helpers ===

    def _select_root(self, role: Role) -> bool:
        if self._chooser is None:
            logging.warning("TransferSession - No folder chooser configured")
            return False

        recent = self.recent_paths(role)
        path = self._chooser.choose(role, recent[0] if recent else None)
        if path is None:
            return False
        return self.set_root(role, path)

    def _update_view_setting(self, name: str, value: bool) -> None:
        settings = self._settings_manager.settings
        if getattr(settings.view, name) == value:
            return
        setattr(settings.view, name, value)
        self._settings_manager.save()
        self.view_changed.emit()
