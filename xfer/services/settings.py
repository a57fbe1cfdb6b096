"""
Application settings management.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

from xfer.core.models import Role
from xfer.core.view_query import ViewQuery


@dataclass
class TransferSettings:
    """Settings for copy batches."""
    dated_subfolders: bool = False


@dataclass
class ViewSettings:
    """Filter and sort preferences for the file list."""
    show_only_untransferred: bool = False
    sort_by_file_type: bool = False
    sort_ascending: bool = True

    def to_query(self, search_text: str = "") -> ViewQuery:
        return ViewQuery(
            search_text=search_text,
            show_only_untransferred=self.show_only_untransferred,
            sort_by_file_type=self.sort_by_file_type,
            sort_ascending=self.sort_ascending,
        )


@dataclass
class UISettings:
    """User interface settings."""
    window_width: int = 1100
    window_height: int = 700
    recent_paths_limit: int = 5


@dataclass
class ApplicationSettings:
    """Main application settings container."""
    transfer: TransferSettings = field(default_factory=TransferSettings)
    view: ViewSettings = field(default_factory=ViewSettings)
    ui: UISettings = field(default_factory=UISettings)

    recent_origin_paths: list[str] = field(default_factory=list)
    recent_destination_paths: list[str] = field(default_factory=list)


class SettingsManager:
    """Manager for loading/saving application settings."""

    def __init__(self, settings_path: Optional[Path] = None):
        self.settings_path = settings_path or self._get_default_path()
        self._settings: Optional[ApplicationSettings] = None
        self._observers: list[Callable[[ApplicationSettings], None]] = []

    @staticmethod
    def _get_default_path() -> Path:
        """Get the default settings file path."""
        if os.name == 'nt':
            # Windows
            app_data = os.environ.get('APPDATA', os.path.expanduser('~'))
            return Path(app_data) / 'Xfer' / 'settings.json'
        else:
            # Linux/Mac
            config_home = os.environ.get('XDG_CONFIG_HOME',
                                         os.path.expanduser('~/.config'))
            return Path(config_home) / 'xfer' / 'settings.json'

    @property
    def settings(self) -> ApplicationSettings:
        """Get current settings, loading from disk if needed."""
        if self._settings is None:
            self._settings = self.load()
        return self._settings

    def load(self) -> ApplicationSettings:
        """Load settings from disk."""
        if not self.settings_path.exists():
            return ApplicationSettings()

        try:
            with open(self.settings_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return self._from_dict(data)
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logging.warning(f"SettingsManager - Could not load {self.settings_path}, using defaults: {e}")
            return ApplicationSettings()

    def save(self, settings: Optional[ApplicationSettings] = None) -> bool:
        """Save settings to disk."""
        settings = settings or self._settings
        if settings is None:
            return False

        try:
            self.settings_path.parent.mkdir(parents=True, exist_ok=True)

            with open(self.settings_path, 'w', encoding='utf-8') as f:
                json.dump(self._to_dict(settings), f, indent=2)

            self._settings = settings
            self._notify_observers()
            return True

        except OSError as e:
            logging.warning(f"SettingsManager - Could not save {self.settings_path}: {e}")
            return False

    def reset(self) -> ApplicationSettings:
        """Reset to default settings."""
        self._settings = ApplicationSettings()
        self.save()
        return self._settings

    def add_observer(self, callback: Callable[[ApplicationSettings], None]) -> None:
        """Add a callback to be notified of settings changes."""
        self._observers.append(callback)

    def _notify_observers(self) -> None:
        """Notify all observers of settings change."""
        for callback in self._observers:
            try:
                callback(self._settings)
            except Exception:
                logging.exception("SettingsManager - Settings observer failed")

    def add_recent_path(self, path: str, role: Role) -> None:
        """Add a path to the recent folders list for role."""
        settings = self.settings

        if role == Role.ORIGIN:
            recent = settings.recent_origin_paths
        else:
            recent = settings.recent_destination_paths

        # Remove if already exists
        if path in recent:
            recent.remove(path)

        # Add to front
        recent.insert(0, path)

        # Trim to limit
        limit = settings.ui.recent_paths_limit
        if role == Role.ORIGIN:
            settings.recent_origin_paths = recent[:limit]
        else:
            settings.recent_destination_paths = recent[:limit]

        self.save()

    def _to_dict(self, settings: ApplicationSettings) -> dict:
        """Convert settings to dictionary for JSON serialization."""
        return asdict(settings)

    def _from_dict(self, data: dict) -> ApplicationSettings:
        """Convert dictionary back to settings objects."""
        def section(name: str) -> dict[str, Any]:
            value = data.get(name, {})
            return value if isinstance(value, dict) else {}

        defaults = ApplicationSettings()

        transfer = TransferSettings(
            dated_subfolders=bool(section('transfer').get('dated_subfolders', defaults.transfer.dated_subfolders)),
        )

        view_data = section('view')
        view = ViewSettings(
            show_only_untransferred=bool(view_data.get('show_only_untransferred', defaults.view.show_only_untransferred)),
            sort_by_file_type=bool(view_data.get('sort_by_file_type', defaults.view.sort_by_file_type)),
            sort_ascending=bool(view_data.get('sort_ascending', defaults.view.sort_ascending)),
        )

        ui_data = section('ui')
        ui = UISettings(
            window_width=int(ui_data.get('window_width', defaults.ui.window_width)),
            window_height=int(ui_data.get('window_height', defaults.ui.window_height)),
            recent_paths_limit=int(ui_data.get('recent_paths_limit', defaults.ui.recent_paths_limit)),
        )

        return ApplicationSettings(
            transfer=transfer,
            view=view,
            ui=ui,
            recent_origin_paths=list(data.get('recent_origin_paths', [])),
            recent_destination_paths=list(data.get('recent_destination_paths', [])),
        )
