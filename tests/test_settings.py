"""Tests for JSON-backed application settings."""

from __future__ import annotations

import json
from pathlib import Path

from xfer.core.models import Role
from xfer.services.settings import ApplicationSettings, SettingsManager


def test_missing_file_gives_defaults(settings_manager: SettingsManager) -> None:
    settings = settings_manager.settings

    assert settings.transfer.dated_subfolders is False
    assert settings.view.sort_ascending is True
    assert settings.recent_origin_paths == []


def test_save_and_reload(settings_manager: SettingsManager) -> None:
    settings_manager.settings.transfer.dated_subfolders = True
    settings_manager.settings.view.sort_by_file_type = True
    assert settings_manager.save()

    reloaded = SettingsManager(settings_manager.settings_path).settings

    assert reloaded.transfer.dated_subfolders is True
    assert reloaded.view.sort_by_file_type is True


def test_corrupt_file_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")

    assert SettingsManager(path).settings == ApplicationSettings()


def test_unknown_and_partial_sections_are_tolerated(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"view": {"sort_ascending": False}, "themes": "dark"}), encoding="utf-8")

    settings = SettingsManager(path).settings

    assert settings.view.sort_ascending is False
    assert settings.view.show_only_untransferred is False


def test_recent_paths_are_deduplicated_and_limited(settings_manager: SettingsManager) -> None:
    settings_manager.settings.ui.recent_paths_limit = 2

    for path in ("/a", "/b", "/a", "/c"):
        settings_manager.add_recent_path(path, Role.ORIGIN)

    assert settings_manager.settings.recent_origin_paths == ["/c", "/a"]
    assert settings_manager.settings.recent_destination_paths == []


def test_view_settings_build_query(settings_manager: SettingsManager) -> None:
    settings_manager.settings.view.show_only_untransferred = True

    query = settings_manager.settings.view.to_query("img")

    assert query.search_text == "img"
    assert query.show_only_untransferred is True


def test_observers_are_notified_on_save(settings_manager: SettingsManager) -> None:
    seen: list[ApplicationSettings] = []
    settings_manager.add_observer(seen.append)

    settings_manager.reset()

    assert len(seen) == 1
