"""Shared fixtures: temporary folder trees, settings stores and sessions."""

from __future__ import annotations

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from pathlib import Path
from typing import Callable, Iterator

import pytest
from PyQt6.QtCore import QSettings

from xfer.services.authorization import AuthorizationStore
from xfer.services.settings import SettingsManager


def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Create files (relative path -> content) below root."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def make_tree(tmp_path: Path) -> Callable[[str, dict[str, str]], Path]:
    def factory(name: str, files: dict[str, str]) -> Path:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        return write_tree(root, files)

    return factory


@pytest.fixture
def qsettings(tmp_path: Path) -> QSettings:
    return QSettings(str(tmp_path / "grants.ini"), QSettings.Format.IniFormat)


@pytest.fixture
def store(qsettings: QSettings) -> Iterator[AuthorizationStore]:
    with AuthorizationStore(qsettings) as authorization_store:
        yield authorization_store


@pytest.fixture
def settings_manager(tmp_path: Path) -> SettingsManager:
    return SettingsManager(tmp_path / "config" / "settings.json")
