"""Smoke tests for the main window and its record list model."""

from __future__ import annotations

import pytest
from PyQt6.QtCore import Qt

from xfer.core.models import Role, ScanStatus
from xfer.services.session import TransferSession
from xfer.ui.main_window import MainWindow
from xfer.ui.record_model import RecordListModel


@pytest.fixture
def session(store, settings_manager):
    transfer_session = TransferSession(store, settings_manager, throttle_interval=0.0)
    yield transfer_session
    transfer_session.close()


def _scan(qtbot, session: TransferSession, origin, destination) -> None:
    session.set_root(Role.ORIGIN, origin)
    session.set_root(Role.DESTINATION, destination)
    qtbot.waitUntil(lambda: session.scan_state.status == ScanStatus.COMPLETED, timeout=5000)


def test_window_lists_scanned_files(qtbot, session, make_tree) -> None:
    window = MainWindow(session)
    qtbot.addWidget(window)

    _scan(qtbot, session, make_tree("origin", {"a.jpg": "a", "b.jpg": "b"}), make_tree("dest", {"b.jpg": "b"}))
    model = window._model
    qtbot.waitUntil(lambda: model.rowCount() == 2, timeout=5000)

    first, second = model.index(0), model.index(1)
    assert model.data(first) == "a.jpg"
    assert model.data(first, Qt.ItemDataRole.CheckStateRole) == Qt.CheckState.Unchecked
    assert model.data(second) == "✓  b.jpg"
    assert not (model.flags(second) & Qt.ItemFlag.ItemIsUserCheckable)
    assert window._copy_button.isEnabled()


def test_bursts_of_view_changes_refresh_once(qtbot, session, make_tree) -> None:
    window = MainWindow(session)
    qtbot.addWidget(window)
    _scan(qtbot, session, make_tree("origin", {"a.jpg": "a", "b.png": "b"}), make_tree("dest", {}))
    qtbot.waitUntil(
        lambda: window._model.rowCount() == 2 and not window._refresh_timer.isActive(),
        timeout=5000,
    )
    resets: list[bool] = []
    window._model.modelReset.connect(lambda: resets.append(True))

    session.set_search_text("a")
    session.set_sort_ascending(False)
    session.set_search_text("b")

    qtbot.waitUntil(lambda: window._model.rowCount() == 1, timeout=5000)
    assert len(resets) == 1


def test_checking_a_row_selects_the_record(qtbot, session, make_tree) -> None:
    model = RecordListModel(session)
    _scan(qtbot, session, make_tree("origin", {"a.jpg": "a", "b.jpg": "b"}), make_tree("dest", {"b.jpg": "b"}))
    model.refresh()

    with qtbot.waitSignal(model.dataChanged, timeout=1000):
        assert model.setData(model.index(0), Qt.CheckState.Checked.value, Qt.ItemDataRole.CheckStateRole)

    assert model.record_at(0).selected is True
    assert model.data(model.index(0), Qt.ItemDataRole.CheckStateRole) == Qt.CheckState.Checked
    assert model.setData(model.index(1), Qt.CheckState.Checked.value, Qt.ItemDataRole.CheckStateRole) is False
    assert model.record_at(1).selected is False


def test_model_rows_carry_record_ids(qtbot, session, make_tree) -> None:
    model = RecordListModel(session)
    _scan(qtbot, session, make_tree("origin", {"a.jpg": "a"}), make_tree("dest", {}))
    model.refresh()

    record = session.visible_records()[0]
    assert model.data(model.index(0), RecordListModel.RecordIdRole) == record.record_id
    assert model.data(model.index(0), Qt.ItemDataRole.ToolTipRole) == str(record.path)
    assert model.record_at(5) is None


def test_buttons_disabled_while_scanning(qtbot, session, make_tree) -> None:
    window = MainWindow(session)
    qtbot.addWidget(window)

    session.set_root(Role.ORIGIN, make_tree("origin", {f"{index}.jpg": "x" for index in range(20)}))
    session.set_root(Role.DESTINATION, make_tree("dest", {}))

    assert not window._copy_button.isEnabled()
    assert not window._scan_button.isEnabled()
