"""Tests for scan generations, progress and cancellation."""

from __future__ import annotations

from pathlib import Path

import pytest

from xfer.core.models import FileRecord, ScanBatch, ScanState, ScanStatus
from xfer.services.scan_coordinator import ScanCoordinator


@pytest.fixture
def coordinator():
    scan_coordinator = ScanCoordinator(throttle_interval=0.0)
    yield scan_coordinator
    scan_coordinator.shutdown()


def _wait_for(qtbot, coordinator: ScanCoordinator, status: ScanStatus) -> None:
    qtbot.waitUntil(lambda: coordinator.state.status == status, timeout=5000)


def test_completed_scan_reports_final_counts(qtbot, coordinator, make_tree) -> None:
    origin = make_tree("origin", {"a.jpg": "a", "b.jpg": "b", "album/c.jpg": "c", ".hidden": "x"})
    destination = make_tree("dest", {"b.jpg": "b"})

    generation = coordinator.start(origin, destination)
    _wait_for(qtbot, coordinator, ScanStatus.COMPLETED)

    state = coordinator.state
    assert state.generation == generation
    assert state.scanned_count == state.total_count == 3
    assert state.progress == 1.0
    verdicts = {record.name: record.exists_in_destination for record in coordinator.iter_records()}
    assert verdicts == {"a.jpg": False, "b.jpg": True, "c.jpg": False}


def test_progress_never_decreases(qtbot, coordinator, make_tree) -> None:
    files = {f"dir{index}/file{item}.jpg": "x" for index in range(5) for item in range(20)}
    origin = make_tree("origin", files)
    destination = make_tree("dest", {})
    states: list[ScanState] = []
    coordinator.state_changed.connect(states.append)

    coordinator.start(origin, destination)
    _wait_for(qtbot, coordinator, ScanStatus.COMPLETED)

    progress = [state.progress for state in states]
    assert progress == sorted(progress)
    assert all(0.0 <= value <= 1.0 for value in progress)
    assert progress[-1] == 1.0


def test_cancel_resets_progress_immediately(qtbot, coordinator, make_tree) -> None:
    origin = make_tree("origin", {f"{index:03d}.jpg": "x" for index in range(200)})
    destination = make_tree("dest", {})

    generation = coordinator.start(origin, destination)
    coordinator.cancel()

    assert coordinator.state.status == ScanStatus.CANCELLED
    assert coordinator.state.progress == 0.0

    qtbot.waitUntil(lambda: not coordinator._threads, timeout=5000)
    assert coordinator.state.status == ScanStatus.CANCELLED
    assert coordinator.state.generation == generation
    assert coordinator.state.progress == 0.0


def test_cancel_without_scan_is_a_noop(coordinator) -> None:
    states: list[ScanState] = []
    coordinator.state_changed.connect(states.append)

    coordinator.cancel()

    assert states == []
    assert coordinator.state.status == ScanStatus.IDLE


def test_new_scan_supersedes_running_one(qtbot, coordinator, make_tree) -> None:
    old_origin = make_tree("old", {f"old{index}.jpg": "x" for index in range(50)})
    new_origin = make_tree("new", {"new.jpg": "x"})
    destination = make_tree("dest", {})

    first = coordinator.start(old_origin, destination)
    second = coordinator.start(new_origin, destination)
    _wait_for(qtbot, coordinator, ScanStatus.COMPLETED)
    qtbot.waitUntil(lambda: not coordinator._threads, timeout=5000)

    assert second == first + 1
    assert coordinator.state.generation == second
    assert [record.name for record in coordinator.iter_records()] == ["new.jpg"]
    assert coordinator.roots == (new_origin, destination)


def test_missing_root_fails_with_message(qtbot, coordinator, make_tree, tmp_path: Path) -> None:
    destination = make_tree("dest", {})

    with qtbot.waitSignal(coordinator.error_message_changed, timeout=5000) as blocker:
        coordinator.start(tmp_path / "gone", destination)

    assert coordinator.state.status == ScanStatus.FAILED
    assert "origin" in blocker.args[0]
    assert coordinator.error_message == blocker.args[0]
    assert list(coordinator.iter_records()) == []


def test_new_scan_clears_error_message(qtbot, coordinator, make_tree, tmp_path: Path) -> None:
    origin = make_tree("origin", {"a.jpg": "a"})

    coordinator.start(origin, tmp_path / "gone")
    _wait_for(qtbot, coordinator, ScanStatus.FAILED)
    assert "destination" in coordinator.error_message

    destination = make_tree("dest", {})
    coordinator.start(origin, destination)

    assert coordinator.error_message is None
    _wait_for(qtbot, coordinator, ScanStatus.COMPLETED)


def test_rescan_reuses_last_roots(qtbot, coordinator, make_tree) -> None:
    origin = make_tree("origin", {"a.jpg": "a"})
    destination = make_tree("dest", {})

    assert coordinator.rescan() is None

    first = coordinator.start(origin, destination)
    _wait_for(qtbot, coordinator, ScanStatus.COMPLETED)
    (destination / "a.jpg").write_text("a", encoding="utf-8")

    assert coordinator.rescan() == first + 1
    _wait_for(qtbot, coordinator, ScanStatus.COMPLETED)
    assert [record.exists_in_destination for record in coordinator.iter_records()] == [True]


def test_superseded_generation_deliveries_are_ignored(qtbot, coordinator, make_tree) -> None:
    origin = make_tree("origin", {"a.jpg": "a"})
    destination = make_tree("dest", {})
    old = coordinator.start(origin, destination)
    current = coordinator.start(origin, destination)
    before = coordinator.state

    coordinator._on_batch_ready(ScanBatch(
        generation=old,
        records=(FileRecord(path=origin / "stale.jpg"),),
        scanned_count=1,
        total_count=1,
        done=True,
    ))
    coordinator._on_access_denied(old, "Cannot access origin folder: stale")
    coordinator._on_worker_error(old, "OSError", "stale")

    assert coordinator.state == before
    assert coordinator.state.generation == current
    assert coordinator.error_message is None
    assert list(coordinator.iter_records()) == []


def test_deliveries_after_completion_are_ignored(qtbot, coordinator, make_tree) -> None:
    origin = make_tree("origin", {"a.jpg": "a"})
    destination = make_tree("dest", {})
    generation = coordinator.start(origin, destination)
    _wait_for(qtbot, coordinator, ScanStatus.COMPLETED)
    before = coordinator.state

    coordinator._on_batch_ready(ScanBatch(
        generation=generation,
        records=(FileRecord(path=origin / "late.jpg"),),
        scanned_count=2,
        total_count=2,
    ))

    assert coordinator.state == before
    assert [record.name for record in coordinator.iter_records()] == ["a.jpg"]


def test_long_interval_publishes_first_record_then_final_state(qtbot, make_tree) -> None:
    origin = make_tree("origin", {f"{index:02d}.jpg": "x" for index in range(10)})
    destination = make_tree("dest", {})
    coordinator = ScanCoordinator(throttle_interval=60.0)
    states: list[ScanState] = []
    coordinator.state_changed.connect(states.append)

    try:
        coordinator.start(origin, destination)
        _wait_for(qtbot, coordinator, ScanStatus.COMPLETED)
    finally:
        coordinator.shutdown()

    assert [(state.status, state.scanned_count) for state in states] == [
        (ScanStatus.RUNNING, 0),
        (ScanStatus.RUNNING, 1),
        (ScanStatus.COMPLETED, 10),
    ]
    assert states[-1].progress == 1.0


def test_set_roots_changes_the_next_rescan(qtbot, coordinator, make_tree) -> None:
    origin = make_tree("origin", {"a.jpg": "a"})
    first = make_tree("dest_a", {})
    second = make_tree("dest_b", {"a.jpg": "a"})
    coordinator.start(origin, first)
    _wait_for(qtbot, coordinator, ScanStatus.COMPLETED)

    coordinator.set_roots(origin, second)
    assert coordinator.state.status == ScanStatus.COMPLETED

    coordinator.rescan()
    _wait_for(qtbot, coordinator, ScanStatus.COMPLETED)
    assert coordinator.roots == (origin, second)
    assert [record.exists_in_destination for record in coordinator.iter_records()] == [True]
