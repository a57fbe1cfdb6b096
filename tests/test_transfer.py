"""Tests for copying records into the destination."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path

import pytest

from xfer.core.errors import CopyItemError
from xfer.core.folder.transfer import (
    FileTransfer, TransferOptions, TransferProgress, dated_folder_name, eligible_records,
)
from xfer.core.models import FileRecord


def _record(path: Path, **kwargs) -> FileRecord:
    kwargs.setdefault("selected", True)
    return FileRecord(path=path, **kwargs)


def test_eligible_records_need_selection_and_absence() -> None:
    chosen = _record(Path("/o/a.jpg"))
    unselected = _record(Path("/o/b.jpg"), selected=False)
    present = _record(Path("/o/c.jpg"), exists_in_destination=True)

    assert eligible_records([chosen, unselected, present]) == [chosen]


def test_dated_folder_name_format() -> None:
    record = _record(Path("/o/a.jpg"), created_at=datetime(2024, 3, 5, 14, 30))

    assert dated_folder_name(record) == "03-05-2024"
    assert dated_folder_name(_record(Path("/o/b.jpg"))) is None


def test_copy_into_dated_subfolder(make_tree) -> None:
    origin = make_tree("origin", {"a.jpg": "alpha"})
    destination = make_tree("dest", {})
    record = _record(origin / "a.jpg", created_at=datetime(2024, 3, 5))

    result = FileTransfer(TransferOptions(dated_subfolders=True)).execute([record], destination)

    assert result.copied == [destination / "03-05-2024" / "a.jpg"]
    assert (destination / "03-05-2024" / "a.jpg").read_text(encoding="utf-8") == "alpha"


def test_dated_copy_without_creation_date_goes_to_root(make_tree) -> None:
    origin = make_tree("origin", {"a.jpg": "alpha"})
    destination = make_tree("dest", {})

    FileTransfer(TransferOptions(dated_subfolders=True)).execute([_record(origin / "a.jpg")], destination)

    assert (destination / "a.jpg").exists()


def test_undated_copy_lands_in_root(make_tree) -> None:
    origin = make_tree("origin", {"album/a.jpg": "alpha"})
    destination = make_tree("dest", {})
    record = _record(origin / "album" / "a.jpg", created_at=datetime(2024, 3, 5))

    result = FileTransfer().execute([record], destination)

    assert result.copied_count == 1
    assert (destination / "a.jpg").read_text(encoding="utf-8") == "alpha"
    assert not (destination / "03-05-2024").exists()


def test_existing_target_is_not_overwritten(make_tree) -> None:
    origin = make_tree("origin", {"a.jpg": "new"})
    destination = make_tree("dest", {"a.jpg": "old"})

    with pytest.raises(CopyItemError):
        FileTransfer().copy_record(_record(origin / "a.jpg"), destination)

    assert (destination / "a.jpg").read_text(encoding="utf-8") == "old"


def test_failed_item_does_not_stop_batch(make_tree) -> None:
    origin = make_tree("origin", {"a.jpg": "a", "c.jpg": "c"})
    destination = make_tree("dest", {})
    records = [
        _record(origin / "a.jpg"),
        _record(origin / "b.jpg"),  # vanished since the scan
        _record(origin / "c.jpg"),
    ]
    updates: list[TransferProgress] = []

    result = FileTransfer().execute(records, destination, updates.append)

    assert result.total == 3
    assert result.copied_count == 2
    assert result.failed_count == 1
    assert result.errors[0].source == origin / "b.jpg"
    assert [update.attempted for update in updates] == [1, 2, 3]
    assert updates[-1].copied == 2
    assert updates[-1].failed == 1


def test_ineligible_records_are_ignored(make_tree) -> None:
    origin = make_tree("origin", {"a.jpg": "a"})
    destination = make_tree("dest", {})

    result = FileTransfer().execute([_record(origin / "a.jpg", selected=False)], destination)

    assert result.total == 0
    assert list(destination.iterdir()) == []


@pytest.mark.skipif(os.name == "nt", reason="symlinks need privileges on Windows")
def test_dangling_symlink_at_target_is_not_followed(make_tree, tmp_path: Path) -> None:
    origin = make_tree("origin", {"a.jpg": "new"})
    destination = make_tree("dest", {})
    outside = tmp_path / "outside.jpg"
    (destination / "a.jpg").symlink_to(outside)

    with pytest.raises(CopyItemError):
        FileTransfer().copy_record(_record(origin / "a.jpg"), destination)

    assert not outside.exists()
    assert (destination / "a.jpg").is_symlink()


def test_copy_keeps_modification_time(make_tree) -> None:
    origin = make_tree("origin", {"a.jpg": "alpha"})
    destination = make_tree("dest", {})
    os.utime(origin / "a.jpg", (1_000_000_000, 1_000_000_000))

    target = FileTransfer().copy_record(_record(origin / "a.jpg"), destination)

    assert target.stat().st_mtime == 1_000_000_000
