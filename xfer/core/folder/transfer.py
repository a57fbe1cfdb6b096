"""
Copy engine for moving untransferred origin files into the destination.

Provides:
- Eligibility filtering (selected and not yet in the destination)
- Optional routing into MM-DD-YYYY subfolders by creation date
- Per-file error isolation (a failed copy never stops the batch)
"""

from __future__ import annotations

import logging
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Optional

from xfer.core.errors import CopyItemError
from xfer.core.models import DATE_FOLDER_FORMAT, FileRecord


@dataclass
class TransferOptions:
    """Options for a copy batch."""
    dated_subfolders: bool = False


@dataclass
class TransferProgress:
    """Progress information after each attempted file."""
    current_item: str
    attempted: int
    copied: int
    failed: int
    total: int


@dataclass
class TransferResult:
    """Result of a copy batch."""
    total: int
    copied: list[Path] = field(default_factory=list)
    errors: list[CopyItemError] = field(default_factory=list)
    duration: float = 0.0

    @property
    def copied_count(self) -> int:
        return len(self.copied)

    @property
    def failed_count(self) -> int:
        return len(self.errors)


def eligible_records(records: Iterable[FileRecord]) -> list[FileRecord]:
    """Keep only records that are selected and missing from the destination."""
    return [record for record in records if record.is_eligible]


def dated_folder_name(record: FileRecord) -> Optional[str]:
    """Get the MM-DD-YYYY folder name for a record, or None without a date."""
    if record.created_at is None:
        return None
    return record.created_at.strftime(DATE_FOLDER_FORMAT)


class FileTransfer:
    """
    Copies a batch of origin records into a destination root.

    Existing files in the destination are never overwritten; that case
    is reported as a failed item like any other copy error.
    """

    def __init__(self, options: Optional[TransferOptions] = None):
        self.options = options or TransferOptions()

    def target_folder(self, record: FileRecord, destination_root: Path) -> Path:
        """Folder a record will be copied into."""
        if self.options.dated_subfolders:
            folder_name = dated_folder_name(record)
            if folder_name:
                return destination_root / folder_name
        return destination_root

    def target_path(self, record: FileRecord, destination_root: Path) -> Path:
        return self.target_folder(record, destination_root) / record.name

    def copy_record(self, record: FileRecord, destination_root: Path) -> Path:
        """
        Copy one record.

        Returns:
            The path of the new file

        Raises:
            CopyItemError: if the folder cannot be created, the target
                already exists, or the copy itself fails
        """
        target = self.target_path(record, destination_root)
        created = False

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            # 'x' fails on any existing entry, dangling symlinks included
            with open(record.path, 'rb') as src, open(target, 'xb') as dst:
                created = True
                shutil.copyfileobj(src, dst)
            shutil.copystat(record.path, target)
        except OSError as e:
            if created:
                target.unlink(missing_ok=True)
            raise CopyItemError(record.path, target, e) from e

        return target

    def execute(
        self,
        records: Iterable[FileRecord],
        destination_root: Path | str,
        progress_callback: Optional[Callable[[TransferProgress], None]] = None
    ) -> TransferResult:
        """
        Copy every eligible record.

        Args:
            records: Candidate records; ineligible ones are ignored
            destination_root: Destination root folder
            progress_callback: Called after each attempted file

        Returns:
            TransferResult with the copied paths and per-file errors
        """
        start_time = time.time()
        destination_root = Path(destination_root)

        batch = eligible_records(records)
        result = TransferResult(total=len(batch))

        for index, record in enumerate(batch, start=1):
            try:
                result.copied.append(self.copy_record(record, destination_root))
            except CopyItemError as e:
                logging.warning(f"FileTransfer - {e}")
                result.errors.append(e)

            if progress_callback:
                progress_callback(TransferProgress(
                    current_item=record.name,
                    attempted=index,
                    copied=result.copied_count,
                    failed=result.failed_count,
                    total=result.total,
                ))

        result.duration = time.time() - start_time
        logging.info(
            f"FileTransfer - Copied {result.copied_count}/{result.total} files "
            f"to {destination_root} ({result.failed_count} failed)"
        )
        return result
