"""
Worker for copying selected files into the destination.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from PyQt6.QtCore import QObject, pyqtSignal

from xfer.core.folder.transfer import FileTransfer, TransferOptions, TransferProgress, TransferResult
from xfer.core.models import CopyProgress, FileRecord
from xfer.workers.base_worker import BaseWorker, ProgressThrottle


class CopyWorker(BaseWorker):
    """
    Worker for executing a copy batch.

    Reports throttled progress after each file plus one final update.
    A copy batch cannot be cancelled once started.
    """

    # Emitted with a CopyProgress
    progress_ready = pyqtSignal(object)

    def __init__(
        self,
        job_id: int,
        records: Sequence[FileRecord],
        destination_root: Path | str,
        options: Optional[TransferOptions] = None,
        throttle: Optional[ProgressThrottle] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(job_id=job_id, parent=parent)
        self.records = list(records)
        self.destination_root = Path(destination_root)
        self.options = options or TransferOptions()
        self.throttle = throttle or ProgressThrottle()

    def do_work(self) -> TransferResult:
        """Execute the copy batch."""
        transfer = FileTransfer(self.options)

        def progress_callback(progress: TransferProgress) -> None:
            if progress.attempted < progress.total and self.throttle.ready():
                self.progress_ready.emit(CopyProgress(
                    job_id=self.job_id,
                    attempted=progress.attempted,
                    copied=progress.copied,
                    failed=progress.failed,
                    total=progress.total,
                ))

        result = transfer.execute(self.records, self.destination_root, progress_callback)

        self.progress_ready.emit(CopyProgress(
            job_id=self.job_id,
            attempted=result.total,
            copied=result.copied_count,
            failed=result.failed_count,
            total=result.total,
            done=True,
        ))
        return result
