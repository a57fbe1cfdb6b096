"""
Worker for the origin/destination scan.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from PyQt6.QtCore import QObject, pyqtSignal

from xfer.core.errors import AccessDeniedError
from xfer.core.folder.comparer import DiffEngine
from xfer.core.models import CancelToken, FileRecord, Role, ScanBatch
from xfer.workers.base_worker import BaseWorker, ProgressThrottle


def check_root_access(role: Role, path: Path) -> None:
    """Raise AccessDeniedError unless path is a readable directory."""
    if not path.is_dir() or not os.access(path, os.R_OK | os.X_OK):
        raise AccessDeniedError(role.value, path)


class ScanWorker(BaseWorker):
    """
    Runs one scan generation off the control thread.

    New records are handed over in batches, at most one per throttle
    interval, followed by a single batch with `done=True` once the
    origin walk completes. Nothing more is emitted after cancellation.
    """

    # Emitted with a ScanBatch
    batch_ready = pyqtSignal(object)

    # Emitted when a root cannot be read: (generation, message)
    access_denied = pyqtSignal(int, str)

    def __init__(
        self,
        generation: int,
        origin: Path | str,
        destination: Path | str,
        cancel_token: Optional[CancelToken] = None,
        throttle: Optional[ProgressThrottle] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(job_id=generation, cancel_token=cancel_token, parent=parent)
        self.origin = Path(origin)
        self.destination = Path(destination)
        self.throttle = throttle or ProgressThrottle()

    @property
    def generation(self) -> int:
        return self.job_id

    def do_work(self) -> Optional[int]:
        """
        Perform the scan.

        Returns the number of origin records found, or None if a root
        was inaccessible.
        """
        try:
            check_root_access(Role.ORIGIN, self.origin)
            check_root_access(Role.DESTINATION, self.destination)
        except AccessDeniedError as e:
            logging.warning(f"ScanWorker - {e}")
            self.access_denied.emit(self.generation, str(e))
            return None

        engine = DiffEngine()
        pending: list[FileRecord] = []
        scanned = 0

        for record in engine.compare(self.origin, self.destination, self.cancel_token):
            pending.append(record)
            scanned += 1

            if self.throttle.ready():
                self.batch_ready.emit(ScanBatch(
                    generation=self.generation,
                    records=tuple(pending),
                    scanned_count=scanned,
                    total_count=max(engine.origin_discovered, scanned),
                    error_count=engine.error_count,
                ))
                pending = []

        if self.is_cancelled:
            logging.info(f"ScanWorker - Generation {self.generation} cancelled after {scanned} files")
            return scanned

        # The final batch reports true counts
        self.batch_ready.emit(ScanBatch(
            generation=self.generation,
            records=tuple(pending),
            scanned_count=scanned,
            total_count=scanned,
            error_count=engine.error_count,
            done=True,
        ))
        logging.info(
            f"ScanWorker - Generation {self.generation} found {scanned} files "
            f"({engine.error_count} unreadable entries skipped)"
        )
        return scanned
