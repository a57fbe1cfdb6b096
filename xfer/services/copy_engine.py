"""
Copy batch coordination on the control thread.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Iterable, Optional

from PyQt6.QtCore import QObject, pyqtSignal, pyqtSlot

from xfer.core.folder.transfer import TransferOptions, TransferResult, eligible_records
from xfer.core.models import CopyProgress, CopyState, CopyStatus, FileRecord
from xfer.services.scan_coordinator import ScanCoordinator
from xfer.workers.base_worker import ProgressThrottle, WorkerThread
from xfer.workers.copy_worker import CopyWorker


class CopyEngine(QObject):
    """
    Copies the eligible part of a selection and then rescans.

    Only one batch runs at a time and a batch cannot be cancelled. When
    it finishes the state is published as COMPLETED, reset to IDLE, and
    the scan coordinator is asked to scan the same pair again so
    transfer flags reflect the new destination contents.
    """

    # Emitted with the new CopyState
    state_changed = pyqtSignal(object)

    # Emitted when a batch ends: (copied, failed)
    batch_finished = pyqtSignal(int, int)

    def __init__(
        self,
        scan_coordinator: ScanCoordinator,
        throttle_interval: Optional[float] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self._scan_coordinator = scan_coordinator
        self._throttle_interval = throttle_interval
        self._state = CopyState()
        self._job_id = 0
        self._threads: dict[int, WorkerThread] = {}

    @property
    def state(self) -> CopyState:
        return self._state

    def copy(
        self,
        records: Iterable[FileRecord],
        destination_root: Path | str,
        dated_subfolders: bool = False
    ) -> bool:
        """
        Start copying the selected, untransferred records.

        Returns:
            True if a batch was started
        """
        if self._state.is_running:
            logging.warning("CopyEngine - A copy batch is already running")
            return False

        # Snapshot so later selection changes do not reach the worker
        batch = [replace(record) for record in eligible_records(records)]
        if not batch:
            logging.info("CopyEngine - Nothing selected to copy")
            return False

        self._job_id += 1
        self._publish(CopyState(status=CopyStatus.RUNNING, total_to_copy=len(batch)))

        throttle = ProgressThrottle(self._throttle_interval) if self._throttle_interval is not None else None
        worker = CopyWorker(
            self._job_id,
            batch,
            destination_root,
            options=TransferOptions(dated_subfolders=dated_subfolders),
            throttle=throttle,
        )
        worker.progress_ready.connect(self._on_progress_ready)
        worker.signals.finished.connect(self._on_worker_finished)
        worker.signals.error.connect(self._on_worker_error)

        thread = WorkerThread(worker)
        thread.finished.connect(self._on_thread_finished)
        self._threads[self._job_id] = thread
        logging.info(
            f"CopyEngine - Batch {self._job_id}: copying {len(batch)} files to {destination_root}"
            f"{' (dated subfolders)' if dated_subfolders else ''}"
        )
        thread.start()
        return True

    def shutdown(self, timeout_ms: int = 5000) -> None:
        """Wait for a running batch to finish."""
        for job_id, thread in list(self._threads.items()):
            thread.quit()
            if not thread.wait(timeout_ms):
                logging.warning(f"CopyEngine - Batch {job_id} did not stop in time")
        self._threads.clear()

    # === Worker slots ===

    @pyqtSlot(object)
    def _on_progress_ready(self, progress: CopyProgress) -> None:
        if progress.job_id != self._job_id or not self._state.is_running:
            return
        self._publish(replace(
            self._state,
            copied_count=progress.copied,
            failed_count=progress.failed,
            progress=max(self._state.progress, 1.0 if progress.done else progress.ratio),
        ))

    @pyqtSlot(int, object)
    def _on_worker_finished(self, job_id: int, result: TransferResult) -> None:
        if job_id != self._job_id:
            return
        self._finish(result.copied_count, result.failed_count)

    @pyqtSlot(int, str, str)
    def _on_worker_error(self, job_id: int, error_type: str, message: str) -> None:
        if job_id != self._job_id:
            return
        logging.error(f"CopyEngine - Batch {job_id} aborted: {error_type}: {message}")
        self._finish(self._state.copied_count, self._state.total_to_copy - self._state.copied_count)

    @pyqtSlot()
    def _on_thread_finished(self) -> None:
        for job_id, thread in list(self._threads.items()):
            if thread.isFinished():
                del self._threads[job_id]

    def _finish(self, copied: int, failed: int) -> None:
        self._publish(replace(
            self._state,
            status=CopyStatus.COMPLETED,
            copied_count=copied,
            failed_count=failed,
            progress=1.0,
        ))
        self.batch_finished.emit(copied, failed)
        self._publish(CopyState())
        self._scan_coordinator.rescan()

    def _publish(self, state: CopyState) -> None:
        self._state = state
        self.state_changed.emit(state)
