"""
Scan coordination on the control thread.

Owns the scan generation counter, the cancel token, the result set and
the published ScanState. Workers hand results over through queued
signals; this object applies them only while their generation is the
current, running one.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Iterable, Optional

from PyQt6.QtCore import QObject, pyqtSignal, pyqtSlot

from xfer.core.models import CancelToken, FileRecord, ScanBatch, ScanState, ScanStatus
from xfer.workers.base_worker import ProgressThrottle, WorkerThread
from xfer.workers.scan_worker import ScanWorker


class ScanCoordinator(QObject):
    """
    Runs at most one scan at a time.

    Starting a scan while another runs cancels the old one first. The
    published `total_count` grows while the origin is walked, so the
    ratio is provisional until the final update; `progress` is clamped
    so it never goes backwards within a generation.
    """

    # Emitted with the new ScanState
    state_changed = pyqtSignal(object)

    # Emitted after records were added to or cleared from the result set
    records_changed = pyqtSignal()

    # Emitted with the new user-visible error message ("" when cleared)
    error_message_changed = pyqtSignal(str)

    def __init__(
        self,
        throttle_interval: Optional[float] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self._throttle_interval = throttle_interval
        self._state = ScanState()
        self._records: dict[int, FileRecord] = {}
        self._error_message: Optional[str] = None
        self._token: Optional[CancelToken] = None
        self._threads: dict[int, WorkerThread] = {}
        self._origin: Optional[Path] = None
        self._destination: Optional[Path] = None

    # === Observable state ===

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def records(self) -> dict[int, FileRecord]:
        """Result set keyed by record id. Read-only for callers."""
        return self._records

    @property
    def error_message(self) -> Optional[str]:
        return self._error_message

    @property
    def roots(self) -> tuple[Optional[Path], Optional[Path]]:
        """Origin and destination of the most recent scan."""
        return self._origin, self._destination

    def get_record(self, record_id: int) -> Optional[FileRecord]:
        return self._records.get(record_id)

    def iter_records(self) -> Iterable[FileRecord]:
        return self._records.values()

    # === Commands ===

    def start(self, origin: Path | str, destination: Path | str) -> int:
        """
        Start a new scan generation.

        Returns:
            The new generation number
        """
        if self._state.is_running:
            logging.info(f"ScanCoordinator - Superseding generation {self._state.generation}")
            self.cancel()

        self._origin = Path(origin)
        self._destination = Path(destination)

        generation = self._state.generation + 1
        self._token = CancelToken()
        self._records = {}
        self._set_error_message(None)
        self._publish(ScanState(generation=generation, status=ScanStatus.RUNNING))
        self.records_changed.emit()

        throttle = ProgressThrottle(self._throttle_interval) if self._throttle_interval is not None else None
        worker = ScanWorker(
            generation,
            self._origin,
            self._destination,
            cancel_token=self._token,
            throttle=throttle,
        )
        worker.batch_ready.connect(self._on_batch_ready)
        worker.access_denied.connect(self._on_access_denied)
        worker.signals.error.connect(self._on_worker_error)

        thread = WorkerThread(worker)
        thread.finished.connect(self._on_thread_finished)
        self._threads[generation] = thread

        logging.info(f"ScanCoordinator - Generation {generation}: {self._origin} -> {self._destination}")
        thread.start()
        return generation

    def set_roots(self, origin: Path | str, destination: Path | str) -> None:
        """Change the pair the next `rescan` uses without starting a scan."""
        self._origin = Path(origin)
        self._destination = Path(destination)

    def rescan(self) -> Optional[int]:
        """Scan the last origin/destination pair again."""
        if self._origin is None or self._destination is None:
            logging.debug("ScanCoordinator - Rescan requested without roots")
            return None
        return self.start(self._origin, self._destination)

    def cancel(self) -> None:
        """
        Cancel the running scan.

        Progress drops to zero immediately; the result set keeps whatever
        was last published. Does nothing when no scan is running.
        """
        if not self._state.is_running:
            return

        if self._token:
            self._token.cancel()

        self._publish(replace(self._state, status=ScanStatus.CANCELLED, progress=0.0))
        logging.info(f"ScanCoordinator - Generation {self._state.generation} cancelled")

    def shutdown(self, timeout_ms: int = 2000) -> None:
        """Cancel any scan and wait for worker threads to stop."""
        self.cancel()
        for generation, thread in list(self._threads.items()):
            thread.quit()
            if not thread.wait(timeout_ms):
                logging.warning(f"ScanCoordinator - Worker for generation {generation} did not stop in time")
        self._threads.clear()

    # === Worker slots ===

    def _is_current(self, generation: int) -> bool:
        return generation == self._state.generation and self._state.is_running

    @pyqtSlot(object)
    def _on_batch_ready(self, batch: ScanBatch) -> None:
        if not self._is_current(batch.generation):
            return

        for record in batch.records:
            self._records[record.record_id] = record

        if batch.done:
            state = replace(
                self._state,
                status=ScanStatus.COMPLETED,
                scanned_count=len(self._records),
                total_count=len(self._records),
                progress=1.0,
                error_count=batch.error_count,
            )
        else:
            ratio = batch.scanned_count / max(batch.total_count, 1)
            state = replace(
                self._state,
                scanned_count=batch.scanned_count,
                total_count=batch.total_count,
                progress=max(self._state.progress, min(ratio, 1.0)),
                error_count=batch.error_count,
            )

        if batch.records:
            self.records_changed.emit()
        self._publish(state)

    @pyqtSlot(int, str)
    def _on_access_denied(self, generation: int, message: str) -> None:
        if not self._is_current(generation):
            return
        self._set_error_message(message)
        self._publish(replace(self._state, status=ScanStatus.FAILED, progress=0.0, failure_reason=message))

    @pyqtSlot(int, str, str)
    def _on_worker_error(self, generation: int, error_type: str, message: str) -> None:
        if not self._is_current(generation):
            return
        logging.error(f"ScanCoordinator - Generation {generation} failed: {error_type}: {message}")
        self._publish(replace(
            self._state,
            status=ScanStatus.FAILED,
            progress=0.0,
            failure_reason=f"{error_type}: {message}",
        ))

    @pyqtSlot()
    def _on_thread_finished(self) -> None:
        for generation, thread in list(self._threads.items()):
            if thread.isFinished():
                del self._threads[generation]

    # === Helpers ===

    def _publish(self, state: ScanState) -> None:
        self._state = state
        self.state_changed.emit(state)

    def _set_error_message(self, message: Optional[str]) -> None:
        if message == self._error_message:
            return
        self._error_message = message
        self.error_message_changed.emit(message or "")
