"""
Base worker classes for background operations.

Provides common functionality for all workers:
- Progress throttling
- Cooperative cancellation
- Error handling
- State management
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import Any, Callable, Optional

from PyQt6.QtCore import QObject, QThread, pyqtSignal, pyqtSlot, QMutex, QMutexLocker

from xfer.core.models import PROGRESS_UPDATE_INTERVAL, CancelToken


class WorkerState(Enum):
    """State of a worker."""
    PENDING = auto()
    RUNNING = auto()
    CANCELLING = auto()
    CANCELLED = auto()
    COMPLETED = auto()
    FAILED = auto()


class WorkerSignals(QObject):
    """
    Signals for worker communication.

    Every signal carries the worker's job id first, so a receiver can
    drop emissions from a worker it has already replaced.
    """
    # Worker finished successfully with result
    finished = pyqtSignal(int, object)

    # Worker failed with error: (job_id, error_type, message)
    error = pyqtSignal(int, str, str)

    # Worker was cancelled
    cancelled = pyqtSignal(int)


class ProgressThrottle:
    """
    Limits how often a running loop publishes progress.

    The first call is always ready; after that at most one call per
    `interval` seconds is.
    """

    def __init__(
        self,
        interval: float = PROGRESS_UPDATE_INTERVAL,
        clock: Callable[[], float] = time.monotonic
    ):
        self.interval = interval
        self._clock = clock
        self._last: Optional[float] = None

    def ready(self) -> bool:
        now = self._clock()
        if self._last is None or now - self._last >= self.interval:
            self._last = now
            return True
        return False


class WorkerMeta(type(QObject), type(ABC)):
    pass


class BaseWorker(QObject, ABC, metaclass=WorkerMeta):
    """
    Base class for workers that run in a QThread.

    Subclass and implement `do_work`.

    Usage:
        worker = MyWorker(job_id)
        thread = WorkerThread(worker)
        worker.signals.finished.connect(receiver.on_finished)
        thread.start()
    """

    def __init__(
        self,
        job_id: int = 0,
        cancel_token: Optional[CancelToken] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self.job_id = job_id
        self.cancel_token = cancel_token or CancelToken()
        self.signals = WorkerSignals()
        self._state = WorkerState.PENDING
        self._mutex = QMutex()

    @property
    def state(self) -> WorkerState:
        """Current worker state."""
        with QMutexLocker(self._mutex):
            return self._state

    @state.setter
    def state(self, value: WorkerState) -> None:
        with QMutexLocker(self._mutex):
            self._state = value

    @property
    def is_cancelled(self) -> bool:
        """Check if cancellation was requested."""
        return self.cancel_token.cancelled

    def cancel(self) -> None:
        """Request cancellation."""
        self.cancel_token.cancel()
        with QMutexLocker(self._mutex):
            if self._state == WorkerState.RUNNING:
                self._state = WorkerState.CANCELLING

    @pyqtSlot()
    def run(self) -> None:
        """
        Main worker execution method.

        This is called when the thread starts.
        Subclasses should not override this directly,
        instead override `do_work`.
        """
        self.state = WorkerState.RUNNING

        try:
            result = self.do_work()

            if self.is_cancelled:
                self.state = WorkerState.CANCELLED
                self.signals.cancelled.emit(self.job_id)
            else:
                self.state = WorkerState.COMPLETED
                self.signals.finished.emit(self.job_id, result)

        except Exception as e:
            logging.exception(f"{type(self).__name__} - Job {self.job_id} failed")
            self.state = WorkerState.FAILED
            self.signals.error.emit(self.job_id, type(e).__name__, str(e))

    @abstractmethod
    def do_work(self) -> Any:
        """
        Perform the actual work.

        Should poll `is_cancelled` and return early if True.

        Returns:
            The result of the work.
        """
        pass


class WorkerThread(QThread):
    """
    Convenience class for running a worker in its own thread.

    Usage:
        thread = WorkerThread(my_worker)
        thread.start()
        # Worker runs in thread
        thread.wait()  # Wait for completion
    """

    def __init__(
        self,
        worker: BaseWorker,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self.worker = worker
        self.worker.moveToThread(self)

        # Connect signals
        self.started.connect(self.worker.run)
        self.worker.signals.finished.connect(self.quit)
        self.worker.signals.error.connect(self.quit)
        self.worker.signals.cancelled.connect(self.quit)
