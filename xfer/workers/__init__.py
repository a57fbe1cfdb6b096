"""
Background workers for non-blocking operations.

Provides QThread-based workers for:
- Scanning and comparing the origin and destination trees
- Copying selected files

All workers use Qt signals for thread-safe communication
with the control thread.
"""

from xfer.workers.base_worker import (
    BaseWorker,
    ProgressThrottle,
    WorkerSignals,
    WorkerState,
    WorkerThread,
)
from xfer.workers.scan_worker import (
    ScanWorker,
)
from xfer.workers.copy_worker import (
    CopyWorker,
)

__all__ = [
    # Base
    'BaseWorker',
    'ProgressThrottle',
    'WorkerSignals',
    'WorkerState',
    'WorkerThread',
    # Scan
    'ScanWorker',
    # Copy
    'CopyWorker',
]
