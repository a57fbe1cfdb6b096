"""
Core data models for the transfer application.

This module defines the data structures shared across the application:
- Walk entries and origin file records
- Scan and copy state snapshots
- Batches handed from workers to the control thread
- The cooperative cancellation token

All models are designed to be:
- UI-agnostic (can be used with any frontend)
- Immutable where practical, so a published snapshot never tears
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from pathlib import Path
from typing import Optional


# Seconds between two progress publications of a running scan or copy
PROGRESS_UPDATE_INTERVAL = 0.15

# Name of the dated subfolder a file is copied into
DATE_FOLDER_FORMAT = "%m-%d-%Y"


# =============================================================================
# Enumerations
# =============================================================================

class Role(Enum):
    """Which side of the transfer a root folder plays."""
    ORIGIN = "origin"
    DESTINATION = "destination"


class ScanStatus(Enum):
    """Status of a scan generation."""
    IDLE = auto()
    RUNNING = auto()
    CANCELLED = auto()
    FAILED = auto()
    COMPLETED = auto()


class CopyStatus(Enum):
    """Status of a copy batch."""
    IDLE = auto()
    RUNNING = auto()
    COMPLETED = auto()


# =============================================================================
# Cancellation
# =============================================================================

class CancelToken:
    """
    Cooperative cancellation flag shared between a controller and a walk.

    The walk polls `cancelled` between entries; nothing is interrupted
    mid-read.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


# =============================================================================
# Walk and Result Models
# =============================================================================

@dataclass(frozen=True)
class Entry:
    """One non-hidden filesystem node produced by a tree walk."""
    path: Path
    name: str
    is_directory: bool
    created_at: Optional[datetime] = None


_record_ids = itertools.count(1)


def _next_record_id() -> int:
    return next(_record_ids)


@dataclass(eq=False)
class FileRecord:
    """
    A file discovered in the origin tree.

    `exists_in_destination` is decided once, when the record is built;
    only `selected` changes afterwards.
    """
    path: Path
    created_at: Optional[datetime] = None
    exists_in_destination: bool = False
    selected: bool = False
    record_id: int = field(default_factory=_next_record_id)

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def extension(self) -> str:
        """Get file extension (lowercase, without dot)."""
        return self.path.suffix.lower().lstrip('.')

    @property
    def is_eligible(self) -> bool:
        """True when the user wants this file and it is not yet transferred."""
        return self.selected and not self.exists_in_destination


# =============================================================================
# Scan Models
# =============================================================================

@dataclass(frozen=True)
class ScanState:
    """Snapshot of one scan generation as last published."""
    generation: int = 0
    status: ScanStatus = ScanStatus.IDLE
    scanned_count: int = 0
    total_count: int = 0
    progress: float = 0.0
    error_count: int = 0
    failure_reason: Optional[str] = None

    @property
    def is_running(self) -> bool:
        return self.status == ScanStatus.RUNNING


@dataclass(frozen=True)
class ScanBatch:
    """Records found since the previous batch of the same generation."""
    generation: int
    records: tuple[FileRecord, ...]
    scanned_count: int
    total_count: int
    error_count: int = 0
    done: bool = False


# =============================================================================
# Copy Models
# =============================================================================

@dataclass(frozen=True)
class CopyState:
    """Snapshot of the current copy batch."""
    status: CopyStatus = CopyStatus.IDLE
    total_to_copy: int = 0
    copied_count: int = 0
    failed_count: int = 0
    progress: float = 0.0

    @property
    def is_running(self) -> bool:
        return self.status == CopyStatus.RUNNING


@dataclass(frozen=True)
class CopyProgress:
    """Progress information for a copy batch."""
    job_id: int
    attempted: int
    copied: int
    failed: int
    total: int
    done: bool = False

    @property
    def ratio(self) -> float:
        if self.total == 0:
            return 0.0
        return self.attempted / self.total
