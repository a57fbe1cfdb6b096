"""
Core, UI-agnostic logic: data models, tree walking, comparison,
copying and the view projection.
"""

from xfer.core.models import (
    CancelToken,
    CopyState,
    CopyStatus,
    Entry,
    FileRecord,
    Role,
    ScanState,
    ScanStatus,
)
from xfer.core.view_query import ViewQuery

__all__ = [
    'CancelToken',
    'CopyState',
    'CopyStatus',
    'Entry',
    'FileRecord',
    'Role',
    'ScanState',
    'ScanStatus',
    'ViewQuery',
]
