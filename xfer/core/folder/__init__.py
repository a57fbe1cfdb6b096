"""
Folder module.

Provides functionality for:
- Recursive, cancellable directory walking
- Origin-to-destination comparison by basename
- Copying selected files into the destination
"""

from xfer.core.folder.scanner import TreeIndexer
from xfer.core.folder.comparer import DiffEngine
from xfer.core.folder.transfer import (
    FileTransfer,
    TransferOptions,
    TransferResult,
)

__all__ = [
    # Scanner
    'TreeIndexer',
    # Comparer
    'DiffEngine',
    # Transfer
    'FileTransfer',
    'TransferOptions',
    'TransferResult',
]
