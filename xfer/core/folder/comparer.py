"""
Origin/destination comparison.

Decides, for every origin file, whether a file with the same basename
already exists anywhere in the destination tree.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Optional

from xfer.core.folder.scanner import TreeIndexer
from xfer.core.models import CancelToken, FileRecord


class DiffEngine:
    """
    Compares an origin tree against a destination tree by basename.

    The destination is walked to completion first, then origin records
    are produced one at a time as the origin walk proceeds. Matching is
    exact and case-sensitive, and ignores which subdirectory a name was
    found in: two origin files called `a.jpg` in different folders get
    the same verdict.
    """

    def __init__(self):
        self._destination_indexer = TreeIndexer(read_timestamps=False)
        self._origin_indexer = TreeIndexer(read_timestamps=True)
        self._destination_names: Optional[frozenset[str]] = None

    @property
    def destination_names(self) -> frozenset[str]:
        """Basenames found in the destination (empty until indexed)."""
        return self._destination_names or frozenset()

    @property
    def origin_discovered(self) -> int:
        """Origin files listed so far; grows while the origin is walked."""
        return self._origin_indexer.discovered

    @property
    def error_count(self) -> int:
        return self._destination_indexer.error_count + self._origin_indexer.error_count

    def index_destination(
        self,
        destination: Path | str,
        cancel_token: Optional[CancelToken] = None
    ) -> Optional[frozenset[str]]:
        """
        Collect the basenames of every file in the destination tree.

        Returns None if the walk was cancelled before it finished.
        """
        token = cancel_token or CancelToken()
        names: set[str] = set()

        for entry in self._destination_indexer.walk(destination, token):
            if not entry.is_directory:
                names.add(entry.name)

        if token.cancelled:
            return None

        self._destination_names = frozenset(names)
        logging.debug(f"DiffEngine - Indexed {len(names)} destination names under {destination}")
        return self._destination_names

    def compare(
        self,
        origin: Path | str,
        destination: Path | str,
        cancel_token: Optional[CancelToken] = None
    ) -> Iterator[FileRecord]:
        """
        Yield a FileRecord for every origin file as soon as it is found.

        Nothing is yielded if cancellation happens while the destination
        is still being indexed.
        """
        token = cancel_token or CancelToken()

        names = self.index_destination(destination, token)
        if names is None:
            return

        for entry in self._origin_indexer.walk(origin, token):
            if entry.is_directory:
                continue
            yield FileRecord(
                path=entry.path,
                created_at=entry.created_at,
                exists_in_destination=entry.name in names,
            )
