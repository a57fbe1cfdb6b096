"""
Directory walker used to index the origin and destination trees.

Provides a lazy, cancellable traversal with:
- Recursive scanning
- Hidden entry skipping
- Creation-time lookup where the platform supports it
- Error resilience (a bad entry is logged and skipped)
"""

from __future__ import annotations

import logging
import os
import stat
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator, Optional

from xfer.core.errors import EnumerationEntryError
from xfer.core.models import CancelToken, Entry


def is_hidden(name: str, stat_result: Optional[os.stat_result] = None) -> bool:
    """Check whether an entry is hidden by name or, on Windows, by attribute."""
    if name.startswith('.'):
        return True
    if stat_result is not None and os.name == 'nt':
        attrs = getattr(stat_result, 'st_file_attributes', 0)
        return bool(attrs & stat.FILE_ATTRIBUTE_HIDDEN)
    return False


def creation_time(stat_result: os.stat_result) -> Optional[datetime]:
    """Get the creation time of an entry, or None when it is not available."""
    timestamp = getattr(stat_result, 'st_birthtime', None)
    if timestamp is None and os.name == 'nt':
        # st_ctime is the creation time on Windows
        timestamp = stat_result.st_ctime
    if timestamp is None:
        return None
    try:
        return datetime.fromtimestamp(timestamp)
    except (OverflowError, OSError, ValueError) as e:
        logging.debug(f"TreeIndexer - Invalid creation timestamp {timestamp}: {e}")
        return None


class TreeIndexer:
    """
    Walks one directory tree and yields its entries lazily.

    Each call to `walk` is a fresh traversal; a walk cannot be resumed.
    `discovered` counts the non-hidden files listed so far and grows as
    new directories are opened.
    """

    def __init__(
        self,
        read_timestamps: bool = True,
        on_error: Optional[Callable[[EnumerationEntryError], None]] = None
    ):
        self.read_timestamps = read_timestamps
        self.on_error = on_error
        self.discovered = 0
        self.error_count = 0

    def walk(self, root: Path | str, cancel_token: Optional[CancelToken] = None) -> Iterator[Entry]:
        """
        Walk a directory tree.

        Args:
            root: Root directory to walk
            cancel_token: Polled before every entry; the walk ends quietly
                once it is cancelled

        Yields:
            Entry for each non-hidden directory and file below root
        """
        root = Path(root)
        token = cancel_token or CancelToken()

        self.discovered = 0
        self.error_count = 0

        def on_walk_error(error: OSError) -> None:
            self._report(EnumerationEntryError(error.filename or root, error))

        for dirpath, dirnames, filenames in os.walk(
            root,
            topdown=True,
            followlinks=False,
            onerror=on_walk_error
        ):
            if token.cancelled:
                logging.info(f"TreeIndexer - Walk of {root} cancelled")
                return

            current_path = Path(dirpath)

            # Sort for consistent ordering
            dirnames.sort()
            filenames.sort()

            visible_dirs = []
            for dirname in dirnames:
                if token.cancelled:
                    logging.info(f"TreeIndexer - Walk of {root} cancelled")
                    return

                entry = self._make_entry(current_path / dirname, True)
                if entry is None:
                    continue
                visible_dirs.append(dirname)
                yield entry

            # Prune in place so os.walk never descends into hidden folders
            dirnames[:] = visible_dirs

            self.discovered += sum(1 for name in filenames if not name.startswith('.'))

            for filename in filenames:
                if token.cancelled:
                    logging.info(f"TreeIndexer - Walk of {root} cancelled")
                    return

                entry = self._make_entry(current_path / filename, False)
                if entry is not None:
                    yield entry

    def _make_entry(self, path: Path, listed_as_dir: bool) -> Optional[Entry]:
        """Build an Entry, or None when the entry is hidden or unreadable."""
        name = path.name
        if name.startswith('.'):
            return None

        if not self.read_timestamps and os.name != 'nt':
            return Entry(path=path, name=name, is_directory=listed_as_dir)

        try:
            stat_result = path.stat()
        except OSError as e:
            self._report(EnumerationEntryError(path, e))
            return None

        if is_hidden(name, stat_result):
            return None

        created_at = creation_time(stat_result) if self.read_timestamps else None
        return Entry(
            path=path,
            name=name,
            is_directory=listed_as_dir,
            created_at=created_at,
        )

    def _report(self, error: EnumerationEntryError) -> None:
        self.error_count += 1
        logging.warning(f"TreeIndexer - Skipping entry: {error}")
        if self.on_error:
            self.on_error(error)
