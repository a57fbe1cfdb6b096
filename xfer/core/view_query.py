"""
Filtered and sorted projection of scan results for display.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from xfer.core.models import FileRecord


@dataclass(frozen=True)
class ViewQuery:
    """
    User-controlled predicates applied to the result set.

    `apply` does no I/O and never mutates records, so it can run on
    every keystroke.
    """
    search_text: str = ""
    show_only_untransferred: bool = False
    sort_by_file_type: bool = False
    sort_ascending: bool = True

    def matches(self, record: FileRecord) -> bool:
        if self.show_only_untransferred and record.exists_in_destination:
            return False
        if self.search_text and self.search_text.casefold() not in record.name.casefold():
            return False
        return True

    def sort_key(self, record: FileRecord) -> tuple:
        # record_id breaks ties so equal names keep a stable order
        if self.sort_by_file_type:
            return (record.extension, record.name, record.record_id)
        return (record.name, record.record_id)

    def apply(self, records: Iterable[FileRecord]) -> list[FileRecord]:
        visible = [record for record in records if self.matches(record)]
        visible.sort(key=self.sort_key, reverse=not self.sort_ascending)
        return visible
