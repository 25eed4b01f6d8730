"""In-memory index of entries already present in the vault.

Keys are normalized vault paths (``""`` is the mirror root).  A path maps
to exactly one record, either a :class:`FileRecord` or a
:class:`DirectoryRecord`.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from .vault import VaultEntry


@dataclass
class FileRecord:
    length: int
    mtime: int


@dataclass
class DirectoryRecord:
    mtime: int


Record = FileRecord | DirectoryRecord


def mtime_ms(st: os.stat_result) -> int:
    """Return the stat's modification time as integer epoch milliseconds."""
    return st.st_mtime_ns // 1_000_000


class EntryIndex:
    """Mapping of vault path -> last known record, owned by one import."""

    def __init__(self) -> None:
        self._records: dict[str, Record] = {}

    def __repr__(self) -> str:
        return f"EntryIndex(len={len(self)})"

    def __contains__(self, path: str) -> bool:
        return path in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def get(self, path: str) -> Record | None:
        return self._records.get(path)

    def record_file(self, path: str, length: int, mtime: int) -> FileRecord:
        record = FileRecord(length=length, mtime=mtime)
        self._records[path] = record
        return record

    def record_directory(self, path: str, mtime: int) -> DirectoryRecord:
        record = DirectoryRecord(mtime=mtime)
        self._records[path] = record
        return record

    def seed(self, entries: Iterable[VaultEntry]) -> tuple[int, int]:
        """Load *entries* from a vault listing.

        Returns ``(file_count, total_size)`` contributed by the listing;
        directory entries contribute neither.
        """
        file_count = 0
        total_size = 0
        for entry in entries:
            if entry.is_directory:
                self.record_directory(entry.name, entry.mtime)
                continue
            self.record_file(entry.name, entry.length, entry.mtime)
            file_count += 1
            total_size += entry.length
        return file_count, total_size
