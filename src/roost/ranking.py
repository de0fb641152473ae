"""Recency ranking of discovered projects.

Order: ``last_modified`` descending, then ``path`` ascending. Paths are
unique, so the order is total and identical across re-renders.
"""

import bisect
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator, Optional

from roost.models import ProjectRecord


def rank_key(record: ProjectRecord) -> tuple[float, str]:
    return (-record.last_modified.timestamp(), str(record.path))


def rank(records: Iterable[ProjectRecord]) -> list[ProjectRecord]:
    """Sort a batch of records from scratch."""
    # Two stable passes: path first, then recency
    ordered = sorted(records, key=lambda r: str(r.path))
    ordered.sort(key=lambda r: r.last_modified, reverse=True)
    return ordered


class ProjectRanking:
    """The accumulated, ordered record set for one UI session.

    Insertions and refreshes are placed with a binary search, so records
    already in place keep their relative order.
    """

    def __init__(self, records: Iterable[ProjectRecord] = ()) -> None:
        self._by_path: dict[Path, ProjectRecord] = {}
        self._order: list[ProjectRecord] = []
        self._keys: list[tuple[float, str]] = []
        for record in records:
            self.upsert(record)

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[ProjectRecord]:
        return iter(self._order)

    def __getitem__(self, index: int) -> ProjectRecord:
        return self._order[index]

    def __contains__(self, path: object) -> bool:
        return path in self._by_path

    @property
    def items(self) -> list[ProjectRecord]:
        return list(self._order)

    def get(self, path: Path) -> Optional[ProjectRecord]:
        return self._by_path.get(path)

    def index_of(self, path: Path) -> Optional[int]:
        record = self._by_path.get(path)
        if record is None:
            return None
        return bisect.bisect_left(self._keys, rank_key(record))

    def _remove(self, record: ProjectRecord) -> None:
        i = bisect.bisect_left(self._keys, rank_key(record))
        del self._keys[i]
        del self._order[i]
        del self._by_path[record.path]

    def _insert(self, record: ProjectRecord) -> None:
        key = rank_key(record)
        i = bisect.bisect_left(self._keys, key)
        self._keys.insert(i, key)
        self._order.insert(i, record)
        self._by_path[record.path] = record

    def upsert(self, record: ProjectRecord) -> None:
        """Add a record, or replace the one with the same path."""
        existing = self._by_path.get(record.path)
        if existing is not None:
            self._remove(existing)
        self._insert(record)

    def add(self, record: ProjectRecord) -> None:
        self.upsert(record)

    def refresh(
        self,
        path: Path,
        last_modified: datetime,
        file_count: Optional[int] = None,
    ) -> bool:
        """Move a known record to its new recency. Unknown paths are ignored."""
        existing = self._by_path.get(path)
        if existing is None:
            return False
        self._remove(existing)
        self._insert(existing.refreshed(last_modified, file_count))
        return True

    def retain(self, paths: set[Path]) -> int:
        """Drop records whose path is not in ``paths``; return how many went."""
        stale = [record for record in self._order if record.path not in paths]
        for record in stale:
            self._remove(record)
        return len(stale)
