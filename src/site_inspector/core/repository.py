"""Storage seam for finished analyses.

The coordinator only depends on the :class:`AnalysisRepository` protocol.
:class:`InMemoryAnalysisRepository` is the shipped implementation: a bounded,
process-local buffer that forgets the oldest records once full and is lost
on restart.
"""

from __future__ import annotations

import threading
from collections import Counter, deque
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from site_inspector.core.schemas.analysis import AnalysisRecord, ExtractionMode


@dataclass(frozen=True)
class AnalysisFilter:
    """Criteria for :meth:`AnalysisRepository.list`.

    Attributes:
        url: Exact URL match.
        mode: Only records produced by this strategy.
        since: Inclusive lower bound on ``created_at``.
        until: Inclusive upper bound on ``created_at``.
        limit: Maximum number of records returned.
        offset: Records to skip (after filtering, newest first).
    """

    url: Optional[str] = None
    mode: Optional[ExtractionMode] = None
    since: Optional[datetime] = None
    until: Optional[datetime] = None
    limit: int = 50
    offset: int = 0

    def matches(self, record: AnalysisRecord) -> bool:
        if self.url is not None and record.url != self.url:
            return False
        if self.mode is not None and record.mode != self.mode:
            return False
        if self.since is not None and record.created_at < self.since:
            return False
        if self.until is not None and record.created_at > self.until:
            return False
        return True


@dataclass
class RepositoryPage:
    """One page of :meth:`AnalysisRepository.list` results."""

    records: list[AnalysisRecord]
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.records) < self.total


class AnalysisRepository(Protocol):
    def save(self, record: AnalysisRecord) -> None: ...

    def list(self, criteria: AnalysisFilter) -> RepositoryPage: ...

    def stats(self) -> dict[str, int]: ...


class InMemoryAnalysisRepository:
    """Keeps the most recent ``max_records`` analyses in memory."""

    def __init__(self, max_records: int = 1000) -> None:
        if max_records < 1:
            raise ValueError("max_records must be at least 1")
        self._records: deque[AnalysisRecord] = deque(maxlen=max_records)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def save(self, record: AnalysisRecord) -> None:
        with self._lock:
            self._records.append(record)

    def list(self, criteria: AnalysisFilter) -> RepositoryPage:
        with self._lock:
            newest_first = list(reversed(self._records))
        matching = [r for r in newest_first if criteria.matches(r)]
        window = matching[criteria.offset : criteria.offset + criteria.limit]
        return RepositoryPage(records=window, total=len(matching), limit=criteria.limit, offset=criteria.offset)

    def stats(self) -> dict[str, int]:
        """Return ``total`` plus one count per extraction mode."""
        with self._lock:
            counts = Counter(record.mode.value for record in self._records)
            total = len(self._records)
        stats = {"total": total}
        for mode in ExtractionMode:
            stats[mode.value] = counts.get(mode.value, 0)
        return stats
