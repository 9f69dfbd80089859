"""Persisted sleep entries and the stores that hold them.

An entry is created once per processed sample.  After creation only its
``notes`` change; the score is fixed at save time.  Stores are asynchronous
and serialize their own writes, so callers may issue saves concurrently.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Protocol
from uuid import UUID, uuid4

from sleepsense.errors import PersistenceFailed
from sleepsense.samples import SleepSample, as_local, parse_timestamp

logger = logging.getLogger(__name__)


@dataclass
class SleepEntry:
    """A scored, persisted night (or nap) of sleep."""

    date: datetime  # the sample's start; used for range queries
    total_sleep: float  # seconds
    sleep_score: float  # 0-100, computed once at save time
    deep_sleep: float = 0.0  # seconds
    rem_sleep: float = 0.0  # seconds
    awake_minutes: float = 0.0  # minutes, not seconds
    notes: str | None = None
    source_id: str | None = None
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        self.date = as_local(self.date)

    @classmethod
    def from_sample(
        cls,
        sample: SleepSample,
        sleep_score: float,
        notes: str | None = None,
    ) -> SleepEntry:
        """Build an entry for *sample*; stage breakdown defaults to zero."""
        return cls(
            date=sample.start,
            total_sleep=sample.duration,
            sleep_score=sleep_score,
            notes=notes,
            source_id=sample.source_id,
        )

    def to_dict(self) -> dict:
        record = asdict(self)
        record["id"] = str(self.id)
        record["date"] = self.date.isoformat()
        return record

    @classmethod
    def from_dict(cls, record: dict) -> SleepEntry:
        return cls(
            id=UUID(record["id"]),
            date=parse_timestamp(record["date"]),
            total_sleep=float(record["total_sleep"]),
            sleep_score=float(record["sleep_score"]),
            deep_sleep=float(record.get("deep_sleep", 0.0)),
            rem_sleep=float(record.get("rem_sleep", 0.0)),
            awake_minutes=float(record.get("awake_minutes", 0.0)),
            notes=record.get("notes"),
            source_id=record.get("source_id"),
        )

    def __repr__(self) -> str:
        return (
            f"SleepEntry({self.date:%Y-%m-%d %H:%M}: "
            f"sleep={self.total_sleep / 3600:.1f}h, "
            f"score={self.sleep_score:.0f})"
        )


class EntryStore(Protocol):
    """Durable keyed storage of sleep entries."""

    async def create(self, entry: SleepEntry) -> UUID:
        ...

    async def get(self, entry_id: UUID) -> SleepEntry | None:
        ...

    async def query_range(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[SleepEntry]:
        ...

    async def find_by_source(self, source_id: str) -> list[SleepEntry]:
        ...

    async def update_notes(self, entry_id: UUID, notes: str | None) -> bool:
        ...

    async def delete(self, entry_id: UUID) -> bool:
        ...


class MemoryEntryStore:
    """Entry store kept entirely in memory.

    Writes go through a single lock.  Reads return copies of the list but
    share the entry objects.
    """

    def __init__(self) -> None:
        self._entries: dict[UUID, SleepEntry] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    async def _commit(self) -> None:
        """Hook for durable subclasses; called with the lock held."""

    async def create(self, entry: SleepEntry) -> UUID:
        async with self._lock:
            if entry.id in self._entries:
                raise PersistenceFailed(f"duplicate entry id {entry.id}", entry.id)
            self._entries[entry.id] = entry
            try:
                await self._commit()
            except PersistenceFailed:
                del self._entries[entry.id]
                raise
        logger.debug("created %r", entry)
        return entry.id

    async def get(self, entry_id: UUID) -> SleepEntry | None:
        return self._entries.get(entry_id)

    async def query_range(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[SleepEntry]:
        """Entries with ``start <= date <= end``, oldest first.

        Either bound may be None to leave that side open.
        """
        start = as_local(start) if start is not None else None
        end = as_local(end) if end is not None else None
        matched = [
            e for e in self._entries.values()
            if (start is None or e.date >= start) and (end is None or e.date <= end)
        ]
        return sorted(matched, key=lambda e: e.date)

    async def find_by_source(self, source_id: str) -> list[SleepEntry]:
        return [e for e in self._entries.values() if e.source_id == source_id]

    async def update_notes(self, entry_id: UUID, notes: str | None) -> bool:
        """Replace an entry's notes.  Unknown ids are a no-op returning False."""
        async with self._lock:
            entry = self._entries.get(entry_id)
            if entry is None:
                return False
            previous = entry.notes
            entry.notes = notes
            try:
                await self._commit()
            except PersistenceFailed:
                entry.notes = previous
                raise
        return True

    async def delete(self, entry_id: UUID) -> bool:
        """Remove an entry.  Unknown ids are a no-op returning False."""
        async with self._lock:
            entry = self._entries.pop(entry_id, None)
            if entry is None:
                return False
            try:
                await self._commit()
            except PersistenceFailed:
                self._entries[entry_id] = entry
                raise
        return True


class JsonlEntryStore(MemoryEntryStore):
    """Entry store persisted as a JSON-lines file.

    The whole file is rewritten on every mutation and swapped into place
    atomically, so a crash leaves either the old or the new contents.
    """

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self.path = Path(path)
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            with open(self.path) as f:
                for line_num, line in enumerate(f, 1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        entry = SleepEntry.from_dict(json.loads(line))
                    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                        logger.warning("%s:%d: skipping bad entry (%s)", self.path, line_num, e)
                        continue
                    self._entries[entry.id] = entry
        except OSError as e:
            raise PersistenceFailed(f"cannot read {self.path}: {e}") from e
        logger.debug("loaded %d entries from %s", len(self._entries), self.path)

    def _write(self, lines: list[str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w") as f:
                f.writelines(lines)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    async def _commit(self) -> None:
        entries = sorted(self._entries.values(), key=lambda e: e.date)
        lines = [json.dumps(e.to_dict()) + "\n" for e in entries]
        try:
            await asyncio.to_thread(self._write, lines)
        except OSError as e:
            raise PersistenceFailed(f"cannot write {self.path}: {e}") from e
