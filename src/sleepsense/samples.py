"""Sleep samples and the sources that supply them.

A sample is one recorded sleep interval.  Sources are read-only and
asynchronous: every query is a suspension point, and "no data" is an empty
list rather than an error.
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, Protocol

from sleepsense.errors import SourceQueryFailed

logger = logging.getLogger(__name__)


def as_local(ts: datetime) -> datetime:
    """Make a naive timestamp aware by taking it as local time."""
    if ts.tzinfo is None:
        return ts.astimezone()
    return ts


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as local time."""
    return as_local(datetime.fromisoformat(value))


@dataclass(frozen=True)
class SleepSample:
    """A single sleep interval as reported by the health data store."""

    start: datetime
    end: datetime
    source_id: str | None = None  # stable id from the platform, if any

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", as_local(self.start))
        object.__setattr__(self, "end", as_local(self.end))
        if self.end < self.start:
            raise ValueError(f"sample ends before it starts: {self.start} > {self.end}")

    @property
    def duration(self) -> float:
        """Length of the interval in seconds."""
        return (self.end - self.start).total_seconds()

    def to_dict(self) -> dict:
        record = {"start": self.start.isoformat(), "end": self.end.isoformat()}
        if self.source_id is not None:
            record["id"] = self.source_id
        return record

    @classmethod
    def from_dict(cls, record: dict) -> SleepSample:
        return cls(
            start=parse_timestamp(record["start"]),
            end=parse_timestamp(record["end"]),
            source_id=record.get("id"),
        )


def in_window(sample: SleepSample, start: datetime, end: datetime) -> bool:
    """True if the sample *starts* inside ``[start, end)``.

    The sample's end may fall outside the window, matching the health
    store's strict-start-date predicate.
    """
    return as_local(start) <= sample.start < as_local(end)


class SampleSource(Protocol):
    """Read-only provider of sleep samples."""

    async def fetch_window(self, start: datetime, end: datetime) -> list[SleepSample]:
        ...

    async def fetch_last_night(self, now: datetime | None = None) -> list[SleepSample]:
        ...

    async def fetch_daily_totals(
        self,
        days: int = 7,
        now: datetime | None = None,
    ) -> dict[datetime, float]:
        ...


class _WindowedSource(ABC):
    """Shared window helpers; subclasses implement :meth:`fetch_window`."""

    @abstractmethod
    async def fetch_window(self, start: datetime, end: datetime) -> list[SleepSample]:
        ...

    async def fetch_last_night(self, now: datetime | None = None) -> list[SleepSample]:
        """Samples that started in the trailing 24 hours."""
        from sleepsense.analytics.aggregate import last_night_window

        return await self.fetch_window(*last_night_window(now))

    async def fetch_daily_totals(
        self,
        days: int = 7,
        now: datetime | None = None,
    ) -> dict[datetime, float]:
        """Per-day summed durations over the trailing *days* days."""
        from sleepsense.analytics.aggregate import aggregate_by_day, week_window

        samples = await self.fetch_window(*week_window(now, days))
        return aggregate_by_day(samples)


class MemorySampleSource(_WindowedSource):
    """Sample source backed by an in-memory list."""

    def __init__(self, samples: Iterable[SleepSample] = ()) -> None:
        self.samples = list(samples)

    def add(self, sample: SleepSample) -> None:
        self.samples.append(sample)

    async def fetch_window(self, start: datetime, end: datetime) -> list[SleepSample]:
        matched = [s for s in self.samples if in_window(s, start, end)]
        return sorted(matched, key=lambda s: s.start)


class JsonlSampleSource(_WindowedSource):
    """Sample source reading an exported JSON-lines sample log.

    Each line is ``{"start": ISO-8601, "end": ISO-8601, "id": optional}``.
    The file is re-read on every query so fresh exports are picked up.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> list[SleepSample]:
        if not self.path.exists():
            logger.debug("sample log %s does not exist", self.path)
            return []

        samples: list[SleepSample] = []
        try:
            with open(self.path) as f:
                for line_num, line in enumerate(f, 1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        samples.append(SleepSample.from_dict(json.loads(line)))
                    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                        logger.warning("%s:%d: skipping bad sample (%s)", self.path, line_num, e)
        except OSError as e:
            raise SourceQueryFailed(f"cannot read {self.path}: {e}") from e
        return samples

    async def fetch_window(self, start: datetime, end: datetime) -> list[SleepSample]:
        samples = await asyncio.to_thread(self._read)
        matched = [s for s in samples if in_window(s, start, end)]
        return sorted(matched, key=lambda s: s.start)


def write_samples(path: str | Path, samples: Iterable[SleepSample]) -> Path:
    """Append samples to a JSON-lines sample log."""
    outpath = Path(path)
    outpath.parent.mkdir(parents=True, exist_ok=True)
    with open(outpath, "a") as f:
        for sample in samples:
            f.write(json.dumps(sample.to_dict()) + "\n")
    return outpath
