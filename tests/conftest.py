"""Shared fixtures and helpers for the sleepsense test suite."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from sleepsense.app import SleepSenseApp, build_app
from sleepsense.config import Settings
from sleepsense.errors import PersistenceFailed, SourceQueryFailed
from sleepsense.samples import MemorySampleSource, SleepSample
from sleepsense.store import MemoryEntryStore, SleepEntry


# Wednesday; fixed so windows and day buckets are reproducible
NOW = datetime(2026, 3, 11, 9, 0, 0)
HOUR = 3600.0


def local(*args) -> datetime:
    """An aware local-time datetime, as the samples and stores hold them."""
    return datetime(*args).astimezone()


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_sample(
    start: datetime = datetime(2026, 3, 10, 23, 0, 0),
    hours: float = 8.0,
    source_id: str | None = None,
) -> SleepSample:
    """A sample starting at *start* lasting *hours*."""
    return SleepSample(start, start + timedelta(hours=hours), source_id)


def make_entry(
    date: datetime = datetime(2026, 3, 10, 23, 0, 0),
    hours: float = 8.0,
    score: float = 100.0,
    **kwargs,
) -> SleepEntry:
    return SleepEntry(date=date, total_sleep=hours * HOUR, sleep_score=score, **kwargs)


def nightly_samples(nights: int = 3, hours: float = 7.5, now: datetime = NOW) -> list[SleepSample]:
    """One sample per night, starting 23:00, for the *nights* nights before *now*."""
    last = now.replace(hour=23, minute=0, second=0, microsecond=0) - timedelta(days=1)
    return [
        make_sample(last - timedelta(days=i), hours, source_id=f"night-{i}")
        for i in range(nights)
    ]


def run(coro):
    """Run a coroutine to completion on a fresh event loop."""
    return asyncio.run(coro)


def write_jsonl(path: Path, entries: list[dict]) -> Path:
    """Write a list of dicts as JSONL to the given path."""
    with open(path, "w") as f:
        for entry in entries:
            f.write(json.dumps(entry) + "\n")
    return path


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class FlakyStore(MemoryEntryStore):
    """Memory store that refuses entries dated at any of *fail_dates*."""

    def __init__(self, fail_dates=()) -> None:
        super().__init__()
        self.fail_dates = set(fail_dates)

    async def create(self, entry: SleepEntry):
        if entry.date in self.fail_dates:
            raise PersistenceFailed(f"disk full saving {entry.date:%Y-%m-%d}", entry.id)
        return await super().create(entry)


class BrokenSource(MemorySampleSource):
    """Sample source whose every query fails."""

    async def fetch_window(self, start, end):
        raise SourceQueryFailed("health store unavailable")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def memory_app() -> SleepSenseApp:
    """App wired to in-memory source/store, three nights of samples, no model."""
    settings = Settings(model_path=None)
    return build_app(settings, MemorySampleSource(nightly_samples()), MemoryEntryStore())
