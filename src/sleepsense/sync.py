"""Sync pipeline: samples in, scored entries out.

For every sample in a window the pipeline scores the night with the
duration heuristic and asks the store to create an entry.  All saves run
concurrently and the pipeline waits for every one of them before
reporting.

There is no rollback: if some saves fail, the others stay persisted.  By
default there is no dedup either, so syncing the same window twice creates
every entry twice.  Pass ``dedupe=True`` to skip samples whose source id
already has an entry.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable
from uuid import UUID

from sleepsense.analytics.scoring import duration_score
from sleepsense.errors import SyncFailed
from sleepsense.samples import SampleSource, SleepSample
from sleepsense.store import EntryStore, SleepEntry

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Outcome of one sync window."""

    created: list[UUID] = field(default_factory=list)
    errors: list[Exception] = field(default_factory=list)  # input order
    skipped: int = 0  # duplicates skipped when dedupe is on

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def last_error(self) -> Exception | None:
        return self.errors[-1] if self.errors else None

    def raise_for_errors(self) -> None:
        """Raise :class:`SyncFailed` if any save failed."""
        if self.errors:
            raise SyncFailed(self.errors)

    def __repr__(self) -> str:
        return (
            f"SyncResult(created={len(self.created)}, "
            f"failed={len(self.errors)}, skipped={self.skipped})"
        )


class SyncPipeline:
    """Moves samples from a source into an entry store."""

    def __init__(
        self,
        source: SampleSource,
        store: EntryStore,
        dedupe: bool = False,
    ) -> None:
        self.source = source
        self.store = store
        self.dedupe = dedupe

    async def _already_stored(self, sample: SleepSample) -> bool:
        if not self.dedupe or sample.source_id is None:
            return False
        return bool(await self.store.find_by_source(sample.source_id))

    async def _save(self, sample: SleepSample) -> UUID | None:
        if await self._already_stored(sample):
            return None
        entry = SleepEntry.from_sample(sample, duration_score(sample.duration))
        return await self.store.create(entry)

    async def sync_window(self, samples: Iterable[SleepSample]) -> SyncResult:
        """Score and save every sample concurrently.

        Args:
            samples: The window's samples, in any order.

        Returns:
            SyncResult listing created ids and every failure.  Failures are
            collected rather than raised; call
            :meth:`SyncResult.raise_for_errors` to turn them into an
            exception.
        """
        pending: list[SleepSample] = []
        seen: set[str] = set()
        skipped = 0
        for sample in samples:
            if self.dedupe and sample.source_id is not None:
                if sample.source_id in seen:
                    skipped += 1
                    continue
                seen.add(sample.source_id)
            pending.append(sample)

        outcomes = await asyncio.gather(
            *(self._save(s) for s in pending),
            return_exceptions=True,
        )

        result = SyncResult(skipped=skipped)
        for sample, outcome in zip(pending, outcomes):
            if isinstance(outcome, Exception):
                logger.warning("failed to save sample starting %s: %s", sample.start, outcome)
                result.errors.append(outcome)
            elif isinstance(outcome, BaseException):
                raise outcome
            elif outcome is None:
                result.skipped += 1
            else:
                result.created.append(outcome)

        logger.info("sync window: %r", result)
        return result

    async def sync_last_night(self, now: datetime | None = None) -> SyncResult:
        """Fetch the trailing 24 hours of samples and sync them.

        Raises:
            SourceQueryFailed: the sample source could not be read.
        """
        samples = await self.source.fetch_last_night(now)
        return await self.sync_window(samples)
