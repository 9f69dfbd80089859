"""Composition root.

Everything is built once here and handed to whoever needs it; nothing in
the package keeps module-level instances.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from sleepsense.analytics.scoring import HeuristicOnly, ModelBacked, SleepScorer
from sleepsense.config import Settings
from sleepsense.errors import ModelLoadError
from sleepsense.samples import JsonlSampleSource, SampleSource
from sleepsense.store import EntryStore, JsonlEntryStore
from sleepsense.sync import SyncPipeline

logger = logging.getLogger(__name__)


@dataclass
class SleepSenseApp:
    source: SampleSource
    store: EntryStore
    scorer: SleepScorer
    pipeline: SyncPipeline
    settings: Settings = field(default_factory=Settings)


def build_scorer(model_path: str | Path | None = None) -> SleepScorer:
    """A scorer backed by the model at *model_path*, or heuristic-only.

    A model that cannot be loaded is logged and replaced by the heuristic.
    """
    if model_path is None:
        return SleepScorer(HeuristicOnly())
    try:
        return SleepScorer(ModelBacked.from_file(model_path))
    except ModelLoadError as e:
        logger.warning("%s; scoring with the heuristic", e)
        return SleepScorer(HeuristicOnly())


def build_app(
    settings: Settings | None = None,
    source: SampleSource | None = None,
    store: EntryStore | None = None,
) -> SleepSenseApp:
    """Wire up source, store, scorer and pipeline from *settings*.

    *source* and *store* override the file-backed defaults (tests pass
    in-memory ones).
    """
    settings = settings or Settings()
    source = source if source is not None else JsonlSampleSource(settings.samples_path)
    store = store if store is not None else JsonlEntryStore(settings.entries_path)
    return SleepSenseApp(
        source=source,
        store=store,
        scorer=build_scorer(settings.model_path),
        pipeline=SyncPipeline(source, store, dedupe=settings.dedupe),
        settings=settings,
    )
