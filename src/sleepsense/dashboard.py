"""Presentation adapters.

Each function gathers what one screen needs (dashboard, weekly analysis,
tips) and returns a plain state object.  Errors from the source or store
become ``error_message`` so the caller can render whatever partial data
came back.  Nothing here assumes a particular UI thread or event loop.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from sleepsense.analytics.aggregate import week_window
from sleepsense.analytics.recommend import recommend_from_history
from sleepsense.analytics.scoring import duration_score
from sleepsense.app import SleepSenseApp
from sleepsense.errors import PersistenceFailed, SleepSenseError
from sleepsense.store import SleepEntry

logger = logging.getLogger(__name__)

NO_DATA_SUMMARY = "No sleep data for last night."


def format_duration(seconds: float) -> str:
    """Render seconds as ``"7h 30m"`` (or ``"45m"`` under an hour)."""
    minutes = max(int(round(seconds / 60.0)), 0)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


@dataclass
class DashboardState:
    today_score: float | None = None
    last_night_summary: str | None = None
    error_message: str | None = None


@dataclass
class AnalysisState:
    weekly_stats: dict[datetime, float] = field(default_factory=dict)
    entries: list[SleepEntry] = field(default_factory=list)
    error_message: str | None = None


@dataclass
class RecommendationsState:
    recommendations: list[str] = field(default_factory=list)
    error_message: str | None = None


async def fetch_latest(app: SleepSenseApp, now: datetime | None = None) -> DashboardState:
    """Score and save the most recent sample from last night.

    The score shown is the duration heuristic, the same one the sync
    pipeline stores.  A failed save is logged but the score is still shown.
    """
    try:
        samples = await app.source.fetch_last_night(now)
    except SleepSenseError as e:
        return DashboardState(error_message=str(e))

    if not samples:
        return DashboardState(last_night_summary=NO_DATA_SUMMARY)

    sample = samples[-1]
    score = duration_score(sample.duration)
    try:
        await app.store.create(SleepEntry.from_sample(sample, score))
    except PersistenceFailed as e:
        logger.warning("could not save last night's entry: %s", e)

    return DashboardState(
        today_score=score,
        last_night_summary=f"Slept {format_duration(sample.duration)} last night.",
    )


async def fetch_week(app: SleepSenseApp, now: datetime | None = None) -> AnalysisState:
    """Daily totals and stored entries for the trailing week."""
    days = app.settings.history_days
    state = AnalysisState()
    try:
        state.weekly_stats = await app.source.fetch_daily_totals(days, now)
    except SleepSenseError as e:
        state.error_message = str(e)
        return state

    start, end = week_window(now, days)
    try:
        state.entries = await app.store.query_range(start, end)
    except SleepSenseError as e:
        state.error_message = str(e)
    return state


async def update_notes(
    app: SleepSenseApp,
    entry_id: UUID,
    notes: str | None,
    now: datetime | None = None,
) -> AnalysisState:
    """Set an entry's notes, then reload the week."""
    try:
        if not await app.store.update_notes(entry_id, notes):
            logger.info("no entry with id %s", entry_id)
    except SleepSenseError as e:
        return AnalysisState(error_message=str(e))
    return await fetch_week(app, now)


async def load_recommendations(
    app: SleepSenseApp,
    now: datetime | None = None,
) -> RecommendationsState:
    """Weekly tips from stored entries and the source's daily totals."""
    days = app.settings.history_days
    start, end = week_window(now, days)
    try:
        entries = await app.store.query_range(start, end)
        stats = await app.source.fetch_daily_totals(days, now)
    except SleepSenseError as e:
        return RecommendationsState(error_message=str(e))
    return RecommendationsState(recommendations=recommend_from_history(entries, stats))
