"""Per-day aggregation of sleep samples.

Samples are bucketed by the local calendar day their start falls in and
their durations summed.  The output is sparse: days without samples do not
appear in the mapping.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Mapping

import numpy as np

from sleepsense.samples import SleepSample, as_local


DEFAULT_WINDOW_DAYS = 7


def start_of_day(ts: datetime) -> datetime:
    """Midnight of the local calendar day containing *ts*.

    The timestamp is converted to the process's local zone first (naive
    values are taken as local), so a sample recorded at 23:30 local time
    always lands on that local day.  The anchor carries the offset in force
    at midnight, not the sample's, so every sample of a day with a clock
    change shares one key.
    """
    local = ts.astimezone().replace(hour=0, minute=0, second=0, microsecond=0, tzinfo=None)
    return local.astimezone()


def aggregate_by_day(samples: Iterable[SleepSample]) -> dict[datetime, float]:
    """Sum sample durations (seconds) by the day each sample starts on.

    Args:
        samples: Sleep samples in any order.

    Returns:
        Mapping of day anchor (local midnight) to total seconds.  Empty
        input gives an empty mapping.
    """
    totals: dict[datetime, float] = {}
    for sample in samples:
        day = start_of_day(sample.start)
        totals[day] = totals.get(day, 0.0) + sample.duration
    return totals


def total_duration(totals: Mapping[datetime, float]) -> float:
    """Sum of all daily totals, in seconds."""
    return float(sum(totals.values()))


def mean_daily_duration(totals: Mapping[datetime, float]) -> float:
    """Mean seconds per tracked day; 0.0 when nothing was tracked."""
    if not totals:
        return 0.0
    return float(np.mean(np.fromiter(totals.values(), dtype=np.float64)))


# ---------------------------------------------------------------------------
# Query windows
# ---------------------------------------------------------------------------


def last_night_window(now: datetime | None = None) -> tuple[datetime, datetime]:
    """The trailing 24 hours ending at *now*."""
    end = as_local(now) if now is not None else datetime.now().astimezone()
    return end - timedelta(days=1), end


def week_window(
    now: datetime | None = None,
    days: int = DEFAULT_WINDOW_DAYS,
) -> tuple[datetime, datetime]:
    """The trailing *days* days ending at *now*."""
    if days < 0:
        raise ValueError("days must be non-negative")
    end = as_local(now) if now is not None else datetime.now().astimezone()
    return end - timedelta(days=days), end
