"""Rule-based sleep recommendations.

Two variants:

  - :func:`recommend` looks at a single night's score and stage proportions.
  - :func:`recommend_from_history` looks at a week of entries and daily
    totals.

Rules run in a fixed order and each appends at most one tip.  Neither
variant ever returns an empty list.
"""

from __future__ import annotations

from datetime import datetime
from typing import Mapping, Sequence

from sleepsense.analytics.aggregate import mean_daily_duration


# ---------------------------------------------------------------------------
# Thresholds
# ---------------------------------------------------------------------------

LOW_SCORE = 70.0
HIGH_SCORE = 85.0
MIN_DEEP_PCT = 0.15
MIN_REM_PCT = 0.18
MAX_AWAKE_PCT = 0.10
MIN_AVG_HOURS = 7.0

# ---------------------------------------------------------------------------
# Tips
# ---------------------------------------------------------------------------

TIP_SCHEDULE = "Aim for a consistent bedtime and wake-up time to stabilize your sleep schedule."
TIP_STRONG = "Your sleep quality looks strong. Keep your current routine consistent."
TIP_DEEP = (
    "Consider winding down with relaxing activities to support deeper sleep "
    "(e.g., reading or light stretching)."
)
TIP_REM = (
    "Try to reduce stress before bed; mindfulness or journaling can help "
    "improve REM-rich sleep."
)
TIP_AWAKE = (
    "Limit caffeine later in the day and avoid large meals close to bedtime "
    "to reduce nighttime awakenings."
)
TIP_KEEP_TRACKING = "Maintain your current routine and keep tracking your sleep to refine recommendations."

TIP_NOT_ENOUGH_DATA = "Not enough data yet. Keep wearing your device at night."
TIP_MORE_HOURS = "Aim for at least 7 hours of sleep on most nights."
TIP_DURATION_OK = "Your total sleep duration looks good. Focus on consistency."
TIP_SCREEN_TIME = "Consider a consistent bedtime and reducing screen time before bed."


def recommend(
    score: float,
    deep_pct: float,
    rem_pct: float,
    awake_pct: float,
) -> list[str]:
    """Tips for a single night.

    Args:
        score: Sleep score, 0-100.
        deep_pct: Fraction of total sleep spent in deep sleep.
        rem_pct: Fraction of total sleep spent in REM.
        awake_pct: Fraction of the tracked interval spent awake.

    Returns:
        Ordered, non-empty list of tips.
    """
    tips: list[str] = []

    # Scores in [70, 85] get neither tip
    if score < LOW_SCORE:
        tips.append(TIP_SCHEDULE)
    elif score > HIGH_SCORE:
        tips.append(TIP_STRONG)

    if deep_pct < MIN_DEEP_PCT:
        tips.append(TIP_DEEP)

    if rem_pct < MIN_REM_PCT:
        tips.append(TIP_REM)

    if awake_pct > MAX_AWAKE_PCT:
        tips.append(TIP_AWAKE)

    if not tips:
        tips.append(TIP_KEEP_TRACKING)

    return tips


def recommend_from_history(
    entries: Sequence,
    daily_totals: Mapping[datetime, float],
) -> list[str]:
    """Tips for the past week.

    Args:
        entries: Persisted entries for the window (any order).
        daily_totals: Per-day summed sleep in seconds for the same window.
            When empty, the entries' own durations are averaged instead.

    Returns:
        ``[TIP_NOT_ENOUGH_DATA]`` if there are no entries, otherwise a
        duration tip followed by an optional score tip.
    """
    if not entries:
        return [TIP_NOT_ENOUGH_DATA]

    if daily_totals:
        average_hours = mean_daily_duration(daily_totals) / 3600.0
    else:
        average_hours = sum(e.total_sleep for e in entries) / len(entries) / 3600.0

    tips: list[str] = []
    if average_hours < MIN_AVG_HOURS:
        tips.append(TIP_MORE_HOURS)
    else:
        tips.append(TIP_DURATION_OK)

    # Ties on date go to the later entry
    latest = max(reversed(entries), key=lambda e: e.date)
    if latest.sleep_score < LOW_SCORE:
        tips.append(TIP_SCREEN_TIME)

    return tips
