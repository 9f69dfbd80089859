"""Analytics for sleepsense: aggregation, scoring and recommendations.

Modules:
    aggregate  -- Per-day duration totals and query windows
    scoring    -- Model-backed sleep score with heuristic fallback
    recommend  -- Rule-based tips (single night and weekly history)
"""

from sleepsense.analytics.aggregate import (
    aggregate_by_day,
    start_of_day,
    total_duration,
    mean_daily_duration,
    last_night_window,
    week_window,
)
from sleepsense.analytics.scoring import (
    SleepScorer,
    SleepFeatures,
    PredictionResult,
    ScoringFunction,
    HeuristicOnly,
    ModelBacked,
    LinearSleepModel,
    heuristic_score,
    duration_score,
)
from sleepsense.analytics.recommend import recommend, recommend_from_history

__all__ = [
    # aggregate
    "aggregate_by_day",
    "start_of_day",
    "total_duration",
    "mean_daily_duration",
    "last_night_window",
    "week_window",
    # scoring
    "SleepScorer",
    "SleepFeatures",
    "PredictionResult",
    "ScoringFunction",
    "HeuristicOnly",
    "ModelBacked",
    "LinearSleepModel",
    "heuristic_score",
    "duration_score",
    # recommend
    "recommend",
    "recommend_from_history",
]
