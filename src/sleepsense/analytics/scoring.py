"""Sleep score computation.

A score is a 0-100 summary of one night.  The scorer holds exactly one
:class:`ScoringFunction`, chosen when it is built:

  - :class:`ModelBacked` wraps a predictive model (by default a linear model
    loaded from a JSON artifact).  Any failure at prediction time, or an
    output that is not a finite number, falls back to the heuristic.
  - :class:`HeuristicOnly` always uses the heuristic.

Heuristic::

    score = clamp((hours / 8) * 100 - awake_pct * 20, 0, 100)

Eight hours of sleep earns 100 points before the wake penalty, and up to 20
points are lost in proportion to time spent awake.
"""

from __future__ import annotations

import json
import logging
import math
import numbers
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping, Protocol

import numpy as np

from sleepsense.analytics.recommend import recommend
from sleepsense.errors import ModelLoadError

logger = logging.getLogger(__name__)


SLEEP_NEED_HOURS = 8.0
AWAKE_PENALTY = 20.0  # points lost at 100% time awake
SCORE_MIN = 0.0
SCORE_MAX = 100.0

# Input names the model artifact is trained on, in vector order.
MODEL_FEATURES = ("duration", "deepPct", "remPct", "awakePct")


def clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    """Clamp *value* into ``[lo, hi]``; NaN maps to *lo*."""
    if math.isnan(value):
        return lo
    return max(lo, min(hi, value))


@dataclass(frozen=True)
class SleepFeatures:
    """Model inputs derived from an entry's stage durations."""

    duration: float  # total sleep, seconds
    deep_pct: float  # 0-1
    rem_pct: float  # 0-1
    awake_pct: float  # 0-1

    @classmethod
    def from_durations(
        cls,
        total_sleep: float,
        deep_sleep: float = 0.0,
        rem_sleep: float = 0.0,
        awake_minutes: float = 0.0,
    ) -> SleepFeatures:
        """Turn stage durations into proportions of total sleep.

        The denominator is at least one second, and negative stage values
        count as zero.
        """
        total = max(total_sleep, 1.0)
        return cls(
            duration=total_sleep,
            deep_pct=clamp(max(deep_sleep, 0.0) / total),
            rem_pct=clamp(max(rem_sleep, 0.0) / total),
            awake_pct=clamp(max(awake_minutes * 60.0, 0.0) / total),
        )

    def as_model_input(self) -> dict[str, float]:
        return {
            "duration": self.duration,
            "deepPct": self.deep_pct,
            "remPct": self.rem_pct,
            "awakePct": self.awake_pct,
        }


@dataclass
class PredictionResult:
    """A score and the guidance that goes with it."""

    score: float  # 0-100
    recommendations: list[str] = field(default_factory=list)
    used_model: bool = False

    def __repr__(self) -> str:
        source = "model" if self.used_model else "heuristic"
        return (
            f"PredictionResult(score={self.score:.0f}, "
            f"tips={len(self.recommendations)}, via={source})"
        )


# ---------------------------------------------------------------------------
# Heuristics
# ---------------------------------------------------------------------------


def duration_score(total_sleep: float) -> float:
    """Duration-only score: 8 hours is 100, clamped to 0-100."""
    hours = total_sleep / 3600.0
    return clamp(hours / SLEEP_NEED_HOURS * 100.0, SCORE_MIN, SCORE_MAX)


def heuristic_score(total_sleep: float, awake_pct: float) -> float:
    """Duration score minus a wake penalty of up to 20 points."""
    hours = total_sleep / 3600.0
    raw = hours / SLEEP_NEED_HOURS * 100.0 - awake_pct * AWAKE_PENALTY
    return clamp(raw, SCORE_MIN, SCORE_MAX)


# ---------------------------------------------------------------------------
# Scoring functions
# ---------------------------------------------------------------------------


class ScoringFunction(Protocol):
    name: str

    def predict(self, features: SleepFeatures) -> float:
        ...


class HeuristicOnly:
    """Scoring function that never consults a model."""

    name = "heuristic"

    def predict(self, features: SleepFeatures) -> float:
        return heuristic_score(features.duration, features.awake_pct)


class LinearSleepModel:
    """Linear regression over the four model features.

    Artifact format (JSON)::

        {"intercept": 12.0,
         "weights": {"duration": 0.0025, "deepPct": 40.0,
                     "remPct": 30.0, "awakePct": -60.0}}
    """

    def __init__(self, intercept: float, weights: Mapping[str, float]) -> None:
        missing = [name for name in MODEL_FEATURES if name not in weights]
        if missing:
            raise ModelLoadError(f"model weights missing: {', '.join(missing)}")
        self.intercept = float(intercept)
        self.weights = np.array([float(weights[name]) for name in MODEL_FEATURES])

    @classmethod
    def load(cls, path: str | Path) -> LinearSleepModel:
        try:
            with open(path) as f:
                artifact = json.load(f)
            return cls(artifact["intercept"], artifact["weights"])
        except ModelLoadError:
            raise
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise ModelLoadError(f"cannot load model from {path}: {e}") from e

    def __call__(self, inputs: Mapping[str, float]) -> float:
        x = np.array([float(inputs[name]) for name in MODEL_FEATURES])
        return float(self.intercept + np.dot(self.weights, x))


class ModelBacked:
    """Scoring function that delegates to a predictive model.

    *model* is any callable taking the feature mapping (see
    :data:`MODEL_FEATURES`) and returning a number.
    """

    name = "model"

    def __init__(self, model: Callable[[dict[str, float]], Any]) -> None:
        self.model = model

    @classmethod
    def from_file(cls, path: str | Path) -> ModelBacked:
        """Load a :class:`LinearSleepModel` artifact.

        Raises:
            ModelLoadError: the file is missing or malformed.
        """
        return cls(LinearSleepModel.load(path))

    def predict(self, features: SleepFeatures) -> float:
        value = self.model(features.as_model_input())
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise TypeError(f"model returned {type(value).__name__}, expected a number")
        value = float(value)
        if not math.isfinite(value):
            raise ValueError(f"model returned non-finite score {value}")
        return value


# ---------------------------------------------------------------------------
# Scorer
# ---------------------------------------------------------------------------


class SleepScorer:
    """Score entries with a model, degrading to the heuristic on failure."""

    def __init__(self, function: ScoringFunction | None = None) -> None:
        self.function = function if function is not None else HeuristicOnly()

    @property
    def has_model(self) -> bool:
        return not isinstance(self.function, HeuristicOnly)

    def score(
        self,
        total_sleep: float,
        deep_sleep: float = 0.0,
        rem_sleep: float = 0.0,
        awake_minutes: float = 0.0,
    ) -> PredictionResult:
        """Score one night from its stage durations.

        Args:
            total_sleep: Total sleep in seconds.
            deep_sleep: Deep sleep in seconds.
            rem_sleep: REM sleep in seconds.
            awake_minutes: Minutes awake within the tracked interval.

        Returns:
            PredictionResult with a 0-100 score and at least one tip.
        """
        features = SleepFeatures.from_durations(total_sleep, deep_sleep, rem_sleep, awake_minutes)

        used_model = False
        if self.has_model:
            try:
                score = clamp(self.function.predict(features), SCORE_MIN, SCORE_MAX)
                used_model = True
            except Exception as e:
                logger.debug("%s prediction failed, using heuristic: %s", self.function.name, e)
        if not used_model:
            score = heuristic_score(features.duration, features.awake_pct)

        tips = recommend(score, features.deep_pct, features.rem_pct, features.awake_pct)
        return PredictionResult(score=score, recommendations=tips, used_model=used_model)

    def score_entry(self, entry) -> PredictionResult:
        """Score a :class:`~sleepsense.store.SleepEntry` (or anything shaped like one)."""
        return self.score(
            entry.total_sleep,
            entry.deep_sleep,
            entry.rem_sleep,
            entry.awake_minutes,
        )
