"""Tests for sleepsense.analytics.recommend -- rule-based tips."""

from datetime import datetime, timedelta

import pytest

from sleepsense.analytics.recommend import (
    recommend,
    recommend_from_history,
    TIP_SCHEDULE,
    TIP_STRONG,
    TIP_DEEP,
    TIP_REM,
    TIP_AWAKE,
    TIP_KEEP_TRACKING,
    TIP_NOT_ENOUGH_DATA,
    TIP_MORE_HOURS,
    TIP_DURATION_OK,
    TIP_SCREEN_TIME,
)

from tests.conftest import HOUR, make_entry

# Proportions that trigger none of the stage rules
GOOD = dict(deep_pct=0.20, rem_pct=0.22, awake_pct=0.05)


class TestRecommend:
    def test_low_score(self):
        assert recommend(50.0, **GOOD) == [TIP_SCHEDULE]

    def test_high_score(self):
        assert recommend(90.0, **GOOD) == [TIP_STRONG]

    @pytest.mark.parametrize("score", [70.0, 77.5, 85.0])
    def test_middle_band_falls_through_to_generic(self, score):
        assert recommend(score, **GOOD) == [TIP_KEEP_TRACKING]

    def test_all_stage_rules_in_order(self):
        tips = recommend(78.0, deep_pct=0.05, rem_pct=0.05, awake_pct=0.20)
        assert tips == [TIP_DEEP, TIP_REM, TIP_AWAKE]

    def test_score_rule_first(self):
        tips = recommend(40.0, deep_pct=0.05, rem_pct=0.05, awake_pct=0.20)
        assert tips == [TIP_SCHEDULE, TIP_DEEP, TIP_REM, TIP_AWAKE]

    def test_thresholds_are_strict(self):
        # deep == 0.15, rem == 0.18, awake == 0.10 trigger nothing
        assert recommend(80.0, deep_pct=0.15, rem_pct=0.18, awake_pct=0.10) == [TIP_KEEP_TRACKING]

    def test_generic_only_when_nothing_fired(self):
        tips = recommend(80.0, deep_pct=0.10, rem_pct=0.30, awake_pct=0.0)
        assert tips == [TIP_DEEP]
        assert TIP_KEEP_TRACKING not in tips

    @pytest.mark.parametrize("args", [
        (0.0, 0.0, 0.0, 0.0),
        (100.0, 1.0, 1.0, 1.0),
        (-50.0, -1.0, -1.0, -1.0),
        (float("nan"), float("nan"), float("nan"), float("nan")),
    ])
    def test_never_empty(self, args):
        assert len(recommend(*args)) >= 1


class TestRecommendFromHistory:
    def test_no_entries(self):
        assert recommend_from_history([], {}) == [TIP_NOT_ENOUGH_DATA]

    def test_no_entries_ignores_totals(self):
        totals = {datetime(2026, 3, 10): 4 * HOUR}
        assert recommend_from_history([], totals) == [TIP_NOT_ENOUGH_DATA]

    def test_short_average(self):
        entries = [make_entry(score=90.0)]
        totals = {datetime(2026, 3, 9): 6 * HOUR, datetime(2026, 3, 10): 7 * HOUR}
        assert recommend_from_history(entries, totals) == [TIP_MORE_HOURS]

    def test_good_average(self):
        entries = [make_entry(score=90.0)]
        totals = {datetime(2026, 3, 9): 7 * HOUR, datetime(2026, 3, 10): 8 * HOUR}
        assert recommend_from_history(entries, totals) == [TIP_DURATION_OK]

    def test_exactly_seven_hours_is_good(self):
        entries = [make_entry(score=90.0)]
        totals = {datetime(2026, 3, 10): 7 * HOUR}
        assert recommend_from_history(entries, totals) == [TIP_DURATION_OK]

    def test_latest_low_score(self):
        base = datetime(2026, 3, 8, 23, 0)
        entries = [
            make_entry(base + timedelta(days=2), score=55.0),
            make_entry(base, score=95.0),
        ]
        totals = {datetime(2026, 3, 8): 8 * HOUR}
        assert recommend_from_history(entries, totals) == [TIP_DURATION_OK, TIP_SCREEN_TIME]

    def test_only_latest_score_matters(self):
        base = datetime(2026, 3, 8, 23, 0)
        entries = [
            make_entry(base, score=30.0),
            make_entry(base + timedelta(days=1), score=88.0),
        ]
        totals = {datetime(2026, 3, 8): 8 * HOUR}
        assert recommend_from_history(entries, totals) == [TIP_DURATION_OK]

    def test_date_tie_goes_to_later_entry(self):
        night = datetime(2026, 3, 10, 23, 0)
        entries = [make_entry(night, score=92.0), make_entry(night, score=41.0)]
        totals = {datetime(2026, 3, 10): 8 * HOUR}
        assert recommend_from_history(entries, totals) == [TIP_DURATION_OK, TIP_SCREEN_TIME]
        assert recommend_from_history(entries[::-1], totals) == [TIP_DURATION_OK]

    def test_both_rules(self):
        entries = [make_entry(hours=5.0, score=62.5)]
        totals = {datetime(2026, 3, 10): 5 * HOUR}
        assert recommend_from_history(entries, totals) == [TIP_MORE_HOURS, TIP_SCREEN_TIME]

    def test_falls_back_to_entry_durations(self):
        entries = [make_entry(hours=6.0, score=80.0), make_entry(hours=7.0, score=80.0)]
        assert recommend_from_history(entries, {}) == [TIP_MORE_HOURS]
