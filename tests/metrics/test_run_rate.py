"""Tests for run-rate scoring."""

import math
from types import SimpleNamespace

import pytest

from fitleague.metrics.run_rate import (
    DEFAULT_BASELINE,
    ELDER_BASELINE,
    SENIOR_BASELINE,
    baseline_for_age,
    compute_rr,
    compute_rr_for,
    preview_rr,
)


def entry(type="workout", workout_type=None, duration=None, distance=None, steps=None, holes=None):
    return SimpleNamespace(
        type=type,
        workout_type=workout_type,
        duration=duration,
        distance=distance,
        steps=steps,
        holes=holes,
    )


class TestRestDay:
    def test_rest_day_is_flat_credit(self):
        assert compute_rr("rest") == 1.0

    def test_rest_day_ignores_metrics(self):
        """Metrics on a rest day never change the score."""
        assert compute_rr("rest", workout_type="run", duration=300, distance=50) == 1.0


class TestSteps:
    @pytest.mark.parametrize("steps,expected", [
        (9999, 0.0),
        (10000, 1.0),
        (15000, 1.5),
        (20000, 2.0),
        (50000, 2.0),
    ])
    def test_steps_ramp(self, steps, expected):
        assert compute_rr("workout", workout_type="steps", steps=steps) == pytest.approx(expected)

    def test_steps_without_count_falls_back_to_duration(self):
        assert compute_rr("workout", workout_type="steps", duration=45) == pytest.approx(1.0)

    def test_steps_without_any_metric_is_default(self):
        assert compute_rr("workout", workout_type="steps") == 1.0


class TestGolf:
    def test_nine_holes_is_baseline(self):
        assert compute_rr("workout", workout_type="golf", holes=9) == pytest.approx(1.0)

    def test_eighteen_holes_is_max(self):
        assert compute_rr("workout", workout_type="golf", holes=18) == pytest.approx(2.0)

    def test_golf_is_capped(self):
        assert compute_rr("workout", workout_type="golf", holes=36) == 2.0


class TestDistanceWorkouts:
    def test_run_uses_best_of_duration_and_distance(self):
        assert compute_rr("workout", workout_type="run", duration=45, distance=6) == pytest.approx(1.5)

    def test_run_duration_only(self):
        assert compute_rr("workout", workout_type="run", duration=90) == pytest.approx(2.0)

    def test_cardio_is_scored_like_running(self):
        assert compute_rr("workout", workout_type="cardio", distance=2) == pytest.approx(0.5)

    def test_cycling_distance_baseline_is_ten_km(self):
        assert compute_rr("workout", workout_type="cycling", distance=15) == pytest.approx(1.5)

    def test_workout_type_is_case_insensitive(self):
        assert compute_rr("workout", workout_type="  Run ", distance=4) == pytest.approx(1.0)


class TestFallbacks:
    def test_other_workout_scored_by_duration(self):
        assert compute_rr("workout", workout_type="yoga", duration=30) == pytest.approx(30 / 45)

    def test_no_signal_is_default(self):
        assert compute_rr("workout", workout_type="yoga") == 1.0

    @pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf, "abc"])
    def test_non_finite_operands_count_as_zero(self, bad):
        """A run with a non-finite distance is scored on duration alone."""
        assert compute_rr("workout", workout_type="run", duration=45, distance=bad) == pytest.approx(1.0)

    def test_result_never_negative(self):
        assert compute_rr("workout", workout_type="run", duration=-100) == 0.0

    def test_result_never_above_max(self):
        assert compute_rr("workout", workout_type="hiit", duration=10_000) == 2.0


class TestAgeBaselines:
    @pytest.mark.parametrize("age,baseline", [
        (None, DEFAULT_BASELINE),
        (40, DEFAULT_BASELINE),
        (65, DEFAULT_BASELINE),
        (66, SENIOR_BASELINE),
        (75, SENIOR_BASELINE),
        (76, ELDER_BASELINE),
    ])
    def test_baseline_for_age(self, age, baseline):
        assert baseline_for_age(age) == baseline

    def test_senior_duration_baseline(self):
        """30 minutes is a full day's credit for members over 65."""
        assert compute_rr_for(entry(workout_type="yoga", duration=30), age=70) == pytest.approx(1.0)

    def test_elder_steps_window(self):
        assert compute_rr_for(entry(workout_type="steps", steps=4500), age=80) == pytest.approx(1.5)


class TestPreview:
    def test_qualifying_workout_can_submit(self):
        preview = preview_rr(entry(workout_type="run", duration=60))
        assert preview.can_submit is True
        assert preview.to_dict()["min_rr"] == 1.0
        assert preview.to_dict()["max_rr"] == 2.0

    def test_short_workout_cannot_submit(self):
        preview = preview_rr(entry(workout_type="run", duration=20))
        assert preview.can_submit is False
        assert preview.rr_value == pytest.approx(20 / 45)

    def test_rest_day_can_always_submit(self):
        assert preview_rr(entry(type="rest")).can_submit is True

    def test_flat_credit_activity(self):
        """Unmeasured activities score 1.0 whatever was entered."""
        preview = preview_rr(entry(workout_type="yoga", duration=5), flat_credit=True)
        assert preview.rr_value == 1.0
        assert preview.can_submit is True
