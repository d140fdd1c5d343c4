"""Run-rate (RR) scoring for workout and rest-day submissions.

RR normalizes heterogeneous workout inputs to a single credit value in
[0, 2.0], where 1.0 is a baseline day (45 minutes, 4 km running, 10 km
cycling, 10,000 steps or 9 holes of golf).
"""

import math
from dataclasses import dataclass
from typing import Any, Optional

from ..models.submissions import SubmissionType


MIN_RR = 0.0
MAX_RR = 2.0
QUALIFYING_RR = 1.0  # minimum RR for a workout to be creditable
REST_DAY_RR = 1.0
DEFAULT_RR = 1.0  # no scoring signal available

RUN_DISTANCE_BASELINE_KM = 4.0
CYCLING_DISTANCE_BASELINE_KM = 10.0
GOLF_BASELINE_HOLES = 9.0

DISTANCE_WORKOUTS = {"run", "cardio"}


@dataclass(frozen=True)
class RunRateBaseline:
    """Baselines that map raw metrics onto RR 1.0 (and the steps cap at 2.0)."""
    duration_min: float = 45.0
    min_steps: float = 10000.0
    max_steps: float = 20000.0


DEFAULT_BASELINE = RunRateBaseline()
SENIOR_BASELINE = RunRateBaseline(duration_min=30.0, min_steps=5000.0, max_steps=10000.0)
ELDER_BASELINE = RunRateBaseline(duration_min=30.0, min_steps=3000.0, max_steps=6000.0)


def baseline_for_age(age: Optional[int]) -> RunRateBaseline:
    """
    Pick the RR baseline for a member's age.

    Members over 65 get a 30 minute duration baseline and a lower steps
    window; over 75 the steps window drops again. Unknown age uses the
    default baseline.
    """
    if age is None:
        return DEFAULT_BASELINE
    if age > 75:
        return ELDER_BASELINE
    if age > 65:
        return SENIOR_BASELINE
    return DEFAULT_BASELINE


def _finite(value: Optional[float]) -> float:
    """Treat missing or non-finite operands as 0."""
    if value is None:
        return 0.0
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return value


def _present(value: Optional[float]) -> bool:
    if value is None:
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def _clamp(rr: float) -> float:
    return max(MIN_RR, min(rr, MAX_RR))


def compute_rr(
    submission_type: "SubmissionType | str",
    workout_type: Optional[str] = None,
    duration: Optional[float] = None,
    distance: Optional[float] = None,
    steps: Optional[float] = None,
    holes: Optional[float] = None,
    baseline: RunRateBaseline = DEFAULT_BASELINE,
) -> float:
    """
    Compute the run-rate score for a workout or rest day.

    Rules are evaluated in order; the first that applies wins:
        1. Rest day: flat 1.0
        2. Steps: 0 below the minimum, then a linear ramp from 1.0 to 2.0
        3. Golf: holes / 9
        4. Run/cardio: best of duration / 45 and distance / 4
        5. Cycling: best of duration / 45 and distance / 10
        6. Any other workout with a duration: duration / 45
        7. Otherwise: 1.0

    Never raises; every result is clamped to [0, 2.0].

    Args:
        submission_type: "workout" or "rest"
        workout_type: Activity identifier (run, cycling, steps, golf, ...)
        duration: Duration in minutes
        distance: Distance in km
        steps: Step count
        holes: Golf holes played
        baseline: Baselines for duration and the steps window

    Returns:
        RR value in [0, 2.0]
    """
    if SubmissionType(submission_type) is SubmissionType.REST:
        return REST_DAY_RR

    kind = (workout_type or "").strip().lower()

    if kind == "steps" and _present(steps):
        step_count = _finite(steps)
        if step_count < baseline.min_steps:
            return MIN_RR
        capped = min(step_count, baseline.max_steps)
        ramp = (capped - baseline.min_steps) / (baseline.max_steps - baseline.min_steps)
        return _clamp(1 + ramp)

    if kind == "golf" and _present(holes):
        return _clamp(_finite(holes) / GOLF_BASELINE_HOLES)

    if kind in DISTANCE_WORKOUTS:
        rr_duration = _finite(duration) / baseline.duration_min
        rr_distance = _finite(distance) / RUN_DISTANCE_BASELINE_KM
        return _clamp(max(rr_duration, rr_distance))

    if kind == "cycling":
        rr_duration = _finite(duration) / baseline.duration_min
        rr_distance = _finite(distance) / CYCLING_DISTANCE_BASELINE_KM
        return _clamp(max(rr_duration, rr_distance))

    if _present(duration):
        return _clamp(_finite(duration) / baseline.duration_min)

    return DEFAULT_RR


def compute_rr_for(entry: Any, age: Optional[int] = None) -> float:
    """Compute RR for any object carrying the submission metric attributes."""
    return compute_rr(
        submission_type=entry.type,
        workout_type=entry.workout_type,
        duration=entry.duration,
        distance=entry.distance,
        steps=entry.steps,
        holes=entry.holes,
        baseline=baseline_for_age(age),
    )


@dataclass
class RunRatePreview:
    """Result of scoring a prospective entry without saving it."""
    rr_value: float
    can_submit: bool
    min_rr: float = QUALIFYING_RR
    max_rr: float = MAX_RR

    def to_dict(self) -> dict:
        return {
            "rr_value": round(self.rr_value, 4),
            "can_submit": self.can_submit,
            "min_rr": self.min_rr,
            "max_rr": self.max_rr,
        }


def preview_rr(entry: Any, age: Optional[int] = None, flat_credit: bool = False) -> RunRatePreview:
    """
    Score a prospective entry and report whether it can be submitted.

    Rest days can always be submitted; workouts need RR >= 1.0.
    ``flat_credit`` is set for activities that are not measured at all,
    which always score 1.0.
    """
    is_rest = SubmissionType(entry.type) is SubmissionType.REST
    if flat_credit and not is_rest:
        rr_value = DEFAULT_RR
    else:
        rr_value = compute_rr_for(entry, age=age)
    return RunRatePreview(
        rr_value=rr_value,
        can_submit=is_rest or rr_value >= QUALIFYING_RR,
    )
