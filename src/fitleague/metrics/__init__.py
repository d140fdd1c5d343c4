"""Submission scoring metrics."""

from .run_rate import (
    MAX_RR,
    MIN_RR,
    QUALIFYING_RR,
    RunRateBaseline,
    RunRatePreview,
    baseline_for_age,
    compute_rr,
    compute_rr_for,
    preview_rr,
)
from .thresholds import (
    BASE_TIER,
    DEFAULT_MINIMUMS,
    ThresholdResult,
    evaluate,
    metric_for,
    select_tier,
    validate_activity_thresholds,
    validate_age_group_overrides,
)

__all__ = [
    "MAX_RR",
    "MIN_RR",
    "QUALIFYING_RR",
    "RunRateBaseline",
    "RunRatePreview",
    "baseline_for_age",
    "compute_rr",
    "compute_rr_for",
    "preview_rr",
    "BASE_TIER",
    "DEFAULT_MINIMUMS",
    "ThresholdResult",
    "evaluate",
    "metric_for",
    "select_tier",
    "validate_activity_thresholds",
    "validate_age_group_overrides",
]
