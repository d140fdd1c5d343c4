"""Activity minimum/maximum thresholds with age-group overrides."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..exceptions import ThresholdConfigError
from ..models.leagues import ActivityConfig, AgeGroupOverride, MeasurementType


BASE_TIER = "base"

# Defaults per measurement type when a league has not configured minimums
DEFAULT_MINIMUMS: Dict[MeasurementType, Tuple[float, float]] = {
    MeasurementType.DURATION: (45, 90),      # minutes
    MeasurementType.DISTANCE: (4, 20),       # km
    MeasurementType.STEPS: (10000, 20000),
    MeasurementType.HOLE: (9, 18),
}


@dataclass
class ThresholdResult:
    """Outcome of checking one metric against an activity's thresholds."""
    qualifies: bool
    tier: str
    min_value: Optional[float] = None
    max_value: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "qualifies": self.qualifies,
            "tier": self.tier,
            "min_value": self.min_value,
            "max_value": self.max_value,
        }


def select_tier(
    config: ActivityConfig,
    member_age: Optional[int],
) -> Tuple[str, Optional[float], Optional[float]]:
    """
    Pick the threshold tier for a member's age.

    The first override (in declaration order) whose age range contains the
    age wins; members with unknown age or no matching override use the base
    min/max.
    """
    if member_age is not None:
        for key, override in config.age_group_overrides.items():
            if override.contains(member_age):
                return key, override.min_value, override.max_value
    return BASE_TIER, config.min_value, config.max_value


def evaluate(
    config: ActivityConfig,
    member_age: Optional[int],
    metric_value: Optional[float],
) -> ThresholdResult:
    """
    Decide whether a submitted metric qualifies under the activity's thresholds.

    A missing bound leaves that side unconstrained. A missing metric only
    qualifies when neither bound is set.

    Args:
        config: The league's configuration for the activity
        member_age: Age of the submitting member (None if unknown)
        metric_value: The metric value the thresholds apply to

    Returns:
        ThresholdResult with the qualifying decision and the tier applied
    """
    tier, min_value, max_value = select_tier(config, member_age)

    if metric_value is None:
        qualifies = min_value is None and max_value is None
    else:
        qualifies = True
        if min_value is not None and metric_value < min_value:
            qualifies = False
        if max_value is not None and metric_value > max_value:
            qualifies = False

    return ThresholdResult(
        qualifies=qualifies,
        tier=tier,
        min_value=min_value,
        max_value=max_value,
    )


def metric_for(entry: Any, measurement_type: Optional[MeasurementType]) -> Optional[float]:
    """Return the submitted metric the activity's thresholds are expressed in."""
    if measurement_type is None or measurement_type is MeasurementType.NONE:
        return None
    if measurement_type is MeasurementType.DURATION:
        return entry.duration
    if measurement_type is MeasurementType.DISTANCE:
        return entry.distance
    if measurement_type is MeasurementType.STEPS:
        return entry.steps
    return entry.holes


def _check_bounds(label: str, min_value: Optional[float], max_value: Optional[float]) -> None:
    if min_value is not None and min_value < 0:
        raise ThresholdConfigError(f"{label}: min_value must be non-negative", field="min_value")
    if max_value is not None and max_value < 0:
        raise ThresholdConfigError(f"{label}: max_value must be non-negative", field="max_value")
    if min_value is not None and max_value is not None and min_value > max_value:
        raise ThresholdConfigError(
            f"{label}: min_value must not exceed max_value",
            field="min_value",
            details={"min_value": min_value, "max_value": max_value},
        )


def _age_span(override: AgeGroupOverride) -> Tuple[float, float]:
    low = override.age_min if override.age_min is not None else float("-inf")
    high = override.age_max if override.age_max is not None else float("inf")
    return low, high


def validate_age_group_overrides(overrides: Dict[str, AgeGroupOverride]) -> None:
    """
    Reject override tables that cannot be evaluated unambiguously.

    Raises:
        ThresholdConfigError: If a range is empty or inverted, a tier's
            min exceeds its max, or two age ranges overlap.
    """
    spans: List[Tuple[float, float, str]] = []
    for key, override in overrides.items():
        if key == BASE_TIER:
            raise ThresholdConfigError(
                f"'{BASE_TIER}' is reserved for the default thresholds",
                field="age_group_overrides",
            )
        low, high = _age_span(override)
        if low >= high:
            raise ThresholdConfigError(
                f"Override '{key}': age_min must be less than age_max",
                field="age_group_overrides",
                details={"tier": key},
            )
        _check_bounds(f"Override '{key}'", override.min_value, override.max_value)
        spans.append((low, high, key))

    spans.sort()
    for (_, prev_high, prev_key), (low, _, key) in zip(spans, spans[1:]):
        if low < prev_high:
            raise ThresholdConfigError(
                f"Age ranges for '{prev_key}' and '{key}' overlap",
                field="age_group_overrides",
                details={"tiers": [prev_key, key]},
            )


def validate_activity_thresholds(config: ActivityConfig) -> None:
    """Validate base min/max and the override table of an activity config."""
    _check_bounds("Base thresholds", config.min_value, config.max_value)
    validate_age_group_overrides(config.age_group_overrides)
