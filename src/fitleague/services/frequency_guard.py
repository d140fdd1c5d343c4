"""
Frequency caps for league activities.

A league host can cap how many times an activity is credited per period:
at most N entries per calendar week (Sunday to Saturday) or per calendar
month. Prior approved and pending entries count toward the cap; rejected
entries do not.
"""

from calendar import monthrange
from dataclasses import dataclass
from datetime import date, timedelta
import logging
import math
from typing import Iterable, Optional, Tuple

from ..exceptions import FrequencyValidationError
from ..models.leagues import FrequencyType
from ..models.submissions import Submission, SubmissionStatus


logger = logging.getLogger(__name__)


# Canonical cap bounds, one table for every configuration path
MAX_FREQUENCY = {
    FrequencyType.WEEKLY: 7,
    FrequencyType.MONTHLY: 28,
}

COUNTED_STATUSES = (SubmissionStatus.PENDING, SubmissionStatus.APPROVED)


@dataclass
class FrequencyCheck:
    """Result of checking a new entry against an activity's cap."""
    allowed: bool
    prior_count: int
    frequency_cap: Optional[int]
    frequency_type: FrequencyType
    period_start: date
    period_end: date

    @property
    def remaining(self) -> Optional[int]:
        if self.frequency_cap is None:
            return None
        return max(0, self.frequency_cap - self.prior_count)

    def to_dict(self) -> dict:
        return {
            "allowed": self.allowed,
            "prior_count": self.prior_count,
            "frequency": self.frequency_cap,
            "frequency_type": self.frequency_type.value,
            "remaining": self.remaining,
            "period_start": self.period_start.isoformat(),
            "period_end": self.period_end.isoformat(),
        }


def check(
    prior_count_in_period: int,
    frequency_cap: Optional[int],
    frequency_type: "FrequencyType | str" = FrequencyType.WEEKLY,
) -> bool:
    """
    Decide whether one more entry fits under the cap.

    A cap of None means unlimited. ``frequency_type`` only selects the
    counting window upstream and does not change the comparison.
    """
    FrequencyType(frequency_type)
    if frequency_cap is None:
        return True
    return prior_count_in_period < frequency_cap


def period_bounds(day: date, frequency_type: "FrequencyType | str") -> Tuple[date, date]:
    """
    Return the inclusive (start, end) dates of the period containing ``day``.

    Weekly periods are calendar weeks starting on Sunday; monthly periods are
    calendar months.
    """
    frequency_type = FrequencyType(frequency_type)
    if frequency_type is FrequencyType.MONTHLY:
        last_day = monthrange(day.year, day.month)[1]
        return day.replace(day=1), day.replace(day=last_day)

    # weekday() is 0 for Monday, 6 for Sunday
    days_since_sunday = (day.weekday() + 1) % 7
    start = day - timedelta(days=days_since_sunday)
    return start, start + timedelta(days=6)


def count_in_period(
    submissions: Iterable[Submission],
    activity_id: str,
    day: date,
    frequency_type: "FrequencyType | str",
    exclude_id: Optional[str] = None,
) -> int:
    """Count a member's approved and pending entries for an activity in the period."""
    start, end = period_bounds(day, frequency_type)
    count = 0
    for submission in submissions:
        if submission.id == exclude_id:
            continue
        if submission.workout_type != activity_id:
            continue
        if submission.status not in COUNTED_STATUSES:
            continue
        entry_day = date.fromisoformat(submission.date)
        if start <= entry_day <= end:
            count += 1
    return count


def validate_frequency(
    frequency: Optional[float],
    frequency_type: "FrequencyType | str" = FrequencyType.WEEKLY,
) -> Optional[int]:
    """
    Normalize and bound-check a frequency cap before it is stored.

    Fractional values are floored. None means unlimited.

    Raises:
        FrequencyValidationError: If the value is not a finite number or is
            outside 0..7 (weekly) / 0..28 (monthly).
    """
    try:
        frequency_type = FrequencyType(frequency_type)
    except ValueError:
        raise FrequencyValidationError(
            "frequency_type must be weekly or monthly",
            field="frequency_type",
        )

    if frequency is None:
        return None

    try:
        as_number = float(frequency)
    except (TypeError, ValueError):
        raise FrequencyValidationError("frequency must be a number or null")
    if not math.isfinite(as_number):
        raise FrequencyValidationError("frequency must be a number or null")

    rounded = math.floor(as_number)
    max_allowed = MAX_FREQUENCY[frequency_type]
    if rounded < 0 or rounded > max_allowed:
        raise FrequencyValidationError(
            f"frequency must be between 0 and {max_allowed} (or null for unlimited)",
            details={"frequency_type": frequency_type.value, "max_allowed": max_allowed},
        )
    return rounded


class FrequencyGuard:
    """Checks new entries against an activity's weekly or monthly cap."""

    def __init__(self):
        self._logger = logging.getLogger(__name__)

    def check_entry(
        self,
        history: Iterable[Submission],
        activity_id: str,
        day: date,
        frequency_cap: Optional[int],
        frequency_type: "FrequencyType | str" = FrequencyType.WEEKLY,
        exclude_id: Optional[str] = None,
    ) -> FrequencyCheck:
        """
        Check whether an entry for ``activity_id`` on ``day`` fits under the cap.

        Args:
            history: The member's existing submissions
            activity_id: Activity the new entry is for
            day: Date of the new entry
            frequency_cap: Maximum entries per period (None for unlimited)
            frequency_type: weekly or monthly
            exclude_id: Submission to leave out of the count (the entry a
                resubmission replaces)

        Returns:
            FrequencyCheck describing the decision and counting window
        """
        frequency_type = FrequencyType(frequency_type)
        start, end = period_bounds(day, frequency_type)
        prior = count_in_period(history, activity_id, day, frequency_type, exclude_id=exclude_id)
        allowed = check(prior, frequency_cap, frequency_type)
        if not allowed:
            self._logger.info(
                f"Frequency cap reached for activity {activity_id}: "
                f"{prior}/{frequency_cap} {frequency_type.value} ({start} to {end})"
            )
        return FrequencyCheck(
            allowed=allowed,
            prior_count=prior,
            frequency_cap=frequency_cap,
            frequency_type=frequency_type,
            period_start=start,
            period_end=end,
        )


_frequency_guard: Optional[FrequencyGuard] = None


def get_frequency_guard() -> FrequencyGuard:
    """Get the frequency guard singleton."""
    global _frequency_guard
    if _frequency_guard is None:
        _frequency_guard = FrequencyGuard()
    return _frequency_guard
