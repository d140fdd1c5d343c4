"""Data models for the fitness league service."""

from .leagues import (
    ActivityConfig,
    AgeGroupOverride,
    FrequencyType,
    League,
    LeagueMember,
    LeagueRole,
    MeasurementType,
    age_on,
)
from .submissions import (
    Submission,
    SubmissionStatus,
    SubmissionType,
)

__all__ = [
    "ActivityConfig",
    "AgeGroupOverride",
    "FrequencyType",
    "League",
    "LeagueMember",
    "LeagueRole",
    "MeasurementType",
    "age_on",
    "Submission",
    "SubmissionStatus",
    "SubmissionType",
]
