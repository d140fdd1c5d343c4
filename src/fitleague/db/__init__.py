"""Persistence layer."""

from .repositories import (
    LeagueRepository,
    SubmissionRepository,
    get_league_repository,
    get_submission_repository,
)

__all__ = [
    "LeagueRepository",
    "SubmissionRepository",
    "get_league_repository",
    "get_submission_repository",
]
