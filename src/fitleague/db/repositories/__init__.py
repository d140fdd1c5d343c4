"""SQLite repositories for league structure and submissions."""

from .league_repository import LeagueRepository, get_league_repository
from .submission_repository import SubmissionRepository, get_submission_repository

__all__ = [
    "LeagueRepository",
    "get_league_repository",
    "SubmissionRepository",
    "get_submission_repository",
]
