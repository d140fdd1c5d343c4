"""Dependency injection for API routes."""

from functools import lru_cache

from ..db.repositories import LeagueRepository, SubmissionRepository
from ..config import get_settings
from ..services.activity_config_service import ActivityConfigService
from ..services.submission_service import SubmissionService


@lru_cache
def get_league_repo() -> LeagueRepository:
    """Get the league repository for the configured database."""
    return LeagueRepository(str(get_settings().database_path))


@lru_cache
def get_submission_repo() -> SubmissionRepository:
    """Get the submission repository for the configured database."""
    return SubmissionRepository(str(get_settings().database_path))


@lru_cache
def get_submission_service() -> SubmissionService:
    """Get the submission service instance."""
    return SubmissionService(
        submission_repo=get_submission_repo(),
        league_repo=get_league_repo(),
    )


@lru_cache
def get_activity_config_service() -> ActivityConfigService:
    """Get the activity config service instance."""
    return ActivityConfigService(league_repo=get_league_repo())
