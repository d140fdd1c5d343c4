"""Shared fixtures: a temporary SQLite database seeded with one league.

League "lg-1" (host-1 is the creator):

    member     user     team    roles
    m-host     host-1   -       host
    m-gov      gov-1    -       governor
    m-cap-a    cap-a    team-a  captain, player
    m-a1       p-a1     team-a  player
    m-a2       p-a2     team-a  player
    m-b1       p-b1     team-b  player
    m-old      p-old    team-a  player (born 1940)
"""

import os
import tempfile
from datetime import date

import pytest

from fitleague.db.repositories import LeagueRepository, SubmissionRepository
from fitleague.models.leagues import (
    ActivityConfig,
    AgeGroupOverride,
    FrequencyType,
    League,
    LeagueMember,
    LeagueRole,
    MeasurementType,
)
from fitleague.services.activity_config_service import ActivityConfigService
from fitleague.services.submission_service import SubmissionService


LEAGUE_ID = "lg-1"


@pytest.fixture
def temp_db_path():
    """Create a temporary database file path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name
    yield db_path
    try:
        os.unlink(db_path)
    except OSError:
        pass


@pytest.fixture
def league_repo(temp_db_path):
    return LeagueRepository(db_path=temp_db_path)


@pytest.fixture
def submission_repo(temp_db_path):
    return SubmissionRepository(db_path=temp_db_path)


def make_member(member_id, user_id, team_id=None, roles=(LeagueRole.PLAYER,), dob=None):
    return LeagueMember(
        league_member_id=member_id,
        league_id=LEAGUE_ID,
        user_id=user_id,
        team_id=team_id,
        roles=frozenset(roles),
        date_of_birth=dob,
    )


@pytest.fixture
def seeded_league(league_repo):
    """Seed the league, its members and activities."""
    league_repo.save_league(League(
        league_id=LEAGUE_ID,
        name="Spring League",
        created_by="host-1",
        start_date="2024-01-01",
        end_date="2024-12-31",
        rest_days=2,
    ))
    for member in (
        make_member("m-host", "host-1"),
        make_member("m-gov", "gov-1", roles=(LeagueRole.GOVERNOR,)),
        make_member("m-cap-a", "cap-a", "team-a", roles=(LeagueRole.CAPTAIN, LeagueRole.PLAYER)),
        make_member("m-a1", "p-a1", "team-a"),
        make_member("m-a2", "p-a2", "team-a"),
        make_member("m-b1", "p-b1", "team-b"),
        make_member("m-old", "p-old", "team-a", dob=date(1940, 1, 1)),
    ):
        league_repo.save_member(member)

    for config in (
        ActivityConfig(activity_id="run", league_id=LEAGUE_ID),
        ActivityConfig(activity_id="cycling", league_id=LEAGUE_ID),
        ActivityConfig(
            activity_id="steps",
            league_id=LEAGUE_ID,
            frequency=2,
            frequency_type=FrequencyType.WEEKLY,
            measurement_type=MeasurementType.STEPS,
        ),
        ActivityConfig(
            activity_id="swimming",
            league_id=LEAGUE_ID,
            min_value=30,
            max_value=120,
            measurement_type=MeasurementType.DURATION,
            age_group_overrides={
                "senior": AgeGroupOverride(age_min=65, min_value=15, max_value=120),
            },
        ),
        ActivityConfig(activity_id="yoga", league_id=LEAGUE_ID, measurement_type=MeasurementType.NONE),
    ):
        league_repo.save_activity(config)
    return LEAGUE_ID


@pytest.fixture
def submission_service(seeded_league, submission_repo, league_repo):
    return SubmissionService(
        submission_repo=submission_repo,
        league_repo=league_repo,
        auto_approve_hours=48,
    )


@pytest.fixture
def activity_service(seeded_league, league_repo):
    return ActivityConfigService(league_repo=league_repo)
