"""
Activity configuration service.

Hosts set frequency caps; hosts and governors set the minimum/maximum
thresholds and age-group overrides. Every write is validated before it
reaches the database.
"""

import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..db.repositories import LeagueRepository, get_league_repository
from ..exceptions import (
    LeagueNotFoundError,
    MembershipNotFoundError,
    NotFoundError,
    PermissionDeniedError,
)
from ..metrics.thresholds import DEFAULT_MINIMUMS, validate_activity_thresholds
from ..models.leagues import (
    ActivityConfig,
    AgeGroupOverride,
    FrequencyType,
    LeagueMember,
    MeasurementType,
)
from .frequency_guard import validate_frequency


logger = logging.getLogger(__name__)


class FrequencyUpdate(BaseModel):
    """Request model for changing an activity's frequency cap."""
    activity_id: str
    frequency: Optional[float] = Field(None, description="Entries allowed per period; null for unlimited")
    frequency_type: str = "weekly"


class AgeGroupOverrideModel(BaseModel):
    age_min: Optional[int] = Field(None, ge=0, le=130)
    age_max: Optional[int] = Field(None, ge=0, le=130)
    min_value: Optional[float] = None
    max_value: Optional[float] = None


class MinimumsUpdate(BaseModel):
    """Request model for an activity's thresholds."""
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    age_group_overrides: Dict[str, AgeGroupOverrideModel] = Field(default_factory=dict)
    measurement_type: Optional[MeasurementType] = None


class ActivityConfigService:
    """Reads and writes per-league activity configuration."""

    def __init__(self, league_repo: Optional[LeagueRepository] = None):
        self._leagues = league_repo or get_league_repository()

    def _get_actor(self, league_id: str, user_id: str) -> LeagueMember:
        if self._leagues.get_league(league_id) is None:
            raise LeagueNotFoundError(league_id)
        member = self._leagues.get_member_by_user(league_id, user_id)
        if member is None:
            raise MembershipNotFoundError(league_id, user_id)
        return member

    def _get_activity(self, league_id: str, activity_id: str) -> ActivityConfig:
        config = self._leagues.get_activity(league_id, activity_id)
        if config is None:
            raise NotFoundError("Activity", activity_id)
        return config

    def list_activities(self, league_id: str, user_id: str) -> List[ActivityConfig]:
        self._get_actor(league_id, user_id)
        return self._leagues.list_activities(league_id)

    def update_frequency(self, league_id: str, user_id: str, update: FrequencyUpdate) -> ActivityConfig:
        """
        Set an activity's frequency cap.

        Only the league host may change caps.

        Raises:
            PermissionDeniedError: If the caller is not the host
            FrequencyValidationError: If the cap is out of range
            NotFoundError: If the activity is not enabled in the league
        """
        actor = self._get_actor(league_id, user_id)
        if not actor.is_host:
            logger.warning(f"User {user_id} attempted to change frequency caps in league {league_id}")
            raise PermissionDeniedError("Only the league host can change activity frequency")

        frequency = validate_frequency(update.frequency, update.frequency_type)
        config = self._get_activity(league_id, update.activity_id)
        config.frequency = frequency
        config.frequency_type = FrequencyType(update.frequency_type)
        self._leagues.save_activity(config)
        logger.info(
            f"Set frequency for {update.activity_id} in league {league_id} to "
            f"{frequency if frequency is not None else 'unlimited'} ({config.frequency_type.value})"
        )
        return config

    def save_minimums(
        self,
        league_id: str,
        activity_id: str,
        user_id: str,
        update: MinimumsUpdate,
    ) -> ActivityConfig:
        """
        Replace an activity's thresholds and age-group overrides.

        Raises:
            PermissionDeniedError: If the caller is not a host or governor
            ThresholdConfigError: If bounds are inverted or age ranges overlap
        """
        actor = self._get_actor(league_id, user_id)
        if not actor.can_override:
            logger.warning(f"User {user_id} attempted to change minimums in league {league_id}")
            raise PermissionDeniedError("Only hosts and governors can change activity minimums")

        config = self._get_activity(league_id, activity_id)
        config.min_value = update.min_value
        config.max_value = update.max_value
        config.age_group_overrides = {
            key: AgeGroupOverride(**override.model_dump())
            for key, override in update.age_group_overrides.items()
        }
        if update.measurement_type is not None:
            config.measurement_type = update.measurement_type

        validate_activity_thresholds(config)
        self._leagues.save_activity(config)
        logger.info(
            f"Saved minimums for {activity_id} in league {league_id}: "
            f"{config.min_value}-{config.max_value}, {len(config.age_group_overrides)} override(s)"
        )
        return config

    def reset_minimums(self, league_id: str, activity_id: str, user_id: str) -> ActivityConfig:
        """Clear an activity's thresholds and overrides."""
        return self.save_minimums(league_id, activity_id, user_id, MinimumsUpdate())

    def initialize_default_minimums(self, league_id: str, user_id: str) -> List[ActivityConfig]:
        """
        Fill in default thresholds for measured activities that have none.

        Activities with existing thresholds or no measurement type are left
        alone.
        """
        actor = self._get_actor(league_id, user_id)
        if not actor.can_override:
            raise PermissionDeniedError("Only hosts and governors can change activity minimums")

        updated = []
        for config in self._leagues.list_activities(league_id):
            defaults = DEFAULT_MINIMUMS.get(config.measurement_type)
            if defaults is None or config.min_value is not None or config.max_value is not None:
                continue
            config.min_value, config.max_value = defaults
            self._leagues.save_activity(config)
            updated.append(config)
        logger.info(f"Initialized default minimums for {len(updated)} activities in league {league_id}")
        return updated


_activity_config_service: Optional[ActivityConfigService] = None


def get_activity_config_service() -> ActivityConfigService:
    """Get the activity config service singleton."""
    global _activity_config_service
    if _activity_config_service is None:
        _activity_config_service = ActivityConfigService()
    return _activity_config_service
