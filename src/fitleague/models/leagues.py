"""League, membership and activity configuration models."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional


class LeagueRole(str, Enum):
    """Roles a user can hold within a league."""
    HOST = "host"
    GOVERNOR = "governor"
    CAPTAIN = "captain"
    PLAYER = "player"


class FrequencyType(str, Enum):
    """Period over which an activity's frequency cap is counted."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class MeasurementType(str, Enum):
    """Which submitted metric an activity's thresholds apply to."""
    DURATION = "duration"
    DISTANCE = "distance"
    STEPS = "steps"
    HOLE = "hole"
    NONE = "none"


def age_on(date_of_birth: Optional[date], as_of: date) -> Optional[int]:
    """Whole years between a birth date and ``as_of``."""
    if date_of_birth is None:
        return None
    age = as_of.year - date_of_birth.year
    if (as_of.month, as_of.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


@dataclass
class League:
    """A league owned by its host."""
    league_id: str
    name: str
    created_by: str  # host user_id
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    rest_days: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "league_id": self.league_id,
            "name": self.name,
            "created_by": self.created_by,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "rest_days": self.rest_days,
        }


@dataclass
class LeagueMember:
    """
    A user's membership and role context within one league.

    Roles decide which submission transitions the member may perform.
    """
    league_member_id: str
    league_id: str
    user_id: str
    team_id: Optional[str] = None
    roles: FrozenSet[LeagueRole] = field(default_factory=lambda: frozenset({LeagueRole.PLAYER}))
    date_of_birth: Optional[date] = None

    def __post_init__(self):
        self.roles = frozenset(LeagueRole(r) for r in self.roles)
        if isinstance(self.date_of_birth, str):
            self.date_of_birth = date.fromisoformat(self.date_of_birth)

    def has_role(self, role: LeagueRole) -> bool:
        return role in self.roles

    @property
    def is_host(self) -> bool:
        return LeagueRole.HOST in self.roles

    @property
    def is_governor(self) -> bool:
        return LeagueRole.GOVERNOR in self.roles

    @property
    def is_captain(self) -> bool:
        return LeagueRole.CAPTAIN in self.roles

    @property
    def can_override(self) -> bool:
        """Hosts and governors may correct already-validated submissions."""
        return self.is_host or self.is_governor

    def age(self, as_of: Optional[date] = None) -> Optional[int]:
        return age_on(self.date_of_birth, as_of or date.today())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "league_member_id": self.league_member_id,
            "league_id": self.league_id,
            "user_id": self.user_id,
            "team_id": self.team_id,
            "roles": sorted(r.value for r in self.roles),
            "date_of_birth": self.date_of_birth.isoformat() if self.date_of_birth else None,
        }


@dataclass
class AgeGroupOverride:
    """
    Threshold override for members whose age falls in ``[age_min, age_max)``.

    A missing bound leaves that side of the age range open.
    """
    age_min: Optional[int] = None
    age_max: Optional[int] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None

    def contains(self, age: int) -> bool:
        if self.age_min is not None and age < self.age_min:
            return False
        if self.age_max is not None and age >= self.age_max:
            return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "age_min": self.age_min,
            "age_max": self.age_max,
            "min_value": self.min_value,
            "max_value": self.max_value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AgeGroupOverride":
        return cls(
            age_min=data.get("age_min"),
            age_max=data.get("age_max"),
            min_value=data.get("min_value"),
            max_value=data.get("max_value"),
        )


@dataclass
class ActivityConfig:
    """Per-league configuration of one enabled activity."""
    activity_id: str
    league_id: str
    frequency: Optional[int] = None
    frequency_type: FrequencyType = FrequencyType.WEEKLY
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    age_group_overrides: Dict[str, AgeGroupOverride] = field(default_factory=dict)
    measurement_type: Optional[MeasurementType] = None

    def __post_init__(self):
        if isinstance(self.frequency_type, str):
            self.frequency_type = FrequencyType(self.frequency_type)
        if isinstance(self.measurement_type, str):
            self.measurement_type = MeasurementType(self.measurement_type)
        self.age_group_overrides = {
            key: AgeGroupOverride.from_dict(value) if isinstance(value, dict) else value
            for key, value in (self.age_group_overrides or {}).items()
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "activity_id": self.activity_id,
            "league_id": self.league_id,
            "frequency": self.frequency,
            "frequency_type": self.frequency_type.value,
            "min_value": self.min_value,
            "max_value": self.max_value,
            "age_group_overrides": {
                key: override.to_dict() for key, override in self.age_group_overrides.items()
            },
            "measurement_type": self.measurement_type.value if self.measurement_type else None,
        }
