"""Submission data models for workout and rest-day entries."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
import uuid


class SubmissionType(str, Enum):
    """Kinds of daily entries a member can submit."""
    WORKOUT = "workout"
    REST = "rest"


class SubmissionStatus(str, Enum):
    """Validation status of a submission.

    ``REJECTED`` is the legacy aggregate value still present in older rows;
    it is normalized to ``REJECTED_RESUBMIT`` when records are loaded.
    """
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    REJECTED_RESUBMIT = "rejected_resubmit"
    REJECTED_PERMANENT = "rejected_permanent"

    @classmethod
    def normalize(cls, value: "str | SubmissionStatus") -> "SubmissionStatus":
        """Parse a stored status, mapping the legacy ``rejected`` value."""
        status = cls(value)
        if status is cls.REJECTED:
            return cls.REJECTED_RESUBMIT
        return status

    @property
    def is_rejected(self) -> bool:
        return self in (
            SubmissionStatus.REJECTED,
            SubmissionStatus.REJECTED_RESUBMIT,
            SubmissionStatus.REJECTED_PERMANENT,
        )

    @property
    def is_terminal(self) -> bool:
        return self is not SubmissionStatus.PENDING


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


@dataclass
class Submission:
    """
    One workout or rest-day record for a league member on a date.

    Exactly one metric group is meaningful for a given workout_type
    (duration/distance for run and cycling, steps for steps, holes for golf).
    Records are never deleted; a resubmission points at the rejected entry
    it supersedes through ``reupload_of``.
    """
    id: str
    league_member_id: str
    date: str  # YYYY-MM-DD
    type: SubmissionType
    workout_type: Optional[str] = None
    duration: Optional[float] = None  # minutes
    distance: Optional[float] = None  # km
    steps: Optional[float] = None
    holes: Optional[float] = None
    rr_value: Optional[float] = None
    status: SubmissionStatus = SubmissionStatus.PENDING
    proof_url: Optional[str] = None
    notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    awarded_points: Optional[float] = None
    is_exemption_request: bool = False
    reupload_of: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    created_by: Optional[str] = None
    modified_at: Optional[datetime] = None
    modified_by: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.type, str):
            self.type = SubmissionType(self.type)
        if isinstance(self.status, str):
            self.status = SubmissionStatus.normalize(self.status)

    @classmethod
    def create(
        cls,
        league_member_id: str,
        date: str,
        type: SubmissionType,
        **kwargs: Any,
    ) -> "Submission":
        """Create a new submission with a generated ID."""
        return cls(
            id=str(uuid.uuid4()),
            league_member_id=league_member_id,
            date=date,
            type=type,
            **kwargs,
        )

    @property
    def points(self) -> float:
        """Points credited for this entry: awarded override, else RR."""
        if self.awarded_points is not None:
            return self.awarded_points
        return self.rr_value or 0.0

    def with_status(
        self,
        status: SubmissionStatus,
        modified_by: Optional[str],
        rejection_reason: Optional[str] = None,
        awarded_points: Optional[float] = None,
    ) -> "Submission":
        """Return a copy carrying a new status and audit fields."""
        return replace(
            self,
            status=status,
            rejection_reason=rejection_reason,
            awarded_points=awarded_points if awarded_points is not None else self.awarded_points,
            modified_by=modified_by,
            modified_at=datetime.utcnow(),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the submission record shape used by the API."""
        return {
            "id": self.id,
            "league_member_id": self.league_member_id,
            "date": self.date,
            "type": self.type.value,
            "workout_type": self.workout_type,
            "duration": self.duration,
            "distance": self.distance,
            "steps": self.steps,
            "holes": self.holes,
            "rr_value": self.rr_value,
            "status": self.status.value,
            "proof_url": self.proof_url,
            "notes": self.notes,
            "rejection_reason": self.rejection_reason,
            "awarded_points": self.awarded_points,
            "is_exemption_request": self.is_exemption_request,
            "reupload_of": self.reupload_of,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "modified_at": self.modified_at.isoformat() if self.modified_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Submission":
        """Create from a record dictionary."""
        created_at = data.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        modified_at = data.get("modified_at")
        if isinstance(modified_at, str) and modified_at:
            modified_at = datetime.fromisoformat(modified_at)
        return cls(
            id=data["id"],
            league_member_id=data["league_member_id"],
            date=data["date"],
            type=SubmissionType(data["type"]),
            workout_type=data.get("workout_type"),
            duration=_optional_float(data.get("duration")),
            distance=_optional_float(data.get("distance")),
            steps=_optional_float(data.get("steps")),
            holes=_optional_float(data.get("holes")),
            rr_value=_optional_float(data.get("rr_value")),
            status=SubmissionStatus.normalize(data.get("status", "pending")),
            proof_url=data.get("proof_url"),
            notes=data.get("notes"),
            rejection_reason=data.get("rejection_reason"),
            awarded_points=_optional_float(data.get("awarded_points")),
            is_exemption_request=bool(data.get("is_exemption_request", False)),
            reupload_of=data.get("reupload_of"),
            created_at=created_at or datetime.utcnow(),
            created_by=data.get("created_by"),
            modified_at=modified_at or None,
            modified_by=data.get("modified_by"),
        )
