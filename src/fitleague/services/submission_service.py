"""
Submission service.

Ties scoring, thresholds, frequency caps and the status state machine to
the repositories: previewing RR, submitting and resubmitting entries,
validating them, manual entries by league staff, auto-approval of stale
entries and the queue listings.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..config import get_settings
from ..db.repositories import (
    LeagueRepository,
    SubmissionRepository,
    get_league_repository,
    get_submission_repository,
)
from ..exceptions import (
    DuplicateSubmissionError,
    LeagueNotFoundError,
    MembershipNotFoundError,
    NotFoundError,
    PermissionDeniedError,
    SelfValidationError,
    StateConflictError,
    SubmissionNotFoundError,
    SubmissionValidationError,
)
from ..metrics.run_rate import QUALIFYING_RR, RunRatePreview, compute_rr_for, preview_rr
from ..metrics.thresholds import ThresholdResult, evaluate, metric_for
from ..models.leagues import ActivityConfig, League, LeagueMember, MeasurementType
from ..models.submissions import Submission, SubmissionStatus, SubmissionType
from .frequency_guard import FrequencyCheck, FrequencyGuard, get_frequency_guard
from .submission_workflow import (
    SubmissionStateMachine,
    TransitionResult,
    ValidationRequest,
    auto_approve_cutoff,
    ensure_can_reupload,
    get_state_machine,
)
from .validation_queue import (
    RestDayUsage,
    SubmissionStats,
    ValidationQueueAggregator,
    current_submissions,
    filter_submissions,
)


logger = logging.getLogger(__name__)

FREQUENCY_REJECTION_REASON = "Frequency limit reached for this activity"


# =============================================================================
# Request models
# =============================================================================


def check_entry_date(v: Optional[str]) -> Optional[str]:
    """Validate date format."""
    if v is None:
        return None
    try:
        datetime.strptime(v, "%Y-%m-%d")
    except ValueError:
        raise ValueError("Date must be in YYYY-MM-DD format")
    return v


class EntryMetrics(BaseModel):
    """Raw metrics of a prospective or submitted entry."""
    type: SubmissionType = SubmissionType.WORKOUT
    workout_type: Optional[str] = Field(None, max_length=50)
    duration: Optional[float] = Field(None, ge=0, le=1440, description="Duration in minutes")
    distance: Optional[float] = Field(None, ge=0, le=1000, description="Distance in km")
    steps: Optional[float] = Field(None, ge=0, le=200000)
    holes: Optional[float] = Field(None, ge=0, le=72)

    @field_validator("workout_type")
    @classmethod
    def normalize_workout_type(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip().lower()
        return v or None


class PreviewRequest(EntryMetrics):
    """RR preview, optionally in the context of a league for age and activity rules."""
    league_id: Optional[str] = None
    date: Optional[str] = Field(None, description="Entry date in YYYY-MM-DD format; ages are taken on this day")

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: Optional[str]) -> Optional[str]:
        return check_entry_date(v)


class SubmissionCreate(EntryMetrics):
    """Request model for a member's own submission."""
    date: str = Field(..., description="Date in YYYY-MM-DD format")
    proof_url: Optional[str] = Field(None, max_length=2000)
    notes: Optional[str] = Field(None, max_length=1000)
    is_exemption_request: bool = False
    reupload_of: Optional[str] = None
    tz_offset_minutes: int = Field(0, ge=-840, le=840, description="Browser timezone offset (UTC - local)")

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        return check_entry_date(v)

    @model_validator(mode="after")
    def check_workout_type(self) -> "SubmissionCreate":
        if self.type is SubmissionType.WORKOUT and not self.workout_type:
            raise ValueError("workout_type is required for workout submissions")
        return self


class ManualEntryCreate(SubmissionCreate):
    """Request model for an entry recorded by a host or governor for a member."""
    league_member_id: str


# =============================================================================
# Results
# =============================================================================


@dataclass
class SubmitResult:
    """A stored submission with the checks applied on the way in."""
    submission: Submission
    threshold: Optional[ThresholdResult] = None
    frequency: Optional[FrequencyCheck] = None

    @property
    def below_minimum(self) -> bool:
        return self.threshold is not None and not self.threshold.qualifies

    def to_dict(self) -> Dict[str, Any]:
        return {
            "submission": self.submission.to_dict(),
            "below_minimum": self.below_minimum,
            "threshold": self.threshold.to_dict() if self.threshold else None,
            "frequency": self.frequency.to_dict() if self.frequency else None,
        }


@dataclass
class SubmissionListing:
    submissions: List[Dict[str, Any]] = field(default_factory=list)
    stats: SubmissionStats = field(default_factory=SubmissionStats)

    def to_dict(self) -> Dict[str, Any]:
        return {"submissions": self.submissions, "stats": self.stats.to_dict()}


def _infer_measurement(workout_type: Optional[str], entry: Any) -> MeasurementType:
    """Measurement an activity's thresholds use when none is configured."""
    if workout_type == "steps":
        return MeasurementType.STEPS
    if workout_type == "golf":
        return MeasurementType.HOLE
    if entry.duration is None and entry.distance is not None:
        return MeasurementType.DISTANCE
    return MeasurementType.DURATION


def _has_thresholds(config: ActivityConfig) -> bool:
    return (
        config.min_value is not None
        or config.max_value is not None
        or bool(config.age_group_overrides)
    )


class SubmissionService:
    """
    Service for creating, validating and listing league submissions.

    Repositories and collaborators are injectable so tests can point the
    service at a temporary database.
    """

    def __init__(
        self,
        submission_repo: Optional[SubmissionRepository] = None,
        league_repo: Optional[LeagueRepository] = None,
        state_machine: Optional[SubmissionStateMachine] = None,
        frequency_guard: Optional[FrequencyGuard] = None,
        auto_approve_hours: Optional[int] = None,
    ):
        self._submissions = submission_repo or get_submission_repository()
        self._leagues = league_repo or get_league_repository()
        self._state_machine = state_machine or get_state_machine()
        self._frequency_guard = frequency_guard or get_frequency_guard()
        self._auto_approve_hours = auto_approve_hours or get_settings().auto_approve_hours

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def _get_league(self, league_id: str) -> League:
        league = self._leagues.get_league(league_id)
        if league is None:
            raise LeagueNotFoundError(league_id)
        return league

    def _get_membership(self, league_id: str, user_id: str) -> LeagueMember:
        self._get_league(league_id)
        member = self._leagues.get_member_by_user(league_id, user_id)
        if member is None:
            raise MembershipNotFoundError(league_id, user_id)
        return member

    def _get_submission(self, submission_id: str) -> Submission:
        submission = self._submissions.get(submission_id)
        if submission is None:
            raise SubmissionNotFoundError(submission_id)
        return submission

    # -------------------------------------------------------------------------
    # Scoring
    # -------------------------------------------------------------------------

    def preview(self, request: PreviewRequest, user_id: Optional[str] = None) -> RunRatePreview:
        """Score an entry without saving it."""
        age = None
        flat_credit = False
        if request.league_id and user_id:
            member = self._get_membership(request.league_id, user_id)
            age = member.age(date.fromisoformat(request.date) if request.date else None)
            config = self._activity_config(request.league_id, request.workout_type)
            flat_credit = config is not None and config.measurement_type is MeasurementType.NONE
        return preview_rr(request, age=age, flat_credit=flat_credit)

    def _activity_config(self, league_id: str, workout_type: Optional[str]) -> Optional[ActivityConfig]:
        if not workout_type:
            return None
        return self._leagues.get_activity(league_id, workout_type)

    def _score(
        self,
        entry: SubmissionCreate,
        member: LeagueMember,
        config: Optional[ActivityConfig],
    ) -> tuple:
        """Compute RR and the threshold outcome for an entry."""
        age = member.age(date.fromisoformat(entry.date))
        if entry.type is SubmissionType.WORKOUT and config is not None \
                and config.measurement_type is MeasurementType.NONE:
            rr_value = 1.0
        else:
            rr_value = compute_rr_for(entry, age=age)

        threshold = None
        if entry.type is SubmissionType.WORKOUT and config is not None and _has_thresholds(config):
            measurement = config.measurement_type or _infer_measurement(entry.workout_type, entry)
            threshold = evaluate(config, age, metric_for(entry, measurement))
            if not threshold.qualifies:
                logger.info(
                    f"Entry for {member.league_member_id} on {entry.date} is outside the "
                    f"{threshold.tier} thresholds for {entry.workout_type}"
                )
                rr_value = 0.0
        return rr_value, threshold

    # -------------------------------------------------------------------------
    # Submitting
    # -------------------------------------------------------------------------

    def _check_slot(self, member: LeagueMember, entry: SubmissionCreate) -> None:
        """Enforce one current submission per member, date and type."""
        current = self._submissions.find_current(member.league_member_id, entry.date, entry.type)

        if entry.reupload_of:
            original = self._get_submission(entry.reupload_of)
            if (
                original.league_member_id != member.league_member_id
                or original.date != entry.date
                or original.type is not entry.type
            ):
                raise SubmissionValidationError(
                    "A resubmission must be for the same member, date and type as the rejected entry",
                    field="reupload_of",
                )
            ensure_can_reupload(
                original,
                already_replaced=self._submissions.has_reupload(original.id),
                tz_offset_minutes=entry.tz_offset_minutes,
            )
            if current is not None and current.id != original.id:
                raise DuplicateSubmissionError(entry.date, entry.type.value, current.id)
            return

        if current is not None:
            raise DuplicateSubmissionError(entry.date, entry.type.value, current.id)

    def _check_rest_allowance(self, league: League, member: LeagueMember, entry: SubmissionCreate) -> None:
        if entry.type is not SubmissionType.REST or entry.is_exemption_request:
            return
        usage = RestDayUsage.from_submissions(
            self._submissions.list_by_member(member.league_member_id, SubmissionType.REST),
            total_allowed=league.rest_days,
        )
        if usage.is_at_limit:
            raise SubmissionValidationError(
                "Rest day limit reached; submit the rest day as an exemption request",
                field="is_exemption_request",
                details=usage.to_dict(),
            )

    def submit(self, league_id: str, user_id: str, entry: SubmissionCreate) -> SubmitResult:
        """
        Create a member's submission.

        Entries outside the activity thresholds are stored with RR 0 for
        reviewers to judge. Entries over the frequency cap are stored as
        permanently rejected so the attempt stays on record.
        """
        league = self._get_league(league_id)
        member = self._get_membership(league_id, user_id)

        self._check_slot(member, entry)
        self._check_rest_allowance(league, member, entry)

        config = self._activity_config(league_id, entry.workout_type) \
            if entry.type is SubmissionType.WORKOUT else None
        rr_value, threshold = self._score(entry, member, config)

        if entry.type is SubmissionType.WORKOUT and rr_value < QUALIFYING_RR and threshold is None:
            raise SubmissionValidationError(
                f"Workout does not reach the minimum run rate of {QUALIFYING_RR}",
                field="rr_value",
                details={"rr_value": round(rr_value, 4)},
            )

        frequency = None
        status = SubmissionStatus.PENDING
        rejection_reason = None
        if config is not None and config.frequency is not None:
            frequency = self._frequency_guard.check_entry(
                self._submissions.list_by_member(member.league_member_id, SubmissionType.WORKOUT),
                activity_id=config.activity_id,
                day=date.fromisoformat(entry.date),
                frequency_cap=config.frequency,
                frequency_type=config.frequency_type,
                exclude_id=entry.reupload_of,
            )
            if not frequency.allowed:
                status = SubmissionStatus.REJECTED_PERMANENT
                rejection_reason = (
                    f"{FREQUENCY_REJECTION_REASON} "
                    f"({config.frequency} per {'week' if config.frequency_type.value == 'weekly' else 'month'})"
                )

        submission = Submission.create(
            league_member_id=member.league_member_id,
            date=entry.date,
            type=entry.type,
            workout_type=entry.workout_type if entry.type is SubmissionType.WORKOUT else None,
            duration=entry.duration,
            distance=entry.distance,
            steps=entry.steps,
            holes=entry.holes,
            rr_value=rr_value,
            status=status,
            proof_url=entry.proof_url,
            notes=entry.notes,
            rejection_reason=rejection_reason,
            is_exemption_request=entry.is_exemption_request,
            reupload_of=entry.reupload_of,
            created_by=user_id,
        )
        self._submissions.create(submission)
        logger.info(
            f"Created {submission.type.value} submission {submission.id} for member "
            f"{member.league_member_id} on {submission.date} ({submission.status.value}, rr={rr_value:.2f})"
        )
        return SubmitResult(submission=submission, threshold=threshold, frequency=frequency)

    def manual_entry(self, league_id: str, actor_user_id: str, entry: ManualEntryCreate) -> SubmitResult:
        """Record an approved entry on behalf of a member."""
        self._get_league(league_id)
        actor = self._get_membership(league_id, actor_user_id)
        if not actor.can_override:
            logger.warning(f"User {actor_user_id} attempted a manual entry without host or governor role")
            raise PermissionDeniedError("Only hosts and governors can record manual entries")

        member = self._leagues.get_member(entry.league_member_id)
        if member is None or member.league_id != league_id:
            raise NotFoundError("League member", entry.league_member_id)
        if member.user_id == actor.user_id:
            raise SelfValidationError(entry.league_member_id)

        self._check_slot(member, entry)
        config = self._activity_config(league_id, entry.workout_type) \
            if entry.type is SubmissionType.WORKOUT else None
        rr_value, threshold = self._score(entry, member, config)

        now = datetime.utcnow()
        submission = Submission.create(
            league_member_id=member.league_member_id,
            date=entry.date,
            type=entry.type,
            workout_type=entry.workout_type if entry.type is SubmissionType.WORKOUT else None,
            duration=entry.duration,
            distance=entry.distance,
            steps=entry.steps,
            holes=entry.holes,
            rr_value=rr_value,
            status=SubmissionStatus.APPROVED,
            proof_url=entry.proof_url,
            notes=entry.notes,
            is_exemption_request=entry.is_exemption_request,
            reupload_of=entry.reupload_of,
            created_at=now,
            created_by=actor.user_id,
            modified_at=now,
            modified_by=actor.user_id,
        )
        self._submissions.create(submission)
        logger.info(
            f"Manual entry {submission.id} for member {member.league_member_id} on "
            f"{submission.date} by {actor.user_id}"
        )
        return SubmitResult(submission=submission, threshold=threshold)

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self, submission_id: str, actor_user_id: str, request: ValidationRequest) -> TransitionResult:
        """
        Apply a reviewer's decision to a submission.

        Raises:
            SubmissionNotFoundError: If the submission does not exist
            PermissionDeniedError: If the reviewer may not make the change
            StateConflictError: If another reviewer changed the status first
        """
        submission = self._get_submission(submission_id)
        owner = self._leagues.get_member(submission.league_member_id)
        if owner is None:
            raise NotFoundError("League member", submission.league_member_id)

        actor = self._leagues.get_member_by_user(owner.league_id, actor_user_id)
        if actor is None:
            logger.warning(f"User {actor_user_id} is not a member of league {owner.league_id}")
            raise PermissionDeniedError(
                "You do not have permission to validate this submission",
                details={"submission_id": submission_id},
            )

        result = self._state_machine.transition(submission, owner, actor, request)
        if not result.changed:
            return result

        if not self._submissions.update_status(result.submission, expected_status=result.previous_status):
            latest = self._submissions.get(submission_id)
            raise StateConflictError(
                submission_id,
                expected_status=result.previous_status.value,
                actual_status=latest.status.value if latest else None,
            )
        return result

    def auto_approve_stale(self, hours: Optional[int] = None, now: Optional[datetime] = None) -> List[str]:
        """
        Approve pending submissions older than ``hours``.

        Entries a reviewer changed in the meantime are skipped.

        Returns:
            IDs of the approved submissions
        """
        cutoff = auto_approve_cutoff(now, hours or self._auto_approve_hours)
        approved = []
        for submission in self._submissions.list_pending_before(cutoff):
            updated = submission.with_status(SubmissionStatus.APPROVED, modified_by=None)
            if self._submissions.update_status(updated, expected_status=SubmissionStatus.PENDING):
                approved.append(submission.id)
            else:
                logger.debug(f"Skipped auto-approval of {submission.id}: status changed")
        logger.info(f"Auto-approved {len(approved)} submissions pending since before {cutoff.isoformat()}")
        return approved

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    def list_league_submissions(
        self,
        league_id: str,
        actor_user_id: str,
        status: Optional[str] = None,
        team_id: Optional[str] = None,
        league_member_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        submission_type: Optional[str] = None,
    ) -> SubmissionListing:
        """
        Validation queue for a league.

        Hosts and governors see every team; captains only their own.
        """
        actor = self._get_membership(league_id, actor_user_id)
        if not actor.can_override:
            if not actor.is_captain or actor.team_id is None:
                raise PermissionDeniedError("Only hosts, governors and captains can view the validation queue")
            team_id = actor.team_id

        members = {m.league_member_id: m for m in self._leagues.list_members(league_id)}
        scoped = current_submissions(self._submissions.list_by_league(league_id))
        if team_id:
            scoped = [s for s in scoped if members.get(s.league_member_id) and
                      members[s.league_member_id].team_id == team_id]

        queue = ValidationQueueAggregator().build(
            scoped,
            members=members,
            status=status,
            league_member_id=league_member_id,
            start_date=start_date,
            end_date=end_date,
            submission_type=submission_type,
        )
        return SubmissionListing(
            submissions=[self._with_member(s, members.get(s.league_member_id)) for s in queue["submissions"]],
            stats=queue["stats"],
        )

    def list_my_submissions(
        self,
        league_id: str,
        user_id: str,
        status: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> SubmissionListing:
        """The caller's own submissions, including superseded ones, with stats."""
        member = self._get_membership(league_id, user_id)
        own = self._submissions.list_by_member(member.league_member_id)
        filtered = filter_submissions(own, status=status, start_date=start_date, end_date=end_date)
        return SubmissionListing(
            submissions=[s.to_dict() for s in filtered],
            stats=SubmissionStats.from_submissions(own),
        )

    def rest_day_usage(self, league_id: str, user_id: str) -> RestDayUsage:
        league = self._get_league(league_id)
        member = self._get_membership(league_id, user_id)
        return RestDayUsage.from_submissions(
            self._submissions.list_by_member(member.league_member_id, SubmissionType.REST),
            total_allowed=league.rest_days,
        )

    @staticmethod
    def _with_member(submission: Submission, member: Optional[LeagueMember]) -> Dict[str, Any]:
        data = submission.to_dict()
        data["user_id"] = member.user_id if member else None
        data["team_id"] = member.team_id if member else None
        return data


_submission_service: Optional[SubmissionService] = None


def get_submission_service() -> SubmissionService:
    """Get the submission service singleton."""
    global _submission_service
    if _submission_service is None:
        _submission_service = SubmissionService()
    return _submission_service
