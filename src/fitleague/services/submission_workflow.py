"""
Submission status state machine.

Lifecycle of a single submission:

    pending --> approved
            --> rejected_resubmit   (member may submit a replacement)
            --> rejected_permanent  (no replacement for that date and type)

Captains validate pending entries of their own team. Hosts and governors can
validate any entry in their league and may also correct entries that were
already approved or rejected. Nobody validates their own submission.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
from typing import Optional

from pydantic import BaseModel, Field

from ..exceptions import (
    PermissionDeniedError,
    ReuploadNotAllowedError,
    SelfValidationError,
    SubmissionValidationError,
)
from ..models.leagues import LeagueMember
from ..models.submissions import Submission, SubmissionStatus


logger = logging.getLogger(__name__)


VALIDATION_TARGETS = (
    SubmissionStatus.APPROVED,
    SubmissionStatus.REJECTED_RESUBMIT,
    SubmissionStatus.REJECTED_PERMANENT,
)

# Targets only hosts and governors may set, regardless of current status
OVERRIDE_ONLY_TARGETS = (SubmissionStatus.REJECTED_PERMANENT,)

DEFAULT_AUTO_APPROVE_HOURS = 48


class ValidationRequest(BaseModel):
    """Request to move a submission to a new status."""

    status: SubmissionStatus
    awarded_points: Optional[float] = Field(None, ge=0, description="Points that replace the computed RR")
    rejection_reason: Optional[str] = Field(None, max_length=1000)


@dataclass
class TransitionResult:
    """Outcome of applying a validation request."""
    submission: Submission
    previous_status: SubmissionStatus
    changed: bool


def _is_team_captain(actor: LeagueMember, owner: LeagueMember) -> bool:
    return actor.is_captain and actor.team_id is not None and actor.team_id == owner.team_id


def authorize(
    actor: LeagueMember,
    owner: LeagueMember,
    submission: Submission,
    target: SubmissionStatus,
) -> None:
    """
    Check that ``actor`` may move ``submission`` to ``target``.

    Raises:
        SelfValidationError: If the actor owns the submission
        PermissionDeniedError: If the actor's roles do not allow the transition
    """
    if actor.user_id == owner.user_id:
        raise SelfValidationError(submission.id)

    if actor.league_id != owner.league_id:
        raise PermissionDeniedError(
            "You do not have permission to validate this submission",
            details={"submission_id": submission.id},
        )

    if not (actor.can_override or _is_team_captain(actor, owner)):
        raise PermissionDeniedError(
            "You do not have permission to validate this submission",
            details={"submission_id": submission.id},
        )

    if target == submission.status:
        return

    if submission.status is not SubmissionStatus.PENDING and not actor.can_override:
        raise PermissionDeniedError(
            "Only hosts and governors can change a submission that was already validated",
            details={"submission_id": submission.id, "status": submission.status.value},
        )

    if target in OVERRIDE_ONLY_TARGETS and not actor.can_override:
        raise PermissionDeniedError(
            "Only hosts and governors can permanently reject a submission",
            details={"submission_id": submission.id},
        )


def validate_request(request: ValidationRequest) -> Optional[str]:
    """
    Check a validation request's payload and return the cleaned rejection reason.

    Raises:
        SubmissionValidationError: For an unsupported target status, a
            rejection without a reason, or points on a rejection.
    """
    if request.status not in VALIDATION_TARGETS:
        raise SubmissionValidationError(
            "status must be approved, rejected_resubmit or rejected_permanent",
            field="status",
        )

    reason = (request.rejection_reason or "").strip() or None
    if request.status.is_rejected:
        if reason is None:
            raise SubmissionValidationError(
                "rejection_reason is required when rejecting a submission",
                field="rejection_reason",
            )
        if request.awarded_points is not None:
            raise SubmissionValidationError(
                "awarded_points can only be set when approving",
                field="awarded_points",
            )
        return reason
    return None


class SubmissionStateMachine:
    """Applies role-gated status transitions to submissions."""

    def __init__(self):
        self._logger = logging.getLogger(__name__)

    def transition(
        self,
        submission: Submission,
        owner: LeagueMember,
        actor: LeagueMember,
        request: ValidationRequest,
    ) -> TransitionResult:
        """
        Move a submission to the requested status.

        Requesting the status the submission already has is a no-op and
        returns the submission unchanged.

        Args:
            submission: The submission being validated
            owner: League membership of the submitter
            actor: League membership of the reviewer
            request: Target status, optional points and rejection reason

        Returns:
            TransitionResult with the updated submission
        """
        reason = validate_request(request)
        try:
            authorize(actor, owner, submission, request.status)
        except PermissionDeniedError:
            self._logger.warning(
                f"Denied {submission.status.value} -> {request.status.value} on submission "
                f"{submission.id} for user {actor.user_id}"
            )
            raise

        previous = submission.status
        if request.status == previous:
            return TransitionResult(submission=submission, previous_status=previous, changed=False)

        updated = submission.with_status(
            request.status,
            modified_by=actor.user_id,
            rejection_reason=reason,
            awarded_points=request.awarded_points,
        )
        self._logger.info(
            f"Submission {submission.id}: {previous.value} -> {updated.status.value} by {actor.user_id}"
        )
        return TransitionResult(submission=updated, previous_status=previous, changed=True)


# =============================================================================
# Reupload window
# =============================================================================


def reupload_cutoff(rejected_at: datetime, tz_offset_minutes: int = 0) -> datetime:
    """
    Last moment (UTC) a rejected submission may be replaced.

    Members can reupload until 23:59:59.999 of the day after the rejection,
    in their local time. ``tz_offset_minutes`` follows the browser
    convention: minutes to add to local time to get UTC.
    """
    offset = timedelta(minutes=tz_offset_minutes)
    rejected_local = rejected_at - offset
    next_day = rejected_local.date() + timedelta(days=1)
    cutoff_local = datetime(next_day.year, next_day.month, next_day.day, 23, 59, 59, 999000)
    return cutoff_local + offset


def is_reupload_window_open(
    rejected_at: Optional[datetime],
    tz_offset_minutes: int = 0,
    now: Optional[datetime] = None,
) -> bool:
    if rejected_at is None:
        return False
    now = now or datetime.utcnow()
    return now <= reupload_cutoff(rejected_at, tz_offset_minutes)


def ensure_can_reupload(
    original: Submission,
    already_replaced: bool,
    tz_offset_minutes: int = 0,
    now: Optional[datetime] = None,
) -> None:
    """
    Check that ``original`` may be superseded by a new submission.

    Raises:
        ReuploadNotAllowedError: If the entry was not rejected for
            resubmission, was already replaced, or the window has closed.
    """
    if original.status is SubmissionStatus.REJECTED_PERMANENT:
        raise ReuploadNotAllowedError(
            "This submission was permanently rejected and cannot be resubmitted",
            submission_id=original.id,
        )
    if original.status is not SubmissionStatus.REJECTED_RESUBMIT:
        raise ReuploadNotAllowedError(
            "Only submissions rejected for resubmission can be reuploaded",
            submission_id=original.id,
        )
    if already_replaced:
        raise ReuploadNotAllowedError(
            "This submission has already been resubmitted",
            submission_id=original.id,
        )
    rejected_at = original.modified_at or original.created_at
    if not is_reupload_window_open(rejected_at, tz_offset_minutes, now):
        raise ReuploadNotAllowedError(
            "The reupload window for this submission has closed",
            submission_id=original.id,
            details={"cutoff": reupload_cutoff(rejected_at, tz_offset_minutes).isoformat()},
        )


# =============================================================================
# Auto-approval
# =============================================================================


def auto_approve_cutoff(now: Optional[datetime] = None, hours: int = DEFAULT_AUTO_APPROVE_HOURS) -> datetime:
    """Pending submissions created before this moment are auto-approved."""
    return (now or datetime.utcnow()) - timedelta(hours=hours)


_state_machine: Optional[SubmissionStateMachine] = None


def get_state_machine() -> SubmissionStateMachine:
    """Get the state machine singleton."""
    global _state_machine
    if _state_machine is None:
        _state_machine = SubmissionStateMachine()
    return _state_machine
