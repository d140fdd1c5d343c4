"""Submission routes.

Members submit and review their own entries; captains, governors and
hosts work the validation queue. All routes require authentication.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from ..deps import get_submission_service
from ..middleware.auth import CurrentUser, get_current_user
from ..middleware.rate_limit import RATE_LIMIT_STANDARD, RATE_LIMIT_SUBMIT, limiter
from ...services.submission_service import (
    ManualEntryCreate,
    SubmissionCreate,
    SubmissionService,
)
from ...services.submission_workflow import ValidationRequest


router = APIRouter()


@router.post("/leagues/{league_id}/submissions", status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMIT_SUBMIT)
async def create_submission(
    request: Request,
    league_id: str,
    body: SubmissionCreate,
    current_user: CurrentUser = Depends(get_current_user),
    service: SubmissionService = Depends(get_submission_service),
):
    """
    Submit a workout or rest day.

    Set ``reupload_of`` to replace an entry rejected for resubmission.
    """
    result = service.submit(league_id, current_user.user_id, body)
    return result.to_dict()


@router.get("/leagues/{league_id}/submissions")
@limiter.limit(RATE_LIMIT_STANDARD)
async def list_league_submissions(
    request: Request,
    league_id: str,
    status_filter: Optional[str] = Query(None, alias="status"),
    team_id: Optional[str] = None,
    member_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    type: Optional[str] = Query(None, pattern="^(workout|rest)$"),
    current_user: CurrentUser = Depends(get_current_user),
    service: SubmissionService = Depends(get_submission_service),
):
    """Validation queue for the league, with counts per status."""
    listing = service.list_league_submissions(
        league_id,
        current_user.user_id,
        status=status_filter,
        team_id=team_id,
        league_member_id=member_id,
        start_date=start_date,
        end_date=end_date,
        submission_type=type,
    )
    return listing.to_dict()


@router.get("/leagues/{league_id}/my-submissions")
@limiter.limit(RATE_LIMIT_STANDARD)
async def list_my_submissions(
    request: Request,
    league_id: str,
    status_filter: Optional[str] = Query(None, alias="status"),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    current_user: CurrentUser = Depends(get_current_user),
    service: SubmissionService = Depends(get_submission_service),
):
    """The caller's own submissions with counts per status."""
    listing = service.list_my_submissions(
        league_id,
        current_user.user_id,
        status=status_filter,
        start_date=start_date,
        end_date=end_date,
    )
    return listing.to_dict()


@router.post("/submissions/{submission_id}/validate")
@limiter.limit(RATE_LIMIT_SUBMIT)
async def validate_submission(
    request: Request,
    submission_id: str,
    body: ValidationRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: SubmissionService = Depends(get_submission_service),
):
    """Approve or reject a submission."""
    result = service.validate(submission_id, current_user.user_id, body)
    return {
        "submission": result.submission.to_dict(),
        "previous_status": result.previous_status.value,
        "changed": result.changed,
    }


@router.post("/leagues/{league_id}/manual-entry", status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMIT_SUBMIT)
async def create_manual_entry(
    request: Request,
    league_id: str,
    body: ManualEntryCreate,
    current_user: CurrentUser = Depends(get_current_user),
    service: SubmissionService = Depends(get_submission_service),
):
    """Record an approved entry for a member (hosts and governors)."""
    result = service.manual_entry(league_id, current_user.user_id, body)
    return result.to_dict()


@router.get("/leagues/{league_id}/rest-days")
@limiter.limit(RATE_LIMIT_STANDARD)
async def get_rest_day_usage(
    request: Request,
    league_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: SubmissionService = Depends(get_submission_service),
):
    """The caller's rest-day allowance in the league."""
    return service.rest_day_usage(league_id, current_user.user_id).to_dict()
