"""Entry scoring routes.

Lets the submit form show the run rate an entry would earn before it is
sent.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request

from ..deps import get_submission_service
from ..middleware.auth import CurrentUser, get_optional_user
from ..middleware.rate_limit import RATE_LIMIT_STANDARD, limiter
from ...services.submission_service import PreviewRequest, SubmissionService


router = APIRouter()


@router.post("/entries/preview-rr")
@limiter.limit(RATE_LIMIT_STANDARD)
async def preview_run_rate(
    request: Request,
    body: PreviewRequest,
    current_user: Optional[CurrentUser] = Depends(get_optional_user),
    service: SubmissionService = Depends(get_submission_service),
):
    """
    Compute the RR for a prospective entry.

    When ``league_id`` is given and the caller is signed in, the member's
    age baseline and the league's activity settings are applied.
    """
    user_id = current_user.user_id if current_user else None
    return service.preview(body, user_id=user_id).to_dict()
