"""Scheduled job routes, called by the platform scheduler."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..deps import get_submission_service
from ..middleware.auth import require_cron_secret
from ...services.submission_service import SubmissionService


router = APIRouter()


@router.post("/cron/auto-approve", dependencies=[Depends(require_cron_secret)])
async def auto_approve_submissions(
    hours: Optional[int] = Query(None, ge=1, le=24 * 30),
    service: SubmissionService = Depends(get_submission_service),
):
    """Approve submissions that have been pending longer than the configured window."""
    approved = service.auto_approve_stale(hours=hours)
    return {"approved": len(approved), "submission_ids": approved}
