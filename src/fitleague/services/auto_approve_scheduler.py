"""Auto-approval scheduler using APScheduler.

Approves submissions left pending longer than ``auto_approve_hours`` on a
fixed interval. Deployments that drive ``/cron/auto-approve`` from an
external scheduler leave this disabled.
"""

import logging
from datetime import datetime
from typing import List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..config import get_settings
from .submission_service import SubmissionService

logger = logging.getLogger(__name__)

JOB_ID = "auto_approve_pending"


class AutoApproveScheduler:
    """Runs the auto-approval sweep in the background.

    Usage:
        scheduler = AutoApproveScheduler(submission_service)
        scheduler.start()
        # ... app runs ...
        scheduler.stop()
    """

    def __init__(self, submission_service: SubmissionService):
        self.service = submission_service
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._is_running = False
        self._last_run: Optional[datetime] = None
        self._last_approved: List[str] = []

    @property
    def is_running(self) -> bool:
        return self._is_running and self.scheduler is not None

    def start(self) -> None:
        """Start the interval job if auto-approval is enabled."""
        if self._is_running:
            logger.warning("Auto-approve scheduler is already running")
            return

        settings = get_settings()
        if not settings.auto_approve_enabled:
            logger.info("Scheduled auto-approval is disabled in configuration")
            return

        self.scheduler = AsyncIOScheduler()
        self.scheduler.add_job(
            self._run,
            IntervalTrigger(minutes=settings.auto_approve_interval_minutes),
            id=JOB_ID,
            name="Auto-approve stale submissions",
            replace_existing=True,
            max_instances=1,
        )
        self.scheduler.start()
        self._is_running = True
        logger.info(
            f"Auto-approve scheduler started (every {settings.auto_approve_interval_minutes} min, "
            f"pending > {settings.auto_approve_hours}h)"
        )

    def stop(self) -> None:
        if not self._is_running or self.scheduler is None:
            return
        self.scheduler.shutdown(wait=True)
        self._is_running = False
        self.scheduler = None
        logger.info("Auto-approve scheduler stopped")

    async def _run(self) -> None:
        """Scheduled job body; a failed sweep is logged and retried next interval."""
        try:
            self.run_once()
        except Exception as e:
            logger.error(f"Scheduled auto-approval failed: {e}")

    def run_once(self, now: Optional[datetime] = None) -> List[str]:
        """Run one sweep immediately and return the approved IDs."""
        approved = self.service.auto_approve_stale(now=now)
        self._last_run = now or datetime.utcnow()
        self._last_approved = approved
        return approved

    def get_status(self) -> dict:
        settings = get_settings()
        status = {
            "is_running": self.is_running,
            "enabled": settings.auto_approve_enabled,
            "interval_minutes": settings.auto_approve_interval_minutes,
            "auto_approve_hours": settings.auto_approve_hours,
            "next_run_time": None,
            "last_run": self._last_run.isoformat() if self._last_run else None,
            "last_approved": len(self._last_approved),
        }
        if self.is_running:
            job = self.scheduler.get_job(JOB_ID)
            if job and job.next_run_time:
                status["next_run_time"] = job.next_run_time.isoformat()
        return status


_auto_approve_scheduler: Optional[AutoApproveScheduler] = None


def get_auto_approve_scheduler(submission_service: SubmissionService) -> AutoApproveScheduler:
    """Get or create the global auto-approve scheduler."""
    global _auto_approve_scheduler
    if _auto_approve_scheduler is None:
        _auto_approve_scheduler = AutoApproveScheduler(submission_service)
    return _auto_approve_scheduler


def shutdown_auto_approve_scheduler() -> None:
    global _auto_approve_scheduler
    if _auto_approve_scheduler is not None:
        _auto_approve_scheduler.stop()
        _auto_approve_scheduler = None
