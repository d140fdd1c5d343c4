"""
Validation queue aggregation.

Builds the counts shown above a league's validation queue and a member's
own history, keeps them consistent when a single submission changes status,
and filters submission lists the way the queue views do.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Sequence

from ..models.leagues import LeagueMember
from ..models.submissions import Submission, SubmissionStatus, SubmissionType


@dataclass
class SubmissionStats:
    """Counts by status bucket. ``rejected`` covers every rejection kind."""
    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0

    @classmethod
    def from_submissions(cls, submissions: Iterable[Submission]) -> "SubmissionStats":
        stats = cls()
        for submission in submissions:
            stats.total += 1
            stats._bump(submission.status, 1)
        return stats

    def _bump(self, status: SubmissionStatus, delta: int) -> None:
        if status is SubmissionStatus.PENDING:
            self.pending += delta
        elif status is SubmissionStatus.APPROVED:
            self.approved += delta
        elif status.is_rejected:
            self.rejected += delta

    def apply_transition(self, old: SubmissionStatus, new: SubmissionStatus) -> "SubmissionStats":
        """Move one submission from the ``old`` bucket to the ``new`` one."""
        old = SubmissionStatus.normalize(old)
        new = SubmissionStatus.normalize(new)
        if old != new:
            self._bump(old, -1)
            self._bump(new, 1)
        return self

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "pending": self.pending,
            "approved": self.approved,
            "rejected": self.rejected,
        }


def _matches_status(submission: Submission, status: Optional[str]) -> bool:
    if not status or status == "all":
        return True
    if status == SubmissionStatus.REJECTED.value:
        return submission.status.is_rejected
    return submission.status is SubmissionStatus.normalize(status)


def filter_submissions(
    submissions: Iterable[Submission],
    members: Optional[dict] = None,
    status: Optional[str] = None,
    team_id: Optional[str] = None,
    league_member_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    submission_type: Optional[str] = None,
) -> List[Submission]:
    """
    Filter a submission list for a queue view.

    Args:
        submissions: Submissions to filter
        members: Mapping of league_member_id to LeagueMember, needed for the
            team filter
        status: A status value, "rejected" for every rejection kind, or "all"
        team_id: Only submissions from members of this team
        league_member_id: Only submissions from this member
        start_date: Inclusive lower bound on the entry date
        end_date: Inclusive upper bound on the entry date
        submission_type: "workout" or "rest"

    Returns:
        Matching submissions, newest entry date first
    """
    members = members or {}
    wanted_type = SubmissionType(submission_type) if submission_type else None
    result = []
    for submission in submissions:
        if not _matches_status(submission, status):
            continue
        if league_member_id and submission.league_member_id != league_member_id:
            continue
        if team_id:
            member = members.get(submission.league_member_id)
            if member is None or member.team_id != team_id:
                continue
        entry_day = date.fromisoformat(submission.date)
        if start_date and entry_day < start_date:
            continue
        if end_date and entry_day > end_date:
            continue
        if wanted_type and submission.type is not wanted_type:
            continue
        result.append(submission)

    result.sort(key=lambda s: (s.date, s.created_at), reverse=True)
    return result


def current_submissions(submissions: Sequence[Submission]) -> List[Submission]:
    """Drop entries that a later resubmission supersedes."""
    replaced = {s.reupload_of for s in submissions if s.reupload_of}
    return [s for s in submissions if s.id not in replaced]


@dataclass
class RestDayUsage:
    """A member's rest-day allowance in one league."""
    total_allowed: int
    used: int
    pending: int
    remaining: int
    is_at_limit: bool
    exemptions_pending: int

    @classmethod
    def from_submissions(
        cls,
        submissions: Iterable[Submission],
        total_allowed: int,
    ) -> "RestDayUsage":
        """
        Count rest days against the league allowance.

        Only approved rest days use up the allowance; pending ones are
        reported separately.
        """
        used = pending = exemptions_pending = 0
        for submission in submissions:
            if submission.type is not SubmissionType.REST:
                continue
            if submission.status is SubmissionStatus.APPROVED:
                used += 1
            elif submission.status is SubmissionStatus.PENDING:
                pending += 1
                if submission.is_exemption_request:
                    exemptions_pending += 1
        return cls(
            total_allowed=total_allowed,
            used=used,
            pending=pending,
            remaining=max(0, total_allowed - used),
            is_at_limit=used >= total_allowed,
            exemptions_pending=exemptions_pending,
        )

    def to_dict(self) -> dict:
        return {
            "total_allowed": self.total_allowed,
            "used": self.used,
            "pending": self.pending,
            "remaining": self.remaining,
            "is_at_limit": self.is_at_limit,
            "exemptions_pending": self.exemptions_pending,
        }


class ValidationQueueAggregator:
    """Builds queue listings with their stats."""

    def build(
        self,
        submissions: Sequence[Submission],
        members: Optional[dict] = None,
        **filters,
    ) -> dict:
        """
        Filter submissions and attach stats.

        Stats are computed over the unfiltered list so the status tabs
        keep their counts when one tab is selected.
        """
        stats = SubmissionStats.from_submissions(submissions)
        filtered = filter_submissions(submissions, members=members, **filters)
        return {
            "submissions": filtered,
            "stats": stats,
        }


def member_index(members: Iterable[LeagueMember]) -> dict:
    """Index members by league_member_id."""
    return {m.league_member_id: m for m in members}
