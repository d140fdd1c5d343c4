"""Tests for SubmissionService against a temporary SQLite database."""

import threading
from datetime import date, datetime

import pytest

from fitleague.db.repositories import SubmissionRepository
from fitleague.exceptions import (
    DuplicateSubmissionError,
    LeagueNotFoundError,
    MembershipNotFoundError,
    NotFoundError,
    PermissionDeniedError,
    ReuploadNotAllowedError,
    SelfValidationError,
    StateConflictError,
    SubmissionNotFoundError,
    SubmissionValidationError,
)
from fitleague.models.leagues import LeagueMember, LeagueRole
from fitleague.models.submissions import Submission, SubmissionStatus, SubmissionType
from fitleague.services.submission_service import (
    FREQUENCY_REJECTION_REASON,
    ManualEntryCreate,
    PreviewRequest,
    SubmissionCreate,
    SubmissionService,
)
from fitleague.services.submission_workflow import ValidationRequest


LEAGUE = "lg-1"

APPROVE = ValidationRequest(status="approved")
REJECT = ValidationRequest(status="rejected_resubmit", rejection_reason="blurry proof")


def run_entry(day="2024-03-12", duration=90, **kwargs):
    return SubmissionCreate(date=day, type="workout", workout_type="run", duration=duration, **kwargs)


class TestEndToEnd:
    def test_submit_reject_resubmit(self, submission_service, submission_repo):
        """A rejected run can be replaced; the rejected record stays as it was."""
        created = submission_service.submit(LEAGUE, "p-a1", run_entry()).submission
        assert created.rr_value == 2.0
        assert created.status is SubmissionStatus.PENDING

        result = submission_service.validate(created.id, "host-1", REJECT)
        assert result.submission.status is SubmissionStatus.REJECTED_RESUBMIT
        stored = submission_repo.get(created.id)
        assert stored.status is SubmissionStatus.REJECTED_RESUBMIT
        assert stored.rejection_reason == "blurry proof"

        replacement = submission_service.submit(
            LEAGUE, "p-a1", run_entry(reupload_of=created.id)
        ).submission
        assert replacement.id != created.id
        assert replacement.reupload_of == created.id
        assert replacement.status is SubmissionStatus.PENDING

        original = submission_repo.get(created.id)
        assert original.status is SubmissionStatus.REJECTED_RESUBMIT
        assert original.rejection_reason == "blurry proof"
        assert original.modified_at == stored.modified_at


class TestSubmit:
    def test_duplicate_submission_rejected(self, submission_service):
        submission_service.submit(LEAGUE, "p-a1", run_entry())
        with pytest.raises(DuplicateSubmissionError):
            submission_service.submit(LEAGUE, "p-a1", run_entry(duration=60))

    def test_rest_and_workout_on_same_day(self, submission_service):
        submission_service.submit(LEAGUE, "p-a1", run_entry())
        rest = submission_service.submit(LEAGUE, "p-a1", SubmissionCreate(date="2024-03-12", type="rest"))
        assert rest.submission.rr_value == 1.0

    def test_rejected_entry_needs_explicit_reupload(self, submission_service):
        created = submission_service.submit(LEAGUE, "p-a1", run_entry()).submission
        submission_service.validate(created.id, "cap-a", REJECT)
        with pytest.raises(DuplicateSubmissionError):
            submission_service.submit(LEAGUE, "p-a1", run_entry())

    def test_second_reupload_rejected(self, submission_service):
        created = submission_service.submit(LEAGUE, "p-a1", run_entry()).submission
        submission_service.validate(created.id, "cap-a", REJECT)
        submission_service.submit(LEAGUE, "p-a1", run_entry(reupload_of=created.id))
        with pytest.raises(ReuploadNotAllowedError):
            submission_service.submit(LEAGUE, "p-a1", run_entry(reupload_of=created.id))

    def test_permanent_rejection_blocks_reupload(self, submission_service):
        created = submission_service.submit(LEAGUE, "p-a1", run_entry()).submission
        submission_service.validate(
            created.id, "gov-1", ValidationRequest(status="rejected_permanent", rejection_reason="fake")
        )
        with pytest.raises(ReuploadNotAllowedError):
            submission_service.submit(LEAGUE, "p-a1", run_entry(reupload_of=created.id))

    def test_reupload_must_match_date(self, submission_service):
        created = submission_service.submit(LEAGUE, "p-a1", run_entry()).submission
        submission_service.validate(created.id, "cap-a", REJECT)
        with pytest.raises(SubmissionValidationError):
            submission_service.submit(LEAGUE, "p-a1", run_entry(day="2024-03-13", reupload_of=created.id))

    def test_reupload_of_unknown_submission(self, submission_service):
        with pytest.raises(SubmissionNotFoundError):
            submission_service.submit(LEAGUE, "p-a1", run_entry(reupload_of="missing"))

    def test_low_run_rate_rejected(self, submission_service):
        with pytest.raises(SubmissionValidationError) as exc_info:
            submission_service.submit(LEAGUE, "p-a1", run_entry(duration=20))
        assert exc_info.value.details["field"] == "rr_value"

    def test_unmeasured_activity_is_flat_credit(self, submission_service):
        entry = SubmissionCreate(date="2024-03-12", type="workout", workout_type="yoga", duration=5)
        assert submission_service.submit(LEAGUE, "p-a1", entry).submission.rr_value == 1.0

    def test_age_adjusted_baseline(self, submission_service):
        """A 30 minute run earns full credit for a member over 75."""
        result = submission_service.submit(LEAGUE, "p-old", run_entry(duration=30))
        assert result.submission.rr_value == pytest.approx(1.0)

    def test_unknown_league(self, submission_service):
        with pytest.raises(LeagueNotFoundError):
            submission_service.submit("nope", "p-a1", run_entry())

    def test_not_a_member(self, submission_service):
        with pytest.raises(MembershipNotFoundError):
            submission_service.submit(LEAGUE, "stranger", run_entry())


class LockstepSubmissionRepository(SubmissionRepository):
    """Holds callers after the slot lookup until both requests have made it."""

    def __init__(self, db_path, parties=2):
        super().__init__(db_path)
        self.barrier = threading.Barrier(parties, timeout=5)

    def find_current(self, *args, **kwargs):
        current = super().find_current(*args, **kwargs)
        self.barrier.wait()
        return current


class TestConcurrentSubmits:
    def submit_twice(self, service, entry):
        results, errors = [], []

        def worker():
            try:
                results.append(service.submit(LEAGUE, "p-a1", entry))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)
        return results, errors

    def test_double_submit_stores_one_entry(self, seeded_league, league_repo, temp_db_path):
        repo = LockstepSubmissionRepository(temp_db_path)
        service = SubmissionService(submission_repo=repo, league_repo=league_repo)

        results, errors = self.submit_twice(service, run_entry())

        assert len(results) == 1
        assert [type(e) for e in errors] == [DuplicateSubmissionError]
        assert errors[0].details["existing_id"] == results[0].submission.id
        assert len(repo.list_by_member("m-a1")) == 1

    def test_double_reupload_stores_one_replacement(self, seeded_league, league_repo, temp_db_path):
        service = SubmissionService(submission_repo=SubmissionRepository(temp_db_path), league_repo=league_repo)
        created = service.submit(LEAGUE, "p-a1", run_entry()).submission
        service.validate(created.id, "cap-a", REJECT)

        repo = LockstepSubmissionRepository(temp_db_path)
        service = SubmissionService(submission_repo=repo, league_repo=league_repo)
        results, errors = self.submit_twice(service, run_entry(reupload_of=created.id))

        assert len(results) == 1
        assert [type(e) for e in errors] == [ReuploadNotAllowedError]
        assert len(repo.list_by_member("m-a1")) == 2
        assert repo.find_current("m-a1", "2024-03-12", SubmissionType.WORKOUT) is not None


class TestThresholds:
    def swim(self, duration):
        return SubmissionCreate(date="2024-03-12", type="workout", workout_type="swimming", duration=duration)

    def test_below_minimum_scores_zero(self, submission_service):
        result = submission_service.submit(LEAGUE, "p-a1", self.swim(20))
        assert result.below_minimum is True
        assert result.submission.rr_value == 0.0
        assert result.submission.status is SubmissionStatus.PENDING
        assert result.to_dict()["threshold"]["tier"] == "base"

    def test_age_override_applies(self, submission_service):
        result = submission_service.submit(LEAGUE, "p-old", self.swim(20))
        assert result.below_minimum is False
        assert result.threshold.tier == "senior"
        assert result.submission.rr_value > 0

    def test_within_thresholds(self, submission_service):
        result = submission_service.submit(LEAGUE, "p-a1", self.swim(60))
        assert result.below_minimum is False
        assert result.submission.rr_value == pytest.approx(60 / 45)


class TestFrequencyCap:
    def steps(self, day):
        return SubmissionCreate(date=day, type="workout", workout_type="steps", steps=12000)

    def test_entry_over_weekly_cap_auto_rejected(self, submission_service):
        # 2024-03-10 is a Sunday; cap is 2 per week
        submission_service.submit(LEAGUE, "p-a1", self.steps("2024-03-10"))
        submission_service.submit(LEAGUE, "p-a1", self.steps("2024-03-11"))
        result = submission_service.submit(LEAGUE, "p-a1", self.steps("2024-03-12"))

        assert result.frequency.allowed is False
        assert result.submission.status is SubmissionStatus.REJECTED_PERMANENT
        assert result.submission.rejection_reason.startswith(FREQUENCY_REJECTION_REASON)

    def test_new_week_resets_count(self, submission_service):
        submission_service.submit(LEAGUE, "p-a1", self.steps("2024-03-10"))
        submission_service.submit(LEAGUE, "p-a1", self.steps("2024-03-11"))
        result = submission_service.submit(LEAGUE, "p-a1", self.steps("2024-03-17"))
        assert result.submission.status is SubmissionStatus.PENDING

    def test_rejected_entries_do_not_count(self, submission_service):
        first = submission_service.submit(LEAGUE, "p-a1", self.steps("2024-03-10")).submission
        submission_service.validate(first.id, "cap-a", REJECT)
        submission_service.submit(LEAGUE, "p-a1", self.steps("2024-03-11"))
        result = submission_service.submit(LEAGUE, "p-a1", self.steps("2024-03-12"))
        assert result.submission.status is SubmissionStatus.PENDING


class TestRestDays:
    def rest(self, day, **kwargs):
        return SubmissionCreate(date=day, type="rest", **kwargs)

    def approve_rest(self, service, day):
        entry = ManualEntryCreate(date=day, type="rest", league_member_id="m-a1")
        service.manual_entry(LEAGUE, "host-1", entry)

    def test_limit_requires_exemption(self, submission_service):
        self.approve_rest(submission_service, "2024-03-01")
        self.approve_rest(submission_service, "2024-03-02")
        with pytest.raises(SubmissionValidationError):
            submission_service.submit(LEAGUE, "p-a1", self.rest("2024-03-03"))

        result = submission_service.submit(LEAGUE, "p-a1", self.rest("2024-03-03", is_exemption_request=True))
        assert result.submission.is_exemption_request is True

        usage = submission_service.rest_day_usage(LEAGUE, "p-a1")
        assert usage.used == 2
        assert usage.is_at_limit is True
        assert usage.exemptions_pending == 1


class TestValidate:
    def test_captain_approves_teammate(self, submission_service):
        created = submission_service.submit(LEAGUE, "p-a1", run_entry()).submission
        result = submission_service.validate(created.id, "cap-a", APPROVE)
        assert result.changed is True
        assert result.submission.status is SubmissionStatus.APPROVED

    def test_captain_cannot_validate_other_team(self, submission_service):
        created = submission_service.submit(LEAGUE, "p-b1", run_entry()).submission
        with pytest.raises(PermissionDeniedError):
            submission_service.validate(created.id, "cap-a", APPROVE)

    def test_self_validation(self, submission_service):
        created = submission_service.submit(LEAGUE, "cap-a", run_entry()).submission
        with pytest.raises(SelfValidationError):
            submission_service.validate(created.id, "cap-a", APPROVE)

    def test_outsider_denied(self, submission_service):
        created = submission_service.submit(LEAGUE, "p-a1", run_entry()).submission
        with pytest.raises(PermissionDeniedError):
            submission_service.validate(created.id, "stranger", APPROVE)

    def test_unknown_submission(self, submission_service):
        with pytest.raises(SubmissionNotFoundError):
            submission_service.validate("missing", "host-1", APPROVE)

    def test_repeat_request_is_noop(self, submission_service, submission_repo):
        created = submission_service.submit(LEAGUE, "p-a1", run_entry()).submission
        submission_service.validate(created.id, "cap-a", APPROVE)
        first = submission_repo.get(created.id)
        result = submission_service.validate(created.id, "host-1", APPROVE)
        assert result.changed is False
        assert submission_repo.get(created.id).modified_by == first.modified_by

    def test_concurrent_reviewers_conflict(self, submission_service, submission_repo, monkeypatch):
        """The second reviewer acting on a stale copy gets a conflict."""
        created = submission_service.submit(LEAGUE, "p-a1", run_entry()).submission
        stale = submission_repo.get(created.id)
        submission_service.validate(created.id, "cap-a", REJECT)

        real_get = submission_repo.get
        responses = iter([stale])
        monkeypatch.setattr(submission_repo, "get", lambda sid: next(responses, None) or real_get(sid))

        with pytest.raises(StateConflictError) as exc_info:
            submission_service.validate(created.id, "host-1", APPROVE)
        assert exc_info.value.status_code == 409
        assert exc_info.value.details["actual_status"] == "rejected_resubmit"
        assert real_get(created.id).status is SubmissionStatus.REJECTED_RESUBMIT


class TestManualEntry:
    def test_host_records_approved_entry(self, submission_service):
        entry = ManualEntryCreate(date="2024-03-12", type="workout", workout_type="run",
                                  duration=45, league_member_id="m-a1")
        result = submission_service.manual_entry(LEAGUE, "host-1", entry)
        assert result.submission.status is SubmissionStatus.APPROVED
        assert result.submission.rr_value == pytest.approx(1.0)
        assert result.submission.created_by == "host-1"

    def test_captain_cannot_record(self, submission_service):
        entry = ManualEntryCreate(date="2024-03-12", type="rest", league_member_id="m-a1")
        with pytest.raises(PermissionDeniedError):
            submission_service.manual_entry(LEAGUE, "cap-a", entry)

    def test_not_for_self(self, submission_service):
        entry = ManualEntryCreate(date="2024-03-12", type="rest", league_member_id="m-gov")
        with pytest.raises(SelfValidationError):
            submission_service.manual_entry(LEAGUE, "gov-1", entry)

    def test_unknown_member(self, submission_service):
        entry = ManualEntryCreate(date="2024-03-12", type="rest", league_member_id="m-zzz")
        with pytest.raises(NotFoundError):
            submission_service.manual_entry(LEAGUE, "host-1", entry)


class TestAutoApprove:
    def test_stale_pending_entries_approved(self, submission_service, submission_repo):
        old = Submission.create("m-a1", "2024-01-01", SubmissionType.WORKOUT, workout_type="run",
                                duration=60, rr_value=1.33, created_at=datetime(2024, 1, 1, 8, 0))
        recent = Submission.create("m-a2", "2024-01-03", SubmissionType.WORKOUT, workout_type="run",
                                   duration=60, rr_value=1.33, created_at=datetime(2024, 1, 3, 8, 0))
        submission_repo.create(old)
        submission_repo.create(recent)

        approved = submission_service.auto_approve_stale(now=datetime(2024, 1, 4, 9, 0))

        assert approved == [old.id]
        stored = submission_repo.get(old.id)
        assert stored.status is SubmissionStatus.APPROVED
        assert stored.modified_by is None
        assert submission_repo.get(recent.id).status is SubmissionStatus.PENDING


class TestListings:
    def seed(self, service):
        a1 = service.submit(LEAGUE, "p-a1", run_entry(day="2024-03-10")).submission
        service.submit(LEAGUE, "p-a2", run_entry(day="2024-03-10"))
        service.submit(LEAGUE, "p-b1", run_entry(day="2024-03-10"))
        service.validate(a1.id, "cap-a", REJECT)
        service.submit(LEAGUE, "p-a1", run_entry(day="2024-03-10", reupload_of=a1.id))
        return a1

    def test_host_sees_all_current_entries(self, submission_service):
        self.seed(submission_service)
        listing = submission_service.list_league_submissions(LEAGUE, "host-1")
        assert listing.stats.to_dict() == {"total": 3, "pending": 3, "approved": 0, "rejected": 0}

    def test_captain_limited_to_team(self, submission_service):
        self.seed(submission_service)
        listing = submission_service.list_league_submissions(LEAGUE, "cap-a", team_id="team-b")
        assert {s["team_id"] for s in listing.submissions} == {"team-a"}
        assert listing.stats.total == 2

    def test_player_cannot_view_queue(self, submission_service):
        with pytest.raises(PermissionDeniedError):
            submission_service.list_league_submissions(LEAGUE, "p-a1")

    def test_my_submissions_include_history(self, submission_service):
        self.seed(submission_service)
        listing = submission_service.list_my_submissions(LEAGUE, "p-a1")
        assert listing.stats.to_dict() == {"total": 2, "pending": 1, "approved": 0, "rejected": 1}
        rejected = submission_service.list_my_submissions(LEAGUE, "p-a1", status="rejected")
        assert len(rejected.submissions) == 1


class TestPreview:
    def test_preview_without_league(self, submission_service):
        preview = submission_service.preview(PreviewRequest(type="workout", workout_type="run", duration=30))
        assert preview.can_submit is False

    def test_preview_uses_member_age(self, submission_service):
        request = PreviewRequest(type="workout", workout_type="steps", steps=4500, league_id=LEAGUE)
        assert submission_service.preview(request, user_id="p-old").can_submit is True
        assert submission_service.preview(request, user_id="p-a1").can_submit is False

    def test_preview_flat_credit_activity(self, submission_service):
        request = PreviewRequest(type="workout", workout_type="yoga", duration=1, league_id=LEAGUE)
        assert submission_service.preview(request, user_id="p-a1").rr_value == 1.0

    def test_preview_takes_age_on_entry_date(self, submission_service, league_repo):
        """A backdated entry is scored with the age the member had that day."""
        league_repo.save_member(LeagueMember(
            league_member_id="m-turn",
            league_id=LEAGUE,
            user_id="p-turn",
            team_id="team-a",
            roles=frozenset({LeagueRole.PLAYER}),
            date_of_birth=date(1958, 6, 15),
        ))
        before = PreviewRequest(workout_type="run", duration=30, league_id=LEAGUE, date="2024-06-14")
        after = before.model_copy(update={"date": "2024-06-16"})

        assert submission_service.preview(before, user_id="p-turn").can_submit is False
        assert submission_service.preview(after, user_id="p-turn").can_submit is True
        with pytest.raises(SubmissionValidationError):
            submission_service.submit(LEAGUE, "p-turn", run_entry(day="2024-06-14", duration=30))
        created = submission_service.submit(LEAGUE, "p-turn", run_entry(day="2024-06-16", duration=30))
        assert created.submission.rr_value == pytest.approx(1.0)

    def test_preview_rejects_bad_date(self):
        with pytest.raises(ValueError):
            PreviewRequest(workout_type="run", duration=30, date="14/06/2024")
