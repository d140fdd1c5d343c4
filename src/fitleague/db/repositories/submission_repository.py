"""SQLite-backed repository for workout and rest-day submissions.

Submissions are never deleted. Status changes go through
``update_status`` with the status the caller last saw, so two reviewers
acting on the same entry cannot both win.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ...config import get_settings
from ...exceptions import DatabaseError, DuplicateSubmissionError, ReuploadNotAllowedError
from ...models.submissions import Submission, SubmissionStatus, SubmissionType
from ..schema import SCHEMA


logger = logging.getLogger(__name__)


_COLUMNS = (
    "id, league_member_id, date, type, workout_type, duration, distance, steps, holes, "
    "rr_value, status, proof_url, notes, rejection_reason, awarded_points, "
    "is_exemption_request, reupload_of, created_at, created_by, modified_at, modified_by"
)


class SubmissionRepository:
    """
    SQLite-backed repository for league submissions.

    Provides creation, lookup and listing of submissions plus the
    conditional status update used by validation.
    """

    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize the submission repository.

        Args:
            db_path: Path to SQLite database file. If None, uses the
                configured database path.
        """
        self.db_path = Path(db_path) if db_path else Path(get_settings().database_path)
        self._ensure_table_exists()

    @contextmanager
    def _get_connection(self):
        """Get database connection with context manager."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Submission query failed: {e}")
            raise DatabaseError(operation="submissions") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _ensure_table_exists(self):
        """Create the league and submission tables if missing."""
        with self._get_connection() as conn:
            conn.executescript(SCHEMA)

    def _row_to_submission(self, row: sqlite3.Row) -> Submission:
        """Convert a database row to a Submission."""
        data = dict(row)
        data["is_exemption_request"] = bool(data.get("is_exemption_request"))
        return Submission.from_dict(data)

    def create(self, submission: Submission) -> Submission:
        """
        Insert a new submission.

        Raises:
            DuplicateSubmissionError: If the member already has an entry
                for the date and type
            ReuploadNotAllowedError: If the rejected entry was already
                resubmitted
        """
        with self._get_connection() as conn:
            try:
                self._insert(conn, submission)
            except sqlite3.IntegrityError as e:
                logger.warning(f"Submission {submission.id} lost a slot race: {e}")
                raise self._slot_conflict(conn, submission) from e
        return submission

    def _slot_conflict(self, conn: sqlite3.Connection, submission: Submission) -> Exception:
        """Map a unique index violation to the domain conflict it stands for."""
        if submission.reupload_of:
            return ReuploadNotAllowedError(
                "This submission has already been resubmitted",
                submission_id=submission.reupload_of,
            )
        row = conn.execute(
            "SELECT id FROM submissions "
            "WHERE league_member_id = ? AND date = ? AND type = ? AND reupload_of IS NULL",
            (submission.league_member_id, submission.date, submission.type.value),
        ).fetchone()
        return DuplicateSubmissionError(
            submission.date, submission.type.value, row["id"] if row else submission.id
        )

    def _insert(self, conn: sqlite3.Connection, submission: Submission) -> None:
        conn.execute(
            f"INSERT INTO submissions ({_COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                submission.id,
                submission.league_member_id,
                submission.date,
                submission.type.value,
                submission.workout_type,
                submission.duration,
                submission.distance,
                submission.steps,
                submission.holes,
                submission.rr_value,
                submission.status.value,
                submission.proof_url,
                submission.notes,
                submission.rejection_reason,
                submission.awarded_points,
                1 if submission.is_exemption_request else 0,
                submission.reupload_of,
                submission.created_at.isoformat(),
                submission.created_by,
                submission.modified_at.isoformat() if submission.modified_at else None,
                submission.modified_by,
            ),
        )

    def get(self, submission_id: str) -> Optional[Submission]:
        with self._get_connection() as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM submissions WHERE id = ?",
                (submission_id,),
            ).fetchone()
            return self._row_to_submission(row) if row else None

    def list_by_member(
        self,
        league_member_id: str,
        submission_type: Optional[SubmissionType] = None,
    ) -> List[Submission]:
        """List a member's submissions, newest entry date first."""
        query = f"SELECT {_COLUMNS} FROM submissions WHERE league_member_id = ?"
        params: list = [league_member_id]
        if submission_type is not None:
            query += " AND type = ?"
            params.append(SubmissionType(submission_type).value)
        query += " ORDER BY date DESC, created_at DESC"

        with self._get_connection() as conn:
            rows = conn.execute(query, params).fetchall()
            return [self._row_to_submission(row) for row in rows]

    def list_by_league(
        self,
        league_id: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> List[Submission]:
        """List all submissions from members of a league."""
        query = (
            f"SELECT {', '.join('s.' + c.strip() for c in _COLUMNS.split(','))} "
            "FROM submissions s "
            "JOIN league_members m ON m.league_member_id = s.league_member_id "
            "WHERE m.league_id = ?"
        )
        params: list = [league_id]
        if start_date:
            query += " AND s.date >= ?"
            params.append(start_date)
        if end_date:
            query += " AND s.date <= ?"
            params.append(end_date)
        query += " ORDER BY s.date DESC, s.created_at DESC"

        with self._get_connection() as conn:
            rows = conn.execute(query, params).fetchall()
            return [self._row_to_submission(row) for row in rows]

    def find_current(
        self,
        league_member_id: str,
        date: str,
        submission_type: SubmissionType,
    ) -> Optional[Submission]:
        """
        Return the member's current submission for a date and type.

        The current submission is the one no later resubmission supersedes.
        """
        with self._get_connection() as conn:
            row = conn.execute(
                f"""
                SELECT {_COLUMNS} FROM submissions s
                WHERE s.league_member_id = ? AND s.date = ? AND s.type = ?
                  AND NOT EXISTS (
                      SELECT 1 FROM submissions r WHERE r.reupload_of = s.id
                  )
                ORDER BY s.created_at DESC
                LIMIT 1
                """,
                (league_member_id, date, SubmissionType(submission_type).value),
            ).fetchone()
            return self._row_to_submission(row) if row else None

    def has_reupload(self, submission_id: str) -> bool:
        """Whether some submission already supersedes ``submission_id``."""
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM submissions WHERE reupload_of = ? LIMIT 1",
                (submission_id,),
            ).fetchone()
            return row is not None

    def update_status(
        self,
        submission: Submission,
        expected_status: SubmissionStatus,
    ) -> bool:
        """
        Persist a status transition if the stored status is still ``expected_status``.

        Rows still carrying the legacy ``rejected`` value match an expected
        ``rejected_resubmit``.

        Returns:
            True if the row was updated, False if its status had changed
        """
        expected = SubmissionStatus.normalize(expected_status)
        if expected is SubmissionStatus.REJECTED_RESUBMIT:
            expected_values = (expected.value, SubmissionStatus.REJECTED.value)
        else:
            expected_values = (expected.value, expected.value)

        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE submissions
                SET status = ?, rejection_reason = ?, awarded_points = ?,
                    modified_at = ?, modified_by = ?
                WHERE id = ? AND status IN (?, ?)
                """,
                (
                    submission.status.value,
                    submission.rejection_reason,
                    submission.awarded_points,
                    (submission.modified_at or datetime.utcnow()).isoformat(),
                    submission.modified_by,
                    submission.id,
                    *expected_values,
                ),
            )
            return cursor.rowcount == 1

    def list_pending_before(self, cutoff: datetime) -> List[Submission]:
        """List pending submissions created before ``cutoff``."""
        with self._get_connection() as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM submissions "
                "WHERE status = ? AND created_at < ? ORDER BY created_at",
                (SubmissionStatus.PENDING.value, cutoff.isoformat()),
            ).fetchall()
            return [self._row_to_submission(row) for row in rows]


# Singleton instance for dependency injection
_submission_repository: Optional[SubmissionRepository] = None


def get_submission_repository() -> SubmissionRepository:
    """Get or create the singleton SubmissionRepository instance."""
    global _submission_repository
    if _submission_repository is None:
        _submission_repository = SubmissionRepository()
    return _submission_repository
