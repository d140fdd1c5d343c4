"""SQLite-backed repository for leagues, memberships and activity configs."""

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional

from ...config import get_settings
from ...exceptions import DatabaseError
from ...models.leagues import ActivityConfig, League, LeagueMember, LeagueRole
from ..schema import SCHEMA


logger = logging.getLogger(__name__)


class LeagueRepository:
    """
    SQLite-backed repository for league structure.

    Leagues, their members (with team and roles) and the per-activity
    configuration the scoring rules read.
    """

    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize the league repository.

        Args:
            db_path: Path to SQLite database file. If None, uses the
                configured database path.
        """
        self.db_path = Path(db_path) if db_path else Path(get_settings().database_path)
        self._ensure_tables_exist()

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
            logger.error(f"League query failed: {e}")
            raise DatabaseError(operation="leagues") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _ensure_tables_exist(self):
        with self._get_connection() as conn:
            conn.executescript(SCHEMA)

    # =========================================================================
    # Leagues
    # =========================================================================

    def save_league(self, league: League) -> League:
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO leagues (league_id, name, created_by, start_date, end_date, rest_days)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(league_id) DO UPDATE SET
                    name = excluded.name,
                    created_by = excluded.created_by,
                    start_date = excluded.start_date,
                    end_date = excluded.end_date,
                    rest_days = excluded.rest_days
                """,
                (
                    league.league_id,
                    league.name,
                    league.created_by,
                    league.start_date,
                    league.end_date,
                    league.rest_days,
                ),
            )
        return league

    def get_league(self, league_id: str) -> Optional[League]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM leagues WHERE league_id = ?",
                (league_id,),
            ).fetchone()
            if not row:
                return None
            return League(
                league_id=row["league_id"],
                name=row["name"],
                created_by=row["created_by"],
                start_date=row["start_date"],
                end_date=row["end_date"],
                rest_days=row["rest_days"] if row["rest_days"] is not None else 1,
            )

    # =========================================================================
    # Members
    # =========================================================================

    def _row_to_member(self, row: sqlite3.Row, host_user_id: Optional[str]) -> LeagueMember:
        """Convert a row to a LeagueMember; the league creator always holds the host role."""
        roles = {r.strip() for r in (row["roles"] or "").split(",") if r.strip()}
        if host_user_id and row["user_id"] == host_user_id:
            roles.add(LeagueRole.HOST.value)
        return LeagueMember(
            league_member_id=row["league_member_id"],
            league_id=row["league_id"],
            user_id=row["user_id"],
            team_id=row["team_id"],
            roles=frozenset(roles or {LeagueRole.PLAYER.value}),
            date_of_birth=row["date_of_birth"],
        )

    _MEMBER_SELECT = """
        SELECT m.*, l.created_by AS host_user_id
        FROM league_members m
        LEFT JOIN leagues l ON l.league_id = m.league_id
    """

    def save_member(self, member: LeagueMember) -> LeagueMember:
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO league_members
                (league_member_id, league_id, user_id, team_id, roles, date_of_birth)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(league_member_id) DO UPDATE SET
                    team_id = excluded.team_id,
                    roles = excluded.roles,
                    date_of_birth = excluded.date_of_birth
                """,
                (
                    member.league_member_id,
                    member.league_id,
                    member.user_id,
                    member.team_id,
                    ",".join(sorted(r.value for r in member.roles)),
                    member.date_of_birth.isoformat() if member.date_of_birth else None,
                ),
            )
        return member

    def get_member(self, league_member_id: str) -> Optional[LeagueMember]:
        with self._get_connection() as conn:
            row = conn.execute(
                self._MEMBER_SELECT + " WHERE m.league_member_id = ?",
                (league_member_id,),
            ).fetchone()
            return self._row_to_member(row, row["host_user_id"]) if row else None

    def get_member_by_user(self, league_id: str, user_id: str) -> Optional[LeagueMember]:
        """Get a user's membership in a league."""
        with self._get_connection() as conn:
            row = conn.execute(
                self._MEMBER_SELECT + " WHERE m.league_id = ? AND m.user_id = ?",
                (league_id, user_id),
            ).fetchone()
            return self._row_to_member(row, row["host_user_id"]) if row else None

    def list_members(self, league_id: str) -> List[LeagueMember]:
        with self._get_connection() as conn:
            rows = conn.execute(
                self._MEMBER_SELECT + " WHERE m.league_id = ? ORDER BY m.league_member_id",
                (league_id,),
            ).fetchall()
            return [self._row_to_member(row, row["host_user_id"]) for row in rows]

    # =========================================================================
    # Activity configs
    # =========================================================================

    def _row_to_activity(self, row: sqlite3.Row) -> ActivityConfig:
        overrides = json.loads(row["age_group_overrides"]) if row["age_group_overrides"] else {}
        return ActivityConfig(
            activity_id=row["activity_id"],
            league_id=row["league_id"],
            frequency=row["frequency"],
            frequency_type=row["frequency_type"] or "weekly",
            min_value=row["min_value"],
            max_value=row["max_value"],
            age_group_overrides=overrides,
            measurement_type=row["measurement_type"],
        )

    def save_activity(self, config: ActivityConfig) -> ActivityConfig:
        """Insert or replace an activity's configuration."""
        overrides = {
            key: override.to_dict() for key, override in config.age_group_overrides.items()
        }
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO league_activities
                (league_id, activity_id, frequency, frequency_type, min_value, max_value,
                 age_group_overrides, measurement_type)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(league_id, activity_id) DO UPDATE SET
                    frequency = excluded.frequency,
                    frequency_type = excluded.frequency_type,
                    min_value = excluded.min_value,
                    max_value = excluded.max_value,
                    age_group_overrides = excluded.age_group_overrides,
                    measurement_type = excluded.measurement_type
                """,
                (
                    config.league_id,
                    config.activity_id,
                    config.frequency,
                    config.frequency_type.value,
                    config.min_value,
                    config.max_value,
                    json.dumps(overrides) if overrides else None,
                    config.measurement_type.value if config.measurement_type else None,
                ),
            )
        return config

    def get_activity(self, league_id: str, activity_id: str) -> Optional[ActivityConfig]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM league_activities WHERE league_id = ? AND activity_id = ?",
                (league_id, activity_id),
            ).fetchone()
            return self._row_to_activity(row) if row else None

    def list_activities(self, league_id: str) -> List[ActivityConfig]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM league_activities WHERE league_id = ? ORDER BY activity_id",
                (league_id,),
            ).fetchall()
            return [self._row_to_activity(row) for row in rows]


# Singleton instance for dependency injection
_league_repository: Optional[LeagueRepository] = None


def get_league_repository() -> LeagueRepository:
    """Get or create the singleton LeagueRepository instance."""
    global _league_repository
    if _league_repository is None:
        _league_repository = LeagueRepository()
    return _league_repository
