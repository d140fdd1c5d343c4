"""Database schema for leagues, memberships, activity configs and submissions."""

SCHEMA = """
-- Leagues; created_by is the host's user id
CREATE TABLE IF NOT EXISTS leagues (
    league_id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    created_by TEXT NOT NULL,
    start_date TEXT,
    end_date TEXT,
    rest_days INTEGER DEFAULT 1
);

-- One row per user per league; roles is a comma-separated list
CREATE TABLE IF NOT EXISTS league_members (
    league_member_id TEXT PRIMARY KEY,
    league_id TEXT NOT NULL REFERENCES leagues(league_id),
    user_id TEXT NOT NULL,
    team_id TEXT,
    roles TEXT NOT NULL DEFAULT 'player',
    date_of_birth TEXT,
    UNIQUE(league_id, user_id)
);

-- Activities enabled in a league with their caps and minimums
CREATE TABLE IF NOT EXISTS league_activities (
    league_id TEXT NOT NULL REFERENCES leagues(league_id),
    activity_id TEXT NOT NULL,
    frequency INTEGER,
    frequency_type TEXT NOT NULL DEFAULT 'weekly',
    min_value REAL,
    max_value REAL,
    age_group_overrides TEXT,  -- JSON object keyed by tier name
    measurement_type TEXT,
    PRIMARY KEY (league_id, activity_id)
);

-- Workout and rest-day entries; never deleted
CREATE TABLE IF NOT EXISTS submissions (
    id TEXT PRIMARY KEY,
    league_member_id TEXT NOT NULL REFERENCES league_members(league_member_id),
    date TEXT NOT NULL,
    type TEXT NOT NULL,
    workout_type TEXT,
    duration REAL,
    distance REAL,
    steps REAL,
    holes REAL,
    rr_value REAL,
    status TEXT NOT NULL DEFAULT 'pending',
    proof_url TEXT,
    notes TEXT,
    rejection_reason TEXT,
    awarded_points REAL,
    is_exemption_request INTEGER DEFAULT 0,
    reupload_of TEXT REFERENCES submissions(id),
    created_at TEXT NOT NULL,
    created_by TEXT,
    modified_at TEXT,
    modified_by TEXT
);

CREATE INDEX IF NOT EXISTS idx_members_user ON league_members(user_id);
CREATE INDEX IF NOT EXISTS idx_submissions_member_date ON submissions(league_member_id, date, type);
CREATE INDEX IF NOT EXISTS idx_submissions_status ON submissions(status, created_at);

-- One original entry per member, date and type, and at most one reupload per
-- rejected entry: together they keep a single current submission per slot
CREATE UNIQUE INDEX IF NOT EXISTS uq_submissions_slot
    ON submissions(league_member_id, date, type) WHERE reupload_of IS NULL;
CREATE UNIQUE INDEX IF NOT EXISTS uq_submissions_reupload
    ON submissions(reupload_of) WHERE reupload_of IS NOT NULL;
"""
