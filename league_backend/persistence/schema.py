"""
SQLite schema for league entities.
Migration-friendly: each table created with IF NOT EXISTS.
"""
from __future__ import annotations


def teams_schema() -> str:
    """Name uniqueness is scoped to active teams and checked in the service, so no unique index on name."""
    return """
    CREATE TABLE IF NOT EXISTS teams (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        rank INTEGER NOT NULL DEFAULT 0,
        is_deleted INTEGER NOT NULL DEFAULT 0,
        created_on TEXT NOT NULL,
        modified_on TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS ix_teams_name ON teams(name);
    CREATE INDEX IF NOT EXISTS ix_teams_rank ON teams(rank);
    """


def matches_schema() -> str:
    """rank_applied: 1 while the match's outcome is counted in both teams' rank."""
    return """
    CREATE TABLE IF NOT EXISTS matches (
        id TEXT PRIMARY KEY,
        home_team_id TEXT NOT NULL,
        away_team_id TEXT NOT NULL,
        home_score INTEGER NOT NULL CHECK (home_score >= 0),
        away_score INTEGER NOT NULL CHECK (away_score >= 0),
        start_time TEXT,
        end_time TEXT,
        rank_applied INTEGER NOT NULL DEFAULT 0,
        is_deleted INTEGER NOT NULL DEFAULT 0,
        created_on TEXT NOT NULL,
        modified_on TEXT NOT NULL,
        FOREIGN KEY (home_team_id) REFERENCES teams(id),
        FOREIGN KEY (away_team_id) REFERENCES teams(id)
    );
    CREATE INDEX IF NOT EXISTS ix_matches_home ON matches(home_team_id);
    CREATE INDEX IF NOT EXISTS ix_matches_away ON matches(away_team_id);
    """


def all_schema_sql() -> str:
    """Combine all schema DDL for a single execution. Order: teams, matches."""
    return "\n".join([
        teams_schema(),
        matches_schema(),
    ])
