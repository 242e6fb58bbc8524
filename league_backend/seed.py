"""
Demo league: four teams, twelve fixtures one day apart.
Only an empty database is seeded.
"""
from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta

from league_backend.persistence.repositories import MatchRepository, TeamRepository
from league_backend.ranking import as_utc, utc_now

DEMO_TEAMS = ("Dunav", "Ludogorets", "CSKA", "Levski")

# (home, away, home_score, away_score); fixture i kicks off i days after start
DEMO_FIXTURES: tuple[tuple[str, str, int, int], ...] = (
    ("Dunav", "Ludogorets", 1, 1),
    ("Dunav", "CSKA", 2, 1),
    ("Levski", "Dunav", 3, 0),
    ("Ludogorets", "CSKA", 3, 2),
    ("Ludogorets", "Levski", 1, 1),
    ("Dunav", "Ludogorets", 2, 0),
    ("CSKA", "Levski", 1, 1),
    ("CSKA", "Dunav", 1, 2),
    ("Ludogorets", "CSKA", 2, 3),
    ("Levski", "Dunav", 3, 0),
    ("Levski", "Ludogorets", 1, 1),
    ("CSKA", "Levski", 2, 1),
)

MATCH_DURATION = timedelta(hours=2)


def seed_demo_league(
    conn: sqlite3.Connection,
    start: datetime | None = None,
    match_repo: MatchRepository | None = None,
) -> bool:
    """
    Create the demo teams and fixtures. Fixtures already in the past when
    created count toward rank straight away. Returns False if teams or
    matches already exist.
    """
    has_data = conn.execute(
        "SELECT EXISTS (SELECT 1 FROM teams) OR EXISTS (SELECT 1 FROM matches)"
    ).fetchone()[0]
    if has_data:
        return False
    team_repo = TeamRepository()
    match_repo = match_repo or MatchRepository(team_repo)
    ids = {name: team_repo.create(conn, name).id for name in DEMO_TEAMS}
    kickoff = as_utc(start) if start is not None else utc_now()
    for day, (home, away, home_score, away_score) in enumerate(DEMO_FIXTURES):
        start_time = kickoff + timedelta(days=day)
        match_repo.create(
            conn,
            home_team_id=ids[home],
            away_team_id=ids[away],
            home_score=home_score,
            away_score=away_score,
            start_time=start_time,
            end_time=start_time + MATCH_DURATION,
        )
    return True
