"""
Tests for the demo league seeder.
"""
from __future__ import annotations

import sys
from datetime import timedelta
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from league_backend.persistence.db import get_connection, init_db, set_db_path
from league_backend.persistence.repositories import MatchRepository, TeamRepository
from league_backend.ranking import utc_now
from league_backend.seed import DEMO_FIXTURES, DEMO_TEAMS, seed_demo_league


@pytest.fixture
def db_conn(tmp_path):
    db_path = tmp_path / "seed_test.db"
    set_db_path(db_path)
    init_db(db_path=db_path)
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


def test_upcoming_fixtures_award_nothing(db_conn):
    assert seed_demo_league(db_conn)
    teams = TeamRepository().list_all(db_conn)
    assert sorted(t.name for t in teams) == sorted(DEMO_TEAMS)
    assert all(t.rank == 0 for t in teams)
    matches = MatchRepository().list_all(db_conn)
    assert len(matches) == len(DEMO_FIXTURES)
    assert not any(m.rank_applied for m in matches)


def test_seeding_only_empty_database(db_conn):
    assert seed_demo_league(db_conn)
    assert not seed_demo_league(db_conn)
    assert len(TeamRepository().list_all(db_conn)) == len(DEMO_TEAMS)


def test_settle_after_fixtures_finish(db_conn):
    start = utc_now() - timedelta(days=5, hours=1)
    assert seed_demo_league(db_conn, start=start)
    repo = MatchRepository(clock=lambda: start + timedelta(days=40))
    # Fixtures 0-4 had finished at seeding time; the other seven finish later
    assert len(repo.settle(db_conn)) == len(DEMO_FIXTURES) - 5
    assert all(m.rank_applied for m in repo.list_all(db_conn))


def test_init_db_can_seed(tmp_path):
    db_path = tmp_path / "init_seed.db"
    init_db(db_path=db_path, seed_demo=True)
    conn = get_connection(db_path)
    try:
        assert len(TeamRepository().list_all(conn)) == len(DEMO_TEAMS)
    finally:
        conn.close()
