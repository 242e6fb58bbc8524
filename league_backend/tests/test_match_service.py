"""
Tests for the match service: request mapping, failure outcomes, standings.
"""
from __future__ import annotations

import sys
from datetime import timedelta
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from league_backend.persistence.db import get_connection, init_db, set_db_path
from league_backend.persistence.repositories import TeamRepository
from league_backend.ranking import utc_now
from league_backend.schemas import CreateMatchRequest, UpdateMatchRequest
from league_backend.seed import DEMO_TEAMS, seed_demo_league
from league_backend.services import MatchService, ServiceError


@pytest.fixture
def db_conn(tmp_path):
    db_path = tmp_path / "match_service_test.db"
    set_db_path(db_path)
    init_db(db_path=db_path)
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture
def match_service():
    return MatchService()


@pytest.fixture
def two_teams(db_conn):
    repo = TeamRepository()
    return repo.create(db_conn, "Home FC"), repo.create(db_conn, "Away United")


def _finished(**kw) -> dict:
    start = utc_now() - timedelta(days=1)
    return {"start_time": start, "end_time": start + timedelta(hours=2), **kw}


def test_create_returns_nested_teams(db_conn, match_service, two_teams):
    home, away = two_teams
    req = CreateMatchRequest(home_team_id=home.id, away_team_id=away.id, home_score=3, away_score=1, **_finished())
    result = match_service.create(db_conn, req)
    assert result.ok
    data = result.value
    assert data["home_team"] == {"id": home.id, "name": "Home FC", "rank": 3}
    assert data["away_team"]["rank"] == 0
    assert data["rank_applied"] is True


def test_create_same_team_rejected(db_conn, match_service, two_teams):
    home, _ = two_teams
    req = CreateMatchRequest(home_team_id=home.id, away_team_id=home.id, home_score=1, away_score=0)
    result = match_service.create(db_conn, req)
    assert result.error is ServiceError.INVALID
    assert match_service.list_all(db_conn) == []


def test_create_unknown_team(db_conn, match_service, two_teams):
    home, _ = two_teams
    req = CreateMatchRequest(home_team_id=home.id, away_team_id="nobody", home_score=1, away_score=0)
    result = match_service.create(db_conn, req)
    assert result.error is ServiceError.TEAMS_NOT_FOUND
    assert result.detail == "One or both teams do not exist."


def test_update_and_delete_outcomes(db_conn, match_service, two_teams):
    home, away = two_teams
    created = match_service.create(
        db_conn,
        CreateMatchRequest(home_team_id=home.id, away_team_id=away.id, home_score=0, away_score=0, **_finished()),
    ).value
    upd = UpdateMatchRequest(home_team_id=home.id, away_team_id=away.id, home_score=0, away_score=2, **_finished())
    updated = match_service.update(db_conn, created["id"], upd)
    assert updated.ok
    assert updated.value["away_team"]["rank"] == 3
    assert updated.value["home_team"]["rank"] == 0

    assert match_service.update(db_conn, "missing", upd).error is ServiceError.NOT_FOUND
    same = UpdateMatchRequest(home_team_id=away.id, away_team_id=away.id, home_score=0, away_score=0)
    assert match_service.update(db_conn, created["id"], same).error is ServiceError.INVALID
    ghost = UpdateMatchRequest(home_team_id=home.id, away_team_id="ghost", home_score=0, away_score=0)
    assert match_service.update(db_conn, created["id"], ghost).error is ServiceError.TEAMS_NOT_FOUND

    assert match_service.delete(db_conn, created["id"]).ok
    assert match_service.delete(db_conn, created["id"]).error is ServiceError.NOT_FOUND
    assert match_service.get(db_conn, created["id"]).error is ServiceError.NOT_FOUND


def test_standings_points_match_ranks_for_demo_league(db_conn, match_service):
    assert seed_demo_league(db_conn, start=utc_now() - timedelta(days=30))
    rows = match_service.standings(db_conn)
    assert {r["name"] for r in rows} == set(DEMO_TEAMS)
    ranks = {t.name: t.rank for t in TeamRepository().list_all(db_conn)}
    for r in rows:
        assert r["points"] == ranks[r["name"]]
        assert r["played"] == 6
    assert [(r["name"], r["points"]) for r in rows] == [
        ("Dunav", 10), ("Levski", 9), ("CSKA", 7), ("Ludogorets", 6),
    ]
