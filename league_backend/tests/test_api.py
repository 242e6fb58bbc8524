"""
API integration tests.
Uses TestClient to avoid starting a server.
Requires: pip install httpx (for TestClient)
"""
from __future__ import annotations

import sqlite3
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

from fastapi.testclient import TestClient

# Ensure project root on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from league_backend.api import app
from league_backend.persistence.db import init_db, set_db_path


@pytest.fixture(autouse=True)
def isolated_db(tmp_path):
    """Use a temporary DB for each test."""
    db_path = tmp_path / "test.db"
    set_db_path(db_path)
    init_db(db_path=db_path)
    yield db_path


@pytest.fixture
def client():
    return TestClient(app)


def _iso(dt: datetime) -> str:
    return dt.isoformat()


def _past() -> dict[str, str]:
    start = datetime.now(timezone.utc) - timedelta(days=2)
    return {"start_time": _iso(start), "end_time": _iso(start + timedelta(hours=2))}


def _future() -> dict[str, str]:
    start = datetime.now(timezone.utc) + timedelta(days=2)
    return {"start_time": _iso(start), "end_time": _iso(start + timedelta(hours=2))}


def _team(client, name: str) -> str:
    resp = client.post("/teams", json={"name": name})
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


def _rank(client, team_id: str) -> int:
    return client.get(f"/teams/{team_id}").json()["rank"]


def test_create_and_get_team(client):
    tid = _team(client, "Dunav")
    resp = client.get(f"/teams/{tid}")
    assert resp.status_code == 200
    data = resp.json()
    assert data["id"] == tid
    assert data["name"] == "Dunav"
    assert data["rank"] == 0


def test_create_team_validation(client):
    assert client.post("/teams", json={"name": ""}).status_code == 422
    assert client.post("/teams", json={}).status_code == 422


def test_duplicate_team_name_conflict(client):
    _team(client, "Levski")
    resp = client.post("/teams", json={"name": "Levski"})
    assert resp.status_code == 409


def test_deleted_team_name_reusable(client):
    tid = _team(client, "CSKA")
    resp = client.delete(f"/teams/{tid}")
    assert resp.status_code == 200
    assert resp.json() == {"id": tid, "deleted": True}
    assert client.get(f"/teams/{tid}").status_code == 404
    assert client.delete(f"/teams/{tid}").status_code == 404
    _team(client, "CSKA")


def test_rename_team(client):
    tid = _team(client, "Old")
    resp = client.put(f"/teams/{tid}", json={"name": "New"})
    assert resp.status_code == 200
    assert resp.json()["name"] == "New"
    assert client.put("/teams/missing", json={"name": "X"}).status_code == 404


def test_rank_cannot_be_set_by_rename(client):
    tid = _team(client, "Sneaky")
    resp = client.put(f"/teams/{tid}", json={"name": "Sneaky", "rank": 99})
    assert resp.status_code == 200
    assert resp.json()["rank"] == 0


def test_match_lifecycle_updates_ranks(client):
    a = _team(client, "A")
    b = _team(client, "B")
    resp = client.post(
        "/matches",
        json={"home_team_id": a, "away_team_id": b, "home_score": 1, "away_score": 0, **_past()},
    )
    assert resp.status_code == 201
    match = resp.json()
    assert match["home_team"]["rank"] == 3
    assert (_rank(client, a), _rank(client, b)) == (3, 0)

    resp = client.put(
        f"/matches/{match['id']}",
        json={"home_team_id": a, "away_team_id": b, "home_score": 0, "away_score": 1, **_past()},
    )
    assert resp.status_code == 200
    assert (_rank(client, a), _rank(client, b)) == (0, 3)

    resp = client.delete(f"/matches/{match['id']}")
    assert resp.status_code == 200
    assert (_rank(client, a), _rank(client, b)) == (0, 0)
    assert client.get(f"/matches/{match['id']}").status_code == 404
    assert client.delete(f"/matches/{match['id']}").status_code == 404


def test_future_match_does_not_count(client):
    a = _team(client, "A")
    b = _team(client, "B")
    resp = client.post(
        "/matches",
        json={"home_team_id": a, "away_team_id": b, "home_score": 0, "away_score": 0, **_future()},
    )
    assert resp.status_code == 201
    assert resp.json()["rank_applied"] is False
    assert (_rank(client, a), _rank(client, b)) == (0, 0)
    client.delete(f"/matches/{resp.json()['id']}")
    assert (_rank(client, a), _rank(client, b)) == (0, 0)


def test_create_match_errors(client):
    a = _team(client, "A")
    resp = client.post("/matches", json={"home_team_id": a, "away_team_id": "missing", "home_score": 1, "away_score": 0})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "One or both teams do not exist."
    resp = client.post("/matches", json={"home_team_id": a, "away_team_id": a, "home_score": 1, "away_score": 0})
    assert resp.status_code == 400
    resp = client.post("/matches", json={"home_team_id": a, "away_team_id": "x", "home_score": -1, "away_score": 0})
    assert resp.status_code == 422
    assert client.get("/matches").json()["matches"] == []


def test_out_of_range_score_rejected(client):
    a = _team(client, "A")
    b = _team(client, "B")
    body = {"home_team_id": a, "away_team_id": b, "home_score": 10**20, "away_score": 0, **_past()}
    assert client.post("/matches", json=body).status_code == 422
    body["home_score"] = 2**31 - 1
    resp = client.post("/matches", json=body)
    assert resp.status_code == 201
    match_id = resp.json()["id"]
    body["away_score"] = 2**31
    assert client.put(f"/matches/{match_id}", json=body).status_code == 422
    assert _rank(client, a) == 3


def test_time_outside_utc_range_rejected(client):
    a = _team(client, "A")
    b = _team(client, "B")
    body = {
        "home_team_id": a,
        "away_team_id": b,
        "home_score": 1,
        "away_score": 0,
        "start_time": "0001-01-01T00:00:00+05:00",
        "end_time": "0001-01-01T02:00:00+05:00",
    }
    assert client.post("/matches", json=body).status_code == 422
    resp = client.post("/matches", json={**body, **_past()})
    assert resp.status_code == 201
    late = {**body, "start_time": "9999-12-31T22:00:00-05:00", "end_time": "9999-12-31T23:00:00-05:00"}
    assert client.put(f"/matches/{resp.json()['id']}", json=late).status_code == 422
    assert client.get("/matches").json()["matches"][0]["rank_applied"] is True


def test_match_times_are_stored_in_utc(client):
    a = _team(client, "A")
    b = _team(client, "B")
    resp = client.post(
        "/matches",
        json={
            "home_team_id": a,
            "away_team_id": b,
            "home_score": 0,
            "away_score": 0,
            "start_time": "2020-05-01T18:00:00+02:00",
            "end_time": "2020-05-01T20:00:00+02:00",
        },
    )
    assert resp.status_code == 201
    assert resp.json()["start_time"].startswith("2020-05-01T16:00:00")


def test_update_missing_match(client):
    a = _team(client, "A")
    b = _team(client, "B")
    resp = client.put("/matches/nope", json={"home_team_id": a, "away_team_id": b, "home_score": 1, "away_score": 0})
    assert resp.status_code == 404


def test_list_teams_ordered_by_rank(client):
    a = _team(client, "A")
    b = _team(client, "B")
    c = _team(client, "C")
    for home, away, hs, as_ in ((c, a, 2, 0), (c, b, 1, 0), (b, a, 1, 1)):
        client.post("/matches", json={"home_team_id": home, "away_team_id": away, "home_score": hs, "away_score": as_, **_past()})
    teams = client.get("/teams").json()["teams"]
    # A and B tie on 1 point; creation order breaks the tie
    assert [t["id"] for t in teams] == [c, a, b]
    ranks = [t["rank"] for t in teams]
    assert ranks == sorted(ranks, reverse=True)
    assert ranks[0] == 6


def test_team_matches_and_standings(client):
    a = _team(client, "A")
    b = _team(client, "B")
    c = _team(client, "C")
    client.post("/matches", json={"home_team_id": a, "away_team_id": b, "home_score": 3, "away_score": 1, **_past()})
    client.post("/matches", json={"home_team_id": c, "away_team_id": a, "home_score": 0, "away_score": 0, **_past()})
    client.post("/matches", json={"home_team_id": b, "away_team_id": c, "home_score": 2, "away_score": 0, **_future()})
    resp = client.get(f"/teams/{a}/matches")
    assert resp.status_code == 200
    assert len(resp.json()["matches"]) == 2
    assert client.get("/teams/missing/matches").status_code == 404

    standings = client.get("/standings").json()["standings"]
    assert standings[0]["team_id"] == a
    assert standings[0]["points"] == 4
    assert standings[0]["goal_difference"] == 2
    by_team = {row["team_id"]: row["points"] for row in standings}
    assert by_team == {a: _rank(client, a), b: _rank(client, b), c: _rank(client, c)}


def test_settle_endpoint_with_nothing_pending(client):
    resp = client.post("/matches/settle")
    assert resp.status_code == 200
    assert resp.json() == {"settled": [], "count": 0}


def test_storage_failure_returns_500(client):
    with patch("league_backend.api.get_connection", side_effect=sqlite3.OperationalError("disk I/O error")):
        resp = client.get("/teams")
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Storage unavailable"
