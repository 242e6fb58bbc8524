"""
REST API for the football league backend.
Thin wrappers around the team and match services.
"""
from __future__ import annotations

import logging
import sqlite3
from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncGenerator, Generator

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from league_backend.config import seed_demo_enabled, setup_logging
from league_backend.persistence import get_connection, init_db
from league_backend.persistence.db import get_db_path
from league_backend.schemas import (
    CreateMatchRequest,
    CreateTeamRequest,
    UpdateMatchRequest,
    UpdateTeamRequest,
)
from league_backend.services import MatchService, ServiceError, ServiceResult, TeamService

logger = logging.getLogger(__name__)


@contextmanager
def db_conn() -> Generator:
    """Yield a DB connection, ensure close on exit."""
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


# ---------- Startup: logging, schema, optional demo data ----------
def _ensure_db() -> None:
    init_db(db_path=get_db_path(), seed_demo=seed_demo_enabled())


# ---------- Lifespan ----------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    _ensure_db()
    logger.info("League API ready (db=%s)", get_db_path())
    yield


# ---------- FastAPI app ----------
app = FastAPI(
    title="Football League API",
    description="Teams, matches and standings derived from match results",
    version="0.1.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(sqlite3.Error)
async def storage_error_handler(request: Request, exc: sqlite3.Error) -> JSONResponse:
    logger.exception("Storage failure on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Storage unavailable"})


_STATUS_BY_ERROR: dict[ServiceError, int] = {
    ServiceError.NOT_FOUND: 404,
    ServiceError.TEAMS_NOT_FOUND: 404,
    ServiceError.CONFLICT: 409,
    ServiceError.INVALID: 400,
}


def _unwrap(result: ServiceResult) -> Any:
    """Return the value or raise the HTTP error matching the service failure."""
    if result.error is not None:
        raise HTTPException(status_code=_STATUS_BY_ERROR[result.error], detail=result.detail)
    return result.value


# ---------- Teams ----------


@app.get("/teams")
def list_teams() -> dict[str, Any]:
    """Active teams, highest rank first."""
    with db_conn() as conn:
        return {"teams": TeamService().list_all(conn)}


@app.post("/teams", status_code=201)
def create_team(req: CreateTeamRequest) -> dict[str, Any]:
    """Create a team with rank 0. 409 if an active team already has the name."""
    with db_conn() as conn:
        return _unwrap(TeamService().create(conn, req))


@app.get("/teams/{team_id}")
def get_team(team_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        return _unwrap(TeamService().get(conn, team_id))


@app.put("/teams/{team_id}")
def update_team(team_id: str, req: UpdateTeamRequest) -> dict[str, Any]:
    """Rename a team. Rank cannot be set through the API."""
    with db_conn() as conn:
        return _unwrap(TeamService().update(conn, team_id, req))


@app.delete("/teams/{team_id}")
def delete_team(team_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        _unwrap(TeamService().delete(conn, team_id))
        return {"id": team_id, "deleted": True}


@app.get("/teams/{team_id}/matches")
def list_team_matches(team_id: str) -> dict[str, Any]:
    """Home and away matches of one team."""
    with db_conn() as conn:
        return {"team_id": team_id, "matches": _unwrap(TeamService().matches(conn, team_id))}


# ---------- Matches ----------


@app.get("/matches")
def list_matches() -> dict[str, Any]:
    with db_conn() as conn:
        return {"matches": MatchService().list_all(conn)}


@app.post("/matches", status_code=201)
def create_match(req: CreateMatchRequest) -> dict[str, Any]:
    """Record a match. Points are awarded at once if start and end are already past."""
    with db_conn() as conn:
        return _unwrap(MatchService().create(conn, req))


@app.post("/matches/settle")
def settle_matches() -> dict[str, Any]:
    """Award points for matches that finished after they were recorded."""
    with db_conn() as conn:
        settled = MatchService().settle(conn)
        return {"settled": settled, "count": len(settled)}


@app.get("/matches/{match_id}")
def get_match(match_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        return _unwrap(MatchService().get(conn, match_id))


@app.put("/matches/{match_id}")
def update_match(match_id: str, req: UpdateMatchRequest) -> dict[str, Any]:
    """Replace a match's teams, score and times; ranks are re-derived for the new result."""
    with db_conn() as conn:
        return _unwrap(MatchService().update(conn, match_id, req))


@app.delete("/matches/{match_id}")
def delete_match(match_id: str) -> dict[str, Any]:
    """Soft-delete a match and take back the points it awarded."""
    with db_conn() as conn:
        _unwrap(MatchService().delete(conn, match_id))
        return {"id": match_id, "deleted": True}


# ---------- Standings ----------


@app.get("/standings")
def get_standings() -> dict[str, Any]:
    """League table: played, wins, draws, losses, goals and points per team."""
    with db_conn() as conn:
        return {"standings": MatchService().standings(conn)}
