"""
Match service: maps requests onto the match store and store results onto
service outcomes. The ranking work itself happens in the store.
"""
from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Any, Callable

from league_backend.persistence.repositories import (
    MatchRepository,
    MatchWriteStatus,
    TeamRepository,
)
from league_backend.ranking import compute_standings
from league_backend.schemas import CreateMatchRequest, MatchRequest, UpdateMatchRequest
from league_backend.services.results import ServiceError, ServiceResult

MATCH_NOT_FOUND = "Match does not exist."
TEAMS_NOT_FOUND = "One or both teams do not exist."
SAME_TEAM = "A team cannot play against itself."


class MatchService:
    def __init__(
        self,
        team_repo: TeamRepository | None = None,
        match_repo: MatchRepository | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._team_repo = team_repo or TeamRepository()
        self._match_repo = match_repo or MatchRepository(self._team_repo, clock=clock)

    def create(self, conn: sqlite3.Connection, req: CreateMatchRequest) -> ServiceResult[dict[str, Any]]:
        if req.home_team_id == req.away_team_id:
            return ServiceResult.failure(ServiceError.INVALID, SAME_TEAM)
        match = self._match_repo.create(conn, **_match_fields(req))
        if match is None:
            return ServiceResult.failure(ServiceError.TEAMS_NOT_FOUND, TEAMS_NOT_FOUND)
        return ServiceResult.success(match.to_dict())

    def get(self, conn: sqlite3.Connection, match_id: str) -> ServiceResult[dict[str, Any]]:
        match = self._match_repo.get(conn, match_id)
        if match is None:
            return ServiceResult.failure(ServiceError.NOT_FOUND, MATCH_NOT_FOUND)
        return ServiceResult.success(match.to_dict())

    def list_all(self, conn: sqlite3.Connection) -> list[dict[str, Any]]:
        return [m.to_dict() for m in self._match_repo.list_all(conn)]

    def update(
        self, conn: sqlite3.Connection, match_id: str, req: UpdateMatchRequest
    ) -> ServiceResult[dict[str, Any]]:
        if req.home_team_id == req.away_team_id:
            return ServiceResult.failure(ServiceError.INVALID, SAME_TEAM)
        result = self._match_repo.update(conn, match_id, **_match_fields(req))
        if result.status is MatchWriteStatus.NOT_FOUND:
            return ServiceResult.failure(ServiceError.NOT_FOUND, MATCH_NOT_FOUND)
        if result.status is MatchWriteStatus.TEAMS_NOT_FOUND:
            return ServiceResult.failure(ServiceError.TEAMS_NOT_FOUND, TEAMS_NOT_FOUND)
        return ServiceResult.success(result.match.to_dict())

    def delete(self, conn: sqlite3.Connection, match_id: str) -> ServiceResult[bool]:
        result = self._match_repo.delete(conn, match_id)
        if result.status is MatchWriteStatus.NOT_FOUND:
            return ServiceResult.failure(ServiceError.NOT_FOUND, MATCH_NOT_FOUND)
        if result.status is MatchWriteStatus.TEAMS_NOT_FOUND:
            return ServiceResult.failure(ServiceError.TEAMS_NOT_FOUND, TEAMS_NOT_FOUND)
        return ServiceResult.success(True)

    def settle(self, conn: sqlite3.Connection) -> list[dict[str, Any]]:
        return [m.to_dict() for m in self._match_repo.settle(conn)]

    def standings(self, conn: sqlite3.Connection) -> list[dict[str, Any]]:
        teams = self._team_repo.list_all(conn)
        matches = self._match_repo.list_all(conn)
        return [row.to_dict() for row in compute_standings(teams, matches)]


def _match_fields(req: MatchRequest) -> dict[str, Any]:
    return {
        "home_team_id": req.home_team_id,
        "away_team_id": req.away_team_id,
        "home_score": req.home_score,
        "away_score": req.away_score,
        "start_time": req.start_time,
        "end_time": req.end_time,
    }
