"""
Team service: name uniqueness among active teams, request/response mapping.
Rank is read-only here; only the match store changes it.
"""
from __future__ import annotations

import logging
import sqlite3
from typing import Any

from league_backend.persistence.db import transaction
from league_backend.persistence.repositories import MatchRepository, TeamRepository
from league_backend.schemas import CreateTeamRequest, UpdateTeamRequest
from league_backend.services.results import ServiceError, ServiceResult

logger = logging.getLogger(__name__)

TEAM_NOT_FOUND = "Team does not exist."
TEAM_NAME_TAKEN = "Team name already exists."


class TeamService:
    def __init__(
        self,
        team_repo: TeamRepository | None = None,
        match_repo: MatchRepository | None = None,
    ) -> None:
        self._team_repo = team_repo or TeamRepository()
        self._match_repo = match_repo or MatchRepository(self._team_repo)

    def create(self, conn: sqlite3.Connection, req: CreateTeamRequest) -> ServiceResult[dict[str, Any]]:
        """Reject a name already used by an active team; a soft-deleted team's name is free."""
        with transaction(conn):
            if self._team_repo.name_in_use(conn, req.name):
                return ServiceResult.failure(ServiceError.CONFLICT, TEAM_NAME_TAKEN)
            team = self._team_repo.create(conn, req.name, commit=False)
        logger.info("Created team %s (%s)", team.name, team.id)
        return ServiceResult.success(team.to_dict())

    def get(self, conn: sqlite3.Connection, team_id: str) -> ServiceResult[dict[str, Any]]:
        team = self._team_repo.get(conn, team_id)
        if team is None:
            return ServiceResult.failure(ServiceError.NOT_FOUND, TEAM_NOT_FOUND)
        return ServiceResult.success(team.to_dict())

    def list_all(self, conn: sqlite3.Connection) -> list[dict[str, Any]]:
        return [t.to_dict() for t in self._team_repo.list_all(conn)]

    def update(
        self, conn: sqlite3.Connection, team_id: str, req: UpdateTeamRequest
    ) -> ServiceResult[dict[str, Any]]:
        with transaction(conn):
            if not self._team_repo.exists(conn, team_id):
                return ServiceResult.failure(ServiceError.NOT_FOUND, TEAM_NOT_FOUND)
            if self._team_repo.name_in_use(conn, req.name, exclude_id=team_id):
                return ServiceResult.failure(ServiceError.CONFLICT, TEAM_NAME_TAKEN)
            team = self._team_repo.update_name(conn, team_id, req.name, commit=False)
        if team is None:
            return ServiceResult.failure(ServiceError.NOT_FOUND, TEAM_NOT_FOUND)
        return ServiceResult.success(team.to_dict())

    def delete(self, conn: sqlite3.Connection, team_id: str) -> ServiceResult[bool]:
        if not self._team_repo.soft_delete(conn, team_id):
            return ServiceResult.failure(ServiceError.NOT_FOUND, TEAM_NOT_FOUND)
        logger.info("Deleted team %s", team_id)
        return ServiceResult.success(True)

    def matches(self, conn: sqlite3.Connection, team_id: str) -> ServiceResult[list[dict[str, Any]]]:
        """Home and away fixtures of an active team."""
        if not self._team_repo.exists(conn, team_id):
            return ServiceResult.failure(ServiceError.NOT_FOUND, TEAM_NOT_FOUND)
        return ServiceResult.success([m.to_dict() for m in self._match_repo.list_by_team(conn, team_id)])
