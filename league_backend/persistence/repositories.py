"""
Repositories for league data.
TeamRepository is plain read/write. MatchRepository is the match store: every
match mutation runs the ranking engine against both teams inside one
transaction, so team rank always reflects the matches currently applied.
"""
from __future__ import annotations

import logging
import sqlite3
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Callable

from league_backend.models import Match, Team
from league_backend.persistence.db import transaction
from league_backend.ranking import apply_match, as_utc, is_completed, reverse_match, utc_now

logger = logging.getLogger(__name__)


def _parse_datetime(s: str | None) -> datetime:
    if s is None:
        raise ValueError("expected datetime string")
    return as_utc(datetime.fromisoformat(s.replace("Z", "+00:00")))


def _parse_optional(s: str | None) -> datetime | None:
    return _parse_datetime(s) if s else None


def _to_db(value: datetime | None) -> str | None:
    return as_utc(value).isoformat() if value is not None else None


def _row_to_team(r: sqlite3.Row) -> Team:
    return Team(
        id=r["id"],
        name=r["name"],
        rank=r["rank"],
        is_deleted=bool(r["is_deleted"]),
        created_on=_parse_datetime(r["created_on"]),
        modified_on=_parse_datetime(r["modified_on"]),
    )


def _row_to_match(r: sqlite3.Row) -> Match:
    return Match(
        id=r["id"],
        home_team_id=r["home_team_id"],
        away_team_id=r["away_team_id"],
        home_score=r["home_score"],
        away_score=r["away_score"],
        start_time=_parse_optional(r["start_time"]),
        end_time=_parse_optional(r["end_time"]),
        rank_applied=bool(r["rank_applied"]),
        is_deleted=bool(r["is_deleted"]),
        created_on=_parse_datetime(r["created_on"]),
        modified_on=_parse_datetime(r["modified_on"]),
    )


# ---------- TeamRepository ----------

_TEAM_COLS = "id, name, rank, is_deleted, created_on, modified_on"


class TeamRepository:
    """CRUD for teams. Reads see active (non-deleted) teams unless asked otherwise."""

    def create(
        self, conn: sqlite3.Connection, name: str, id: str | None = None, commit: bool = True
    ) -> Team:
        """Insert a team at rank 0. Pass commit=False inside an open transaction."""
        tid = id or str(uuid.uuid4())
        now = utc_now()
        conn.execute(
            "INSERT INTO teams (id, name, rank, is_deleted, created_on, modified_on) VALUES (?, ?, 0, 0, ?, ?)",
            (tid, name, now.isoformat(), now.isoformat()),
        )
        if commit:
            conn.commit()
        return Team(id=tid, name=name, rank=0, created_on=now, modified_on=now)

    def get(self, conn: sqlite3.Connection, team_id: str, include_deleted: bool = False) -> Team | None:
        sql = f"SELECT {_TEAM_COLS} FROM teams WHERE id = ?"
        if not include_deleted:
            sql += " AND is_deleted = 0"
        row = conn.execute(sql, (team_id,)).fetchone()
        return _row_to_team(row) if row is not None else None

    def exists(self, conn: sqlite3.Connection, team_id: str) -> bool:
        row = conn.execute(
            "SELECT 1 FROM teams WHERE id = ? AND is_deleted = 0", (team_id,)
        ).fetchone()
        return row is not None

    def name_in_use(self, conn: sqlite3.Connection, name: str, exclude_id: str | None = None) -> bool:
        """True if an active team other than exclude_id has this name."""
        sql = "SELECT 1 FROM teams WHERE name = ? AND is_deleted = 0"
        args: tuple = (name,)
        if exclude_id is not None:
            sql += " AND id != ?"
            args = args + (exclude_id,)
        return conn.execute(sql, args).fetchone() is not None

    def list_all(self, conn: sqlite3.Connection) -> list[Team]:
        """Active teams, highest rank first; ties keep creation order."""
        rows = conn.execute(
            f"SELECT {_TEAM_COLS} FROM teams WHERE is_deleted = 0 ORDER BY rank DESC, created_on, rowid"
        ).fetchall()
        return [_row_to_team(r) for r in rows]

    def update_name(
        self, conn: sqlite3.Connection, team_id: str, name: str, commit: bool = True
    ) -> Team | None:
        """Rename an active team. Rank is not touched here."""
        now = utc_now().isoformat()
        cur = conn.execute(
            "UPDATE teams SET name = ?, modified_on = ? WHERE id = ? AND is_deleted = 0",
            (name, now, team_id),
        )
        if commit:
            conn.commit()
        if cur.rowcount == 0:
            return None
        return self.get(conn, team_id)

    def soft_delete(self, conn: sqlite3.Connection, team_id: str) -> bool:
        now = utc_now().isoformat()
        cur = conn.execute(
            "UPDATE teams SET is_deleted = 1, modified_on = ? WHERE id = ? AND is_deleted = 0",
            (now, team_id),
        )
        conn.commit()
        return cur.rowcount > 0

    def write_rank(self, conn: sqlite3.Connection, team: Team, modified_on: datetime) -> None:
        """Persist a rank computed by the ranking engine. No commit: runs inside the match transaction."""
        conn.execute(
            "UPDATE teams SET rank = ?, modified_on = ? WHERE id = ?",
            (team.rank, _to_db(modified_on), team.id),
        )


# ---------- Match store ----------


class MatchWriteStatus(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    TEAMS_NOT_FOUND = "teams_not_found"


@dataclass
class MatchWriteResult:
    status: MatchWriteStatus
    match: Match | None = None

    @property
    def ok(self) -> bool:
        return self.status is MatchWriteStatus.OK


class _TeamWorkingSet:
    """
    Teams touched by one match operation. Deltas accumulate here so a team
    appearing in both the old and new version of a match is read once and
    written once.
    """

    def __init__(self, conn: sqlite3.Connection, team_repo: TeamRepository) -> None:
        self._conn = conn
        self._team_repo = team_repo
        self._teams: dict[str, Team] = {}
        self._loaded_rank: dict[str, int] = {}

    def resolve(self, team_id: str) -> Team | None:
        if team_id in self._teams:
            return self._teams[team_id]
        team = self._team_repo.get(self._conn, team_id)
        if team is not None:
            self._teams[team_id] = team
            self._loaded_rank[team_id] = team.rank
        return team

    def put(self, *teams: Team | None) -> None:
        for team in teams:
            if team is not None:
                self._teams[team.id] = team

    def flush(self, modified_on: datetime) -> None:
        for team_id, team in self._teams.items():
            before = self._loaded_rank[team_id]
            if team.rank != before:
                self._team_repo.write_rank(self._conn, team, modified_on)
                logger.debug("Rank %s (%s): %d -> %d", team.name, team_id, before, team.rank)


_MATCH_COLS = (
    "id, home_team_id, away_team_id, home_score, away_score, start_time, end_time, "
    "rank_applied, is_deleted, created_on, modified_on"
)


class MatchRepository:
    """
    Match store. create/update/delete keep team ranks consistent:
    reverse the stored contribution (if applied), write the new values,
    apply the new outcome (if completed). Expected failures are returned,
    never raised.
    """

    def __init__(
        self,
        team_repo: TeamRepository | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._team_repo = team_repo or TeamRepository()
        self._clock = clock or utc_now

    # ---------- Reads ----------

    def get(self, conn: sqlite3.Connection, match_id: str) -> Match | None:
        match = self._get_active(conn, match_id)
        if match is None:
            return None
        self._attach_teams(conn, [match])
        return match

    def list_all(self, conn: sqlite3.Connection) -> list[Match]:
        rows = conn.execute(
            f"SELECT {_MATCH_COLS} FROM matches WHERE is_deleted = 0 "
            "ORDER BY start_time IS NULL, start_time, created_on, rowid"
        ).fetchall()
        matches = [_row_to_match(r) for r in rows]
        self._attach_teams(conn, matches)
        return matches

    def list_by_team(self, conn: sqlite3.Connection, team_id: str) -> list[Match]:
        """Active matches where team_id plays home or away."""
        rows = conn.execute(
            f"SELECT {_MATCH_COLS} FROM matches WHERE is_deleted = 0 "
            "AND (home_team_id = ? OR away_team_id = ?) "
            "ORDER BY start_time IS NULL, start_time, created_on, rowid",
            (team_id, team_id),
        ).fetchall()
        matches = [_row_to_match(r) for r in rows]
        self._attach_teams(conn, matches)
        return matches

    # ---------- Mutations ----------

    def create(
        self,
        conn: sqlite3.Connection,
        home_team_id: str,
        away_team_id: str,
        home_score: int,
        away_score: int,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
        id: str | None = None,
    ) -> Match | None:
        """Insert a match and award its points if already completed. None if either team does not resolve."""
        now = self._clock()
        with transaction(conn):
            teams = _TeamWorkingSet(conn, self._team_repo)
            home = teams.resolve(home_team_id)
            away = teams.resolve(away_team_id)
            if home is None or away is None:
                logger.info("Match not created: team %s or %s does not exist", home_team_id, away_team_id)
                return None
            match = Match(
                id=id or str(uuid.uuid4()),
                home_team_id=home_team_id,
                away_team_id=away_team_id,
                home_score=home_score,
                away_score=away_score,
                start_time=as_utc(start_time) if start_time else None,
                end_time=as_utc(end_time) if end_time else None,
                created_on=now,
                modified_on=now,
            )
            change = apply_match(match, home, away, now)
            match.rank_applied = change.awarded
            teams.put(change.home_team, change.away_team)
            conn.execute(
                f"INSERT INTO matches ({_MATCH_COLS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, 0, ?, ?)",
                (
                    match.id, match.home_team_id, match.away_team_id,
                    match.home_score, match.away_score,
                    _to_db(match.start_time), _to_db(match.end_time),
                    int(match.rank_applied), _to_db(now), _to_db(now),
                ),
            )
            teams.flush(now)
        match.home_team = teams.resolve(home_team_id)
        match.away_team = teams.resolve(away_team_id)
        return match

    def update(
        self,
        conn: sqlite3.Connection,
        match_id: str,
        home_team_id: str,
        away_team_id: str,
        home_score: int,
        away_score: int,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
    ) -> MatchWriteResult:
        """
        Replace a match's teams, scores and times.
        The stored contribution is reversed before the new outcome is applied;
        nothing is written if any old or new team fails to resolve.
        The stored teams must resolve even when rank_applied is false, so a
        match involving a soft-deleted team can no longer be edited.
        """
        now = self._clock()
        with transaction(conn):
            existing = self._get_active(conn, match_id)
            if existing is None:
                return MatchWriteResult(MatchWriteStatus.NOT_FOUND)
            teams = _TeamWorkingSet(conn, self._team_repo)
            old_home = teams.resolve(existing.home_team_id)
            old_away = teams.resolve(existing.away_team_id)
            if old_home is None or old_away is None:
                logger.info("Match %s not updated: stored teams no longer resolve", match_id)
                return MatchWriteResult(MatchWriteStatus.TEAMS_NOT_FOUND, existing)
            if existing.rank_applied:
                reversed_ = reverse_match(existing, old_home, old_away)
                teams.put(reversed_.home_team, reversed_.away_team)
            new_home = teams.resolve(home_team_id)
            new_away = teams.resolve(away_team_id)
            if new_home is None or new_away is None:
                logger.info("Match %s not updated: team %s or %s does not exist", match_id, home_team_id, away_team_id)
                return MatchWriteResult(MatchWriteStatus.TEAMS_NOT_FOUND, existing)
            updated = replace(
                existing,
                home_team_id=home_team_id,
                away_team_id=away_team_id,
                home_score=home_score,
                away_score=away_score,
                start_time=as_utc(start_time) if start_time else None,
                end_time=as_utc(end_time) if end_time else None,
                modified_on=now,
            )
            change = apply_match(updated, new_home, new_away, now)
            updated.rank_applied = change.awarded
            teams.put(change.home_team, change.away_team)
            conn.execute(
                """UPDATE matches SET home_team_id = ?, away_team_id = ?, home_score = ?, away_score = ?,
                start_time = ?, end_time = ?, rank_applied = ?, modified_on = ? WHERE id = ?""",
                (
                    updated.home_team_id, updated.away_team_id,
                    updated.home_score, updated.away_score,
                    _to_db(updated.start_time), _to_db(updated.end_time),
                    int(updated.rank_applied), _to_db(now), match_id,
                ),
            )
            teams.flush(now)
        updated.home_team = teams.resolve(home_team_id)
        updated.away_team = teams.resolve(away_team_id)
        return MatchWriteResult(MatchWriteStatus.OK, updated)

    def delete(self, conn: sqlite3.Connection, match_id: str) -> MatchWriteResult:
        """Soft-delete a match after retracting its points. Aborts if either team does not resolve."""
        now = self._clock()
        with transaction(conn):
            existing = self._get_active(conn, match_id)
            if existing is None:
                return MatchWriteResult(MatchWriteStatus.NOT_FOUND)
            teams = _TeamWorkingSet(conn, self._team_repo)
            home = teams.resolve(existing.home_team_id)
            away = teams.resolve(existing.away_team_id)
            if home is None or away is None:
                logger.info("Match %s not deleted: teams no longer resolve", match_id)
                return MatchWriteResult(MatchWriteStatus.TEAMS_NOT_FOUND, existing)
            if existing.rank_applied:
                reversed_ = reverse_match(existing, home, away)
                teams.put(reversed_.home_team, reversed_.away_team)
            conn.execute(
                "UPDATE matches SET is_deleted = 1, rank_applied = 0, modified_on = ? WHERE id = ?",
                (_to_db(now), match_id),
            )
            teams.flush(now)
        deleted = replace(existing, is_deleted=True, rank_applied=False, modified_on=now)
        deleted.home_team = teams.resolve(existing.home_team_id)
        deleted.away_team = teams.resolve(existing.away_team_id)
        return MatchWriteResult(MatchWriteStatus.OK, deleted)

    def settle(self, conn: sqlite3.Connection) -> list[Match]:
        """
        Award points for matches that have finished since they were last written.
        Matches whose teams no longer resolve are skipped.
        """
        now = self._clock()
        settled: list[Match] = []
        with transaction(conn):
            rows = conn.execute(
                f"SELECT {_MATCH_COLS} FROM matches WHERE is_deleted = 0 AND rank_applied = 0 "
                "AND start_time IS NOT NULL AND end_time IS NOT NULL ORDER BY end_time, rowid"
            ).fetchall()
            teams = _TeamWorkingSet(conn, self._team_repo)
            for r in rows:
                match = _row_to_match(r)
                if not is_completed(match.start_time, match.end_time, now):
                    continue
                change = apply_match(
                    match, teams.resolve(match.home_team_id), teams.resolve(match.away_team_id), now
                )
                if not change.ok:
                    logger.warning("Match %s not settled: teams no longer resolve", match.id)
                    continue
                teams.put(change.home_team, change.away_team)
                conn.execute(
                    "UPDATE matches SET rank_applied = 1, modified_on = ? WHERE id = ?",
                    (_to_db(now), match.id),
                )
                match.rank_applied = True
                match.modified_on = now
                settled.append(match)
            teams.flush(now)
        if settled:
            logger.info("Settled %d completed match(es)", len(settled))
        self._attach_teams(conn, settled)
        return settled

    # ---------- Internals ----------

    def _get_active(self, conn: sqlite3.Connection, match_id: str) -> Match | None:
        row = conn.execute(
            f"SELECT {_MATCH_COLS} FROM matches WHERE id = ? AND is_deleted = 0", (match_id,)
        ).fetchone()
        return _row_to_match(row) if row is not None else None

    def _attach_teams(self, conn: sqlite3.Connection, matches: list[Match]) -> None:
        """Snapshot home/away teams (deleted teams included, so old fixtures still render)."""
        cache: dict[str, Team | None] = {}
        for m in matches:
            for team_id in (m.home_team_id, m.away_team_id):
                if team_id not in cache:
                    cache[team_id] = self._team_repo.get(conn, team_id, include_deleted=True)
            m.home_team = cache[m.home_team_id]
            m.away_team = cache[m.away_team_id]
