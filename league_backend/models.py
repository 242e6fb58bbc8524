"""
Data models for the league backend.
Domain objects only, with no persistence or API logic.

Teams carry a rank (standings points) derived from the matches currently
contributing to it; matches reference teams by id only.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


# ---------- Team ----------
@dataclass
class Team:
    """
    A league team. Name is unique among active (non-deleted) teams.
    rank is written only by the ranking engine via the match store.
    """
    id: str
    name: str
    rank: int
    created_on: datetime
    modified_on: datetime
    is_deleted: bool = False

    def to_summary(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "rank": self.rank}

    def to_dict(self) -> dict[str, Any]:
        d = self.to_summary()
        d["created_on"] = self.created_on.isoformat()
        d["modified_on"] = self.modified_on.isoformat()
        return d


# ---------- Match ----------
@dataclass
class Match:
    """
    A fixture between two teams.
    rank_applied records whether this match's outcome is currently counted in
    the two teams' ranks; it is set by the match store, never by callers.
    home_team / away_team are snapshots attached on read.
    """
    id: str
    home_team_id: str
    away_team_id: str
    home_score: int
    away_score: int
    start_time: datetime | None = None
    end_time: datetime | None = None
    rank_applied: bool = False
    is_deleted: bool = False
    created_on: datetime | None = None
    modified_on: datetime | None = None
    home_team: Team | None = None
    away_team: Team | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "home_team_id": self.home_team_id,
            "away_team_id": self.away_team_id,
            "home_score": self.home_score,
            "away_score": self.away_score,
            "start_time": _iso(self.start_time),
            "end_time": _iso(self.end_time),
            "rank_applied": self.rank_applied,
            "home_team": self.home_team.to_summary() if self.home_team else None,
            "away_team": self.away_team.to_summary() if self.away_team else None,
        }


# ---------- Standings ----------
@dataclass
class StandingsRow:
    """One line of the league table, built from applied match results."""
    team_id: str
    name: str
    played: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    goals_for: int = 0
    goals_against: int = 0
    points: int = 0

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    def to_dict(self) -> dict[str, Any]:
        return {
            "team_id": self.team_id,
            "name": self.name,
            "played": self.played,
            "wins": self.wins,
            "draws": self.draws,
            "losses": self.losses,
            "goals_for": self.goals_for,
            "goals_against": self.goals_against,
            "goal_difference": self.goal_difference,
            "points": self.points,
        }
