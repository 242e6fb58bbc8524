"""
Ranking engine: standings points from match outcomes.
Pure functions. Callers resolve teams and persist the returned values.

Win = 3 points, draw = 1 point each, loss = 0.
Points are awarded only for completed matches (start and end strictly in the
past). Reversal is never gated: it undoes exactly what a prior award added,
so callers reverse only matches whose contribution is currently applied.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable

from league_backend.models import Match, StandingsRow, Team

# ---------- Points ----------
WIN_POINTS = 3
DRAW_POINTS = 1
LOSS_POINTS = 0


class Outcome(str, Enum):
    HOME_WIN = "home_win"
    AWAY_WIN = "away_win"
    DRAW = "draw"


@dataclass(frozen=True)
class RankChange:
    """
    Result of apply/reverse.
    ok is False only when a team could not be resolved (teams are then None
    or returned unchanged). awarded tells whether any points moved.
    """
    home_team: Team | None
    away_team: Team | None
    ok: bool
    awarded: bool = False


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def outcome_of(home_score: int, away_score: int) -> Outcome:
    if home_score > away_score:
        return Outcome.HOME_WIN
    if home_score < away_score:
        return Outcome.AWAY_WIN
    return Outcome.DRAW


def rank_deltas(home_score: int, away_score: int) -> tuple[int, int]:
    """(home_delta, away_delta) awarded for this score line."""
    outcome = outcome_of(home_score, away_score)
    if outcome is Outcome.HOME_WIN:
        return WIN_POINTS, LOSS_POINTS
    if outcome is Outcome.AWAY_WIN:
        return LOSS_POINTS, WIN_POINTS
    return DRAW_POINTS, DRAW_POINTS


def is_completed(
    start_time: datetime | None,
    end_time: datetime | None,
    now: datetime | None = None,
) -> bool:
    """A match counts once both its start and end are strictly before now."""
    if start_time is None or end_time is None:
        return False
    now = as_utc(now) if now is not None else utc_now()
    return as_utc(start_time) < now and as_utc(end_time) < now


def _shift(home_team: Team, away_team: Team, home_delta: int, away_delta: int) -> tuple[Team, Team]:
    if home_team.id == away_team.id:
        # Same record on both sides: both deltas land on it.
        both = replace(home_team, rank=home_team.rank + home_delta + away_delta)
        return both, both
    return (
        replace(home_team, rank=home_team.rank + home_delta),
        replace(away_team, rank=away_team.rank + away_delta),
    )


def apply_match(
    match: Match,
    home_team: Team | None,
    away_team: Team | None,
    now: datetime | None = None,
) -> RankChange:
    """Award points for match if it is completed at now."""
    if home_team is None or away_team is None:
        return RankChange(home_team, away_team, ok=False)
    if not is_completed(match.start_time, match.end_time, now):
        return RankChange(home_team, away_team, ok=True, awarded=False)
    home_delta, away_delta = rank_deltas(match.home_score, match.away_score)
    home, away = _shift(home_team, away_team, home_delta, away_delta)
    return RankChange(home, away, ok=True, awarded=True)


def reverse_match(
    match: Match,
    home_team: Team | None,
    away_team: Team | None,
) -> RankChange:
    """Retract the points match's score line awards. Not gated on completion."""
    if home_team is None or away_team is None:
        return RankChange(home_team, away_team, ok=False)
    home_delta, away_delta = rank_deltas(match.home_score, match.away_score)
    home, away = _shift(home_team, away_team, -home_delta, -away_delta)
    return RankChange(home, away, ok=True, awarded=True)


def compute_standings(teams: Iterable[Team], matches: Iterable[Match]) -> list[StandingsRow]:
    """
    League table from the matches currently contributing to rank.
    Ordered by points, goal difference, goals for (desc), then name.
    """
    rows: dict[str, StandingsRow] = {t.id: StandingsRow(team_id=t.id, name=t.name) for t in teams}
    for m in matches:
        if not m.rank_applied or m.is_deleted:
            continue
        home_delta, away_delta = rank_deltas(m.home_score, m.away_score)
        sides = (
            (m.home_team_id, m.home_score, m.away_score, home_delta),
            (m.away_team_id, m.away_score, m.home_score, away_delta),
        )
        for team_id, scored, conceded, points in sides:
            row = rows.get(team_id)
            if row is None:
                continue  # team no longer active
            row.played += 1
            row.goals_for += scored
            row.goals_against += conceded
            row.points += points
            if scored > conceded:
                row.wins += 1
            elif scored < conceded:
                row.losses += 1
            else:
                row.draws += 1
    return sorted(
        rows.values(),
        key=lambda r: (-r.points, -r.goal_difference, -r.goals_for, r.name),
    )
