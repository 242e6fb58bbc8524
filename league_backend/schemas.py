"""
Request models for the HTTP layer.
"""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from league_backend.ranking import as_utc

# Scores are stored as SQLite integers; keep them within a signed 32-bit range
MAX_SCORE = 2**31 - 1


class CreateTeamRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)


class UpdateTeamRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)


class MatchRequest(BaseModel):
    """Body for both create and update: an update replaces every field."""
    home_team_id: str
    away_team_id: str
    home_score: int = Field(..., ge=0, le=MAX_SCORE)
    away_score: int = Field(..., ge=0, le=MAX_SCORE)
    start_time: datetime | None = Field(None, description="Kick-off; naive values are read as UTC")
    end_time: datetime | None = Field(None, description="Final whistle; the match counts once both times are past")

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_to_utc(cls, v: datetime | None) -> datetime | None:
        if v is None:
            return None
        try:
            return as_utc(v)
        except OverflowError:
            raise ValueError("time is out of range once converted to UTC")


class CreateMatchRequest(MatchRequest):
    pass


class UpdateMatchRequest(MatchRequest):
    pass
