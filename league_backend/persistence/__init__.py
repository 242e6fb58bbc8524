"""
Persistence layer for league data.
Teams are plain CRUD; the match store keeps team ranks in step with match results.
"""
from .db import get_connection, init_db, transaction
from .repositories import (
    TeamRepository,
    MatchRepository,
    MatchWriteResult,
    MatchWriteStatus,
)

__all__ = [
    "get_connection",
    "init_db",
    "transaction",
    "TeamRepository",
    "MatchRepository",
    "MatchWriteResult",
    "MatchWriteStatus",
]
