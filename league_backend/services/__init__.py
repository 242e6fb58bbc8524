"""
Service layer: request/response mapping and business rules outside ranking.
Ranking runs in the match store; services never touch rank directly.
"""
from .results import ServiceError, ServiceResult
from .team_service import TeamService
from .match_service import MatchService

__all__ = [
    "ServiceError",
    "ServiceResult",
    "TeamService",
    "MatchService",
]
