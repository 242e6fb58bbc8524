"""
Service outcomes. Expected failures (not found, conflicts) are values, not exceptions.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ServiceError(str, Enum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    TEAMS_NOT_FOUND = "teams_not_found"
    INVALID = "invalid"


@dataclass
class ServiceResult(Generic[T]):
    value: T | None = None
    error: ServiceError | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "ServiceResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ServiceError, detail: str) -> "ServiceResult[T]":
        return cls(error=error, detail=detail)
