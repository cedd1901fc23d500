from enum import Enum
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class EstimateStatus(str, Enum):
    EXACT = "exact"
    DEGRADED = "degraded"
    UNAVAILABLE = "unavailable"


class Estimate(BaseModel, Generic[T]):
    """
    Result of an estimation step, tagged with how much it can be trusted.

    ``exact`` values come from the full heuristic model, ``degraded`` values
    come from a component's fallback after a computation failure, and
    ``unavailable`` means the inputs could not describe a deployment at all.
    """
    status: EstimateStatus
    value: Optional[T] = None
    reason: Optional[str] = None

    @classmethod
    def exact(cls, value: T) -> "Estimate[T]":
        return cls(status=EstimateStatus.EXACT, value=value)

    @classmethod
    def degraded(cls, value: T, reason: str) -> "Estimate[T]":
        return cls(status=EstimateStatus.DEGRADED, value=value, reason=reason)

    @classmethod
    def unavailable(cls, reason: str) -> "Estimate[T]":
        return cls(status=EstimateStatus.UNAVAILABLE, reason=reason)

    @property
    def is_available(self) -> bool:
        return self.status != EstimateStatus.UNAVAILABLE

    @property
    def is_degraded(self) -> bool:
        return self.status == EstimateStatus.DEGRADED
