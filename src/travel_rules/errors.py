"""Local error taxonomy for travel-rules.

The rule engine is domain-only: every failure is local, synchronous and
deterministic, so there is nothing to retry. We keep a small, stable error
enum/envelope that host applications (HTTP routes, importers, UI stores) can
translate into their own status codes.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorType(str, Enum):
    INVALID_TRIP_INTERVAL = "INVALID_TRIP_INTERVAL"
    UNKNOWN_GOAL_TYPE = "UNKNOWN_GOAL_TYPE"
    INVALID_GOAL_CONFIG = "INVALID_GOAL_CONFIG"


class ErrorEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    type: ErrorType
    message: str
    context: dict[str, Any] = Field(default_factory=dict)


def make_error(error_type: ErrorType, message: str, **context: Any) -> ErrorEnvelope:
    return ErrorEnvelope(type=error_type, message=message, context=dict(context))


class RuleEngineError(ValueError):
    """Base class for all rule engine failures.

    Attributes:
        error_type: Machine-readable error kind.
        message: Human-readable detail message.
        context: JSON-friendly context (trip id, goal type, field names).
    """

    error_type: ErrorType

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = dict(context)

    def to_envelope(self) -> ErrorEnvelope:
        return make_error(self.error_type, self.message, **self.context)


class InvalidTripInterval(RuleEngineError):
    """Raised when a trip's return date does not strictly follow its departure.

    Also covers missing or unparseable dates and duplicate trip ids.
    """

    error_type = ErrorType.INVALID_TRIP_INTERVAL

    def __init__(self, trip_id: str | None, message: str) -> None:
        super().__init__(f"Trip {trip_id!r}: {message}", trip_id=trip_id)
        self.trip_id = trip_id


class UnknownGoalType(RuleEngineError):
    """Raised when no engine is registered for the requested goal type."""

    error_type = ErrorType.UNKNOWN_GOAL_TYPE

    def __init__(self, goal_type: str) -> None:
        super().__init__(f"Unsupported goal type: {goal_type!r}", goal_type=goal_type)
        self.goal_type = goal_type


class InvalidGoalConfig(RuleEngineError):
    """Raised when a resolved engine receives an incomplete or out-of-range config."""

    error_type = ErrorType.INVALID_GOAL_CONFIG

    def __init__(
        self,
        goal_type: str,
        message: str,
        *,
        fields: list[str] | None = None,
    ) -> None:
        super().__init__(
            f"Invalid {goal_type} config: {message}",
            goal_type=goal_type,
            fields=list(fields or []),
        )
        self.goal_type = goal_type
        self.fields = list(fields or [])


__all__ = [
    "ErrorType",
    "ErrorEnvelope",
    "make_error",
    "RuleEngineError",
    "InvalidTripInterval",
    "UnknownGoalType",
    "InvalidGoalConfig",
]
