"""travel-rules: trip day-accounting and eligibility rule engine.

Quick start:
    >>> from travel_rules import calculate
    >>> result = calculate(
    ...     [{"id": "t1", "outDate": "2024-01-10", "inDate": "2024-01-20"}],
    ...     "uk_ilr",
    ...     {"visaStartDate": "2020-01-01", "trackYears": 5},
    ...     "2024-06-01",
    ... )
    >>> result.status.value
    'on_track'
"""

from __future__ import annotations

from travel_rules.api.calculate import calculate, calculate_payload, describe_goal_types
from travel_rules.config import BreachPolicy, EngineSettings, load_settings
from travel_rules.domain.goal import GoalStatus, GoalType
from travel_rules.domain.result import GoalCalculationResult
from travel_rules.domain.trip import TripInterval, normalize_trips
from travel_rules.errors import (
    InvalidGoalConfig,
    InvalidTripInterval,
    RuleEngineError,
    UnknownGoalType,
)
from travel_rules.rules.registry import RuleEngineRegistry, get_default_registry

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "calculate",
    "calculate_payload",
    "describe_goal_types",
    "BreachPolicy",
    "EngineSettings",
    "load_settings",
    "GoalStatus",
    "GoalType",
    "GoalCalculationResult",
    "TripInterval",
    "normalize_trips",
    "RuleEngineError",
    "InvalidTripInterval",
    "UnknownGoalType",
    "InvalidGoalConfig",
    "RuleEngineRegistry",
    "get_default_registry",
]
