"""Public calculation facade.

Host applications call ``calculate`` with raw trip rows and a raw goal config;
everything is validated here before an engine runs:

1. the goal type is resolved against the registry (UnknownGoalType),
2. the config is parsed into the engine's variant (InvalidGoalConfig),
3. trip rows become TripIntervals (InvalidTripInterval, or skip-and-report).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel

from travel_rules.config import EngineSettings, load_settings
from travel_rules.domain.goal import GoalType, parse_goal_config, required_fields
from travel_rules.domain.result import GoalCalculationResult
from travel_rules.domain.trip import (
    InvalidTripPolicy,
    TripInterval,
    TripRecord,
    coerce_date,
    normalize_trips,
)
from travel_rules.rules.registry import RuleEngineRegistry, get_default_registry

logger = logging.getLogger(__name__)

TripInput = TripRecord | TripInterval | Mapping[str, Any]


def calculate(
    trips: Iterable[TripInput],
    goal_type: GoalType | str,
    goal_config: Mapping[str, Any] | BaseModel | None,
    reference_date: date | datetime | str,
    *,
    start_date: date | datetime | str | None = None,
    invalid_trips: InvalidTripPolicy = "raise",
    settings: EngineSettings | None = None,
    registry: RuleEngineRegistry | None = None,
) -> GoalCalculationResult:
    """Evaluate one goal against a trip history.

    Args:
        trips: Trip rows (wire records, mappings or TripIntervals).
        goal_type: Goal type identifier, e.g. "uk_ilr".
        goal_config: Raw config for that goal type.
        reference_date: The "as of" date; trips after it are planned trips.
        start_date: Goal start for types whose config carries one, used when
            the config leaves it empty.
        invalid_trips: "raise" (default) or "skip"; skipped trip ids are
            reported on the result.
        settings: Engine settings; defaults to ``load_settings()``.
        registry: Engine registry; defaults to the built-in registry.

    Returns:
        GoalCalculationResult for the goal as of ``reference_date``.

    Raises:
        UnknownGoalType: No engine is registered for ``goal_type``.
        InvalidGoalConfig: The config is incomplete or out of range.
        InvalidTripInterval: A trip is invalid and ``invalid_trips="raise"``.
    """
    registry = registry if registry is not None else get_default_registry()
    settings = settings if settings is not None else load_settings()
    engine = registry.require(goal_type)

    reference = coerce_date(reference_date, label="reference_date")
    start = coerce_date(start_date, label="start_date") if start_date is not None else None
    config = parse_goal_config(engine.goal_type, goal_config, start_date=start)
    normalized = normalize_trips(trips, on_invalid=invalid_trips)

    logger.debug(
        "Calculating %s for %d trips as of %s",
        engine.goal_type.value,
        len(normalized.intervals),
        reference,
    )
    result = engine.calculate(list(normalized.intervals), config, reference, settings)
    if normalized.skipped:
        result = result.model_copy(update={"skipped_trip_ids": normalized.skipped_ids})
    return result


def calculate_payload(*args: Any, **kwargs: Any) -> dict[str, Any]:
    """``calculate`` returning the camelCase JSON-ready payload."""
    return calculate(*args, **kwargs).to_payload()


def describe_goal_types(registry: RuleEngineRegistry | None = None) -> list[dict[str, Any]]:
    """Display info for every registered goal type."""
    registry = registry if registry is not None else get_default_registry()
    return [
        {
            "goalType": engine.goal_type.value,
            "name": engine.name,
            "jurisdiction": engine.jurisdiction.value,
            "category": engine.category.value,
            "description": engine.description,
            "requiredFields": required_fields(engine.goal_type),
        }
        for engine in registry.list()
    ]


__all__ = ["calculate", "calculate_payload", "describe_goal_types"]
