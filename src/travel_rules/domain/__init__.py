"""Domain models for travel-rules.

This package is domain-only. It intentionally excludes persistence, auth and
transport concepts; trips and goal configs arrive as opaque caller input.
"""

from travel_rules.domain.goal import (
    CONFIG_MODELS,
    CustomThresholdConfig,
    DaysCounterConfig,
    GoalCategory,
    GoalConfig,
    GoalStatus,
    GoalType,
    Jurisdiction,
    SchengenConfig,
    UKCitizenshipConfig,
    UKILRConfig,
    UKTaxConfig,
    parse_goal_config,
    required_fields,
)
from travel_rules.domain.result import (
    GoalCalculationResult,
    GoalMetric,
    GoalRequirement,
    GoalVisualization,
    GoalWarning,
    OffendingWindow,
    RollingDataPoint,
    TripBar,
)
from travel_rules.domain.trip import (
    NormalizedTrips,
    SkippedTrip,
    TripInterval,
    TripRecord,
    coerce_date,
    normalize_trips,
    parse_iso_date,
)

__all__ = [
    "CONFIG_MODELS",
    "CustomThresholdConfig",
    "DaysCounterConfig",
    "GoalCategory",
    "GoalConfig",
    "GoalStatus",
    "GoalType",
    "Jurisdiction",
    "SchengenConfig",
    "UKCitizenshipConfig",
    "UKILRConfig",
    "UKTaxConfig",
    "parse_goal_config",
    "required_fields",
    "GoalCalculationResult",
    "GoalMetric",
    "GoalRequirement",
    "GoalVisualization",
    "GoalWarning",
    "OffendingWindow",
    "RollingDataPoint",
    "TripBar",
    "NormalizedTrips",
    "SkippedTrip",
    "TripInterval",
    "TripRecord",
    "coerce_date",
    "normalize_trips",
    "parse_iso_date",
]
