"""Public API for travel-rules."""

from travel_rules.api.calculate import calculate, calculate_payload, describe_goal_types

__all__ = ["calculate", "calculate_payload", "describe_goal_types"]
