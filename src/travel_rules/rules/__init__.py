"""Goal engines and the registry that resolves them by goal type."""

from travel_rules.rules.register_defaults import build_default_engines, register_all_defaults
from travel_rules.rules.registry import (
    DEFAULT_REGISTRY,
    RuleEngine,
    RuleEngineRegistry,
    get_default_registry,
)

__all__ = [
    "RuleEngine",
    "RuleEngineRegistry",
    "DEFAULT_REGISTRY",
    "get_default_registry",
    "build_default_engines",
    "register_all_defaults",
]
