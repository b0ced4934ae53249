"""Default engine registration.

This module provides functions to register the built-in goal engines with a
RuleEngineRegistry.

Usage:
    >>> from travel_rules.rules import RuleEngineRegistry
    >>> from travel_rules.rules.register_defaults import register_all_defaults
    >>> registry = RuleEngineRegistry()
    >>> register_all_defaults(registry)
    >>> registry.list_types()
    ['custom_threshold', 'days_counter', 'schengen_90_180', 'uk_citizenship', 'uk_ilr', 'uk_tax_residency']
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from travel_rules.rules.registry import RuleEngine, RuleEngineRegistry


def uk_engines() -> list[RuleEngine]:
    """UK immigration and tax engines."""
    from travel_rules.rules.uk_citizenship import UKCitizenshipEngine
    from travel_rules.rules.uk_ilr import UKILREngine
    from travel_rules.rules.uk_tax import UKTaxResidencyEngine

    return [UKILREngine(), UKCitizenshipEngine(), UKTaxResidencyEngine()]


def schengen_engines() -> list[RuleEngine]:
    from travel_rules.rules.schengen import SchengenEngine

    return [SchengenEngine()]


def personal_engines() -> list[RuleEngine]:
    """Jurisdiction-free engines for user-defined goals."""
    from travel_rules.rules.days_counter import DaysCounterEngine
    from travel_rules.rules.threshold import CustomThresholdEngine

    return [CustomThresholdEngine(), DaysCounterEngine()]


def build_default_engines() -> list[RuleEngine]:
    """Fresh instances of every built-in engine."""
    return [*uk_engines(), *schengen_engines(), *personal_engines()]


def register_uk_engines(registry: RuleEngineRegistry) -> None:
    for engine in uk_engines():
        registry.register(engine)


def register_schengen_engines(registry: RuleEngineRegistry) -> None:
    for engine in schengen_engines():
        registry.register(engine)


def register_personal_engines(registry: RuleEngineRegistry) -> None:
    for engine in personal_engines():
        registry.register(engine)


def register_all_defaults(registry: RuleEngineRegistry) -> None:
    """Register all built-in engines.

    This registers:
    - uk_ilr, uk_citizenship, uk_tax_residency
    - schengen_90_180
    - custom_threshold, days_counter

    Args:
        registry: RuleEngineRegistry to register engines with.

    Raises:
        ValueError: If any of the goal types is already registered.
    """
    register_uk_engines(registry)
    register_schengen_engines(registry)
    register_personal_engines(registry)


__all__ = [
    "uk_engines",
    "schengen_engines",
    "personal_engines",
    "build_default_engines",
    "register_uk_engines",
    "register_schengen_engines",
    "register_personal_engines",
    "register_all_defaults",
]
