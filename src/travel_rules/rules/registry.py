"""Rule engine registry.

This module provides the infrastructure for registering, discovering and
resolving goal engines by goal type. The registry is the only entry point
host applications use to reach an engine.

The table is populated once and then treated as read-only. ``replace``
swaps in a whole new table in one assignment, so concurrent readers always
see either the old or the new table, never a half-built one.
"""

from __future__ import annotations

import builtins
import logging
from collections.abc import Iterable
from datetime import date
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from travel_rules.domain.goal import GoalCategory, GoalType, Jurisdiction
from travel_rules.errors import UnknownGoalType

if TYPE_CHECKING:
    from pydantic import BaseModel

    from travel_rules.config import EngineSettings
    from travel_rules.domain.goal import GoalConfig
    from travel_rules.domain.result import GoalCalculationResult
    from travel_rules.domain.trip import TripInterval

logger = logging.getLogger(__name__)


@runtime_checkable
class RuleEngine(Protocol):
    """Protocol every goal engine implements.

    Engines are stateless strategy objects: instantiate once, share freely.
    """

    @property
    def goal_type(self) -> GoalType:
        """Goal type this engine answers for."""
        ...

    @property
    def jurisdiction(self) -> Jurisdiction:
        ...

    @property
    def name(self) -> str:
        """Human-readable goal name."""
        ...

    @property
    def category(self) -> GoalCategory:
        ...

    @property
    def description(self) -> str:
        ...

    @property
    def config_model(self) -> type[BaseModel]:
        """The GoalConfig variant this engine accepts."""
        ...

    def calculate(
        self,
        trips: builtins.list[TripInterval],
        config: GoalConfig,
        reference_date: date,
        settings: EngineSettings | None = None,
    ) -> GoalCalculationResult:
        """Evaluate the goal for normalized trips as of ``reference_date``.

        ``settings`` defaults to DEFAULT_SETTINGS when omitted.
        """
        ...


def _coerce_goal_type(goal_type: GoalType | str) -> GoalType | None:
    if isinstance(goal_type, GoalType):
        return goal_type
    try:
        return GoalType(str(goal_type))
    except ValueError:
        return None


class RuleEngineRegistry:
    """Registry for goal engines.

    Provides registration, lookup and enumeration of available engines.

    Example:
        >>> registry = RuleEngineRegistry()
        >>> registry.register(DaysCounterEngine())
        >>> engine = registry.get("days_counter")
        >>> registry.list_types()
        ['days_counter']
    """

    def __init__(self, engines: Iterable[RuleEngine] = ()) -> None:
        self._engines: dict[GoalType, RuleEngine] = {}
        for engine in engines:
            self.register(engine)

    def register(self, engine: RuleEngine) -> None:
        """Register an engine.

        Args:
            engine: A RuleEngine implementation.

        Raises:
            ValueError: If an engine for the same goal type is already registered.
        """
        if engine.goal_type in self._engines:
            raise ValueError(f"Engine for '{engine.goal_type.value}' is already registered")
        table = dict(self._engines)
        table[engine.goal_type] = engine
        self._engines = table

    def replace(self, engines: Iterable[RuleEngine]) -> None:
        """Swap the whole table for a new set of engines."""
        table: dict[GoalType, RuleEngine] = {}
        for engine in engines:
            if engine.goal_type in table:
                raise ValueError(f"Duplicate engine for '{engine.goal_type.value}'")
            table[engine.goal_type] = engine
        self._engines = table
        logger.debug("Registry replaced with %d engines", len(table))

    def get(self, goal_type: GoalType | str) -> RuleEngine | None:
        """Get an engine by goal type.

        Returns:
            The engine, or None when the goal type is unknown. Callers must
            treat None as "unsupported" rather than fall back to any engine.
        """
        key = _coerce_goal_type(goal_type)
        if key is None:
            return None
        return self._engines.get(key)

    def require(self, goal_type: GoalType | str) -> RuleEngine:
        """Get an engine or raise UnknownGoalType."""
        engine = self.get(goal_type)
        if engine is None:
            raw = goal_type.value if isinstance(goal_type, GoalType) else str(goal_type)
            raise UnknownGoalType(raw)
        return engine

    def list(self) -> builtins.list[RuleEngine]:
        """List all registered engines, sorted by goal type."""
        return [self._engines[k] for k in sorted(self._engines, key=lambda t: t.value)]

    def list_by_jurisdiction(self, jurisdiction: Jurisdiction | str) -> builtins.list[RuleEngine]:
        """List engines for one jurisdiction, sorted by goal type."""
        wanted = Jurisdiction(jurisdiction)
        return [e for e in self.list() if e.jurisdiction == wanted]

    def list_types(self) -> builtins.list[str]:
        return [e.goal_type.value for e in self.list()]

    def is_supported(self, goal_type: GoalType | str) -> bool:
        return self.get(goal_type) is not None

    def __contains__(self, goal_type: object) -> bool:
        if not isinstance(goal_type, (GoalType, str)):
            return False
        return self.is_supported(goal_type)

    def __len__(self) -> int:
        return len(self._engines)


# Global default registry
DEFAULT_REGISTRY = RuleEngineRegistry()


def get_default_registry() -> RuleEngineRegistry:
    """Get the default global registry, populated with the built-in engines."""
    if len(DEFAULT_REGISTRY) == 0:
        from travel_rules.rules.register_defaults import build_default_engines

        DEFAULT_REGISTRY.replace(build_default_engines())
    return DEFAULT_REGISTRY


__all__ = [
    "RuleEngine",
    "RuleEngineRegistry",
    "DEFAULT_REGISTRY",
    "get_default_registry",
]
