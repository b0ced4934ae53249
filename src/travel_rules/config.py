"""Engine-wide settings.

Policy knobs that are legal nuance rather than arithmetic live here so host
applications can tune them without touching the engines. Settings are an
explicit argument to every calculation; nothing reads them implicitly.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

ENV_PREFIX = "TRAVEL_RULES_"


class BreachPolicy(str, Enum):
    """How an ILR rolling-window breach moves the eligibility date."""

    # Earliest date whose whole qualifying period (ending on that date) is compliant.
    SLIDING_PERIOD = "sliding_period"
    # Qualifying period restarts on the first UK day after the breaching absence.
    RESET_CLOCK = "reset_clock"


@dataclass(frozen=True)
class EngineSettings:
    """Tunable policy for all rule engines.

    Attributes:
        at_risk_fraction: Share of a limit at which a goal becomes ``at_risk``.
        ilr_max_absence_days: ILR absence limit in any rolling window.
        ilr_window_days: Length of the ILR rolling window.
        ilr_breach_policy: Reset semantics after an ILR breach.
        ilr_early_application_days: Days before the end of the qualifying
            period an application may be made (0 disables the reduction).
        ilr_max_pre_entry_days: Longest visa-start to entry gap that still
            counts toward the qualifying period.
        search_horizon_days: Upper bound on forward searches for an
            eligibility date.
        visualization_points: Maximum points in sampled chart series.
    """

    at_risk_fraction: float = 0.8
    ilr_max_absence_days: int = 180
    ilr_window_days: int = 365
    ilr_breach_policy: BreachPolicy = BreachPolicy.SLIDING_PERIOD
    ilr_early_application_days: int = 0
    ilr_max_pre_entry_days: int = 180
    search_horizon_days: int = 3660
    visualization_points: int = 200

    def __post_init__(self) -> None:
        if not 0.0 < self.at_risk_fraction <= 1.0:
            raise ValueError(f"at_risk_fraction must be in (0, 1], got {self.at_risk_fraction}")
        for name in (
            "ilr_max_absence_days",
            "ilr_window_days",
            "search_horizon_days",
            "visualization_points",
        ):
            if int(getattr(self, name)) <= 0:
                raise ValueError(f"{name} must be > 0")
        if self.ilr_early_application_days < 0 or self.ilr_max_pre_entry_days < 0:
            raise ValueError("ILR day offsets must be >= 0")


DEFAULT_SETTINGS = EngineSettings()


def _coerce(raw: str, default: Any) -> Any:
    if isinstance(default, BreachPolicy):
        return BreachPolicy(raw.strip().lower())
    if isinstance(default, float):
        return float(raw)
    return int(raw)


def load_settings(environ: dict[str, str] | None = None) -> EngineSettings:
    """Build settings from ``TRAVEL_RULES_*`` environment variables.

    Malformed values are ignored (with a warning) and the default is kept.
    """
    env = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}
    for f in fields(EngineSettings):
        raw = env.get(ENV_PREFIX + f.name.upper())
        if raw is None:
            continue
        default = getattr(DEFAULT_SETTINGS, f.name)
        try:
            overrides[f.name] = _coerce(raw, default)
        except ValueError:
            logger.warning("Ignoring malformed %s%s=%r", ENV_PREFIX, f.name.upper(), raw)
    if not overrides:
        return DEFAULT_SETTINGS
    try:
        return replace(DEFAULT_SETTINGS, **overrides)
    except ValueError as exc:
        logger.warning("Ignoring out-of-range settings overrides: %s", exc)
        return DEFAULT_SETTINGS


__all__ = [
    "BreachPolicy",
    "EngineSettings",
    "DEFAULT_SETTINGS",
    "ENV_PREFIX",
    "load_settings",
]
