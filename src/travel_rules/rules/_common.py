"""Shared helpers for goal engines: status rules, metric and chart builders."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from datetime import date, timedelta
from typing import Any

from pydantic import BaseModel

from travel_rules.compute.days import ONE_DAY, full_days_abroad
from travel_rules.compute.rolling import AbsenceTimeline, WindowTotal, sample_trailing_series
from travel_rules.config import DEFAULT_SETTINGS, EngineSettings
from travel_rules.domain.goal import GoalStatus, GoalType, parse_goal_config
from travel_rules.domain.result import (
    GoalMetric,
    GoalVisualization,
    MetricStatus,
    OffendingWindow,
    RiskLevel,
    RollingDataPoint,
    TripBar,
)
from travel_rules.domain.trip import TripInterval

_DATE_FMT = "%d %b %Y"


def settings_or_default(settings: EngineSettings | None) -> EngineSettings:
    return DEFAULT_SETTINGS if settings is None else settings


def coerce_config(goal_type: GoalType, config: Any, model: type[BaseModel]) -> Any:
    """Return ``config`` as an instance of ``model``, validating raw input."""
    if isinstance(config, model):
        return config
    return parse_goal_config(goal_type, config)


def fmt_date(day: date | None) -> str:
    return day.strftime(_DATE_FMT) if day is not None else "n/a"


def resolve_start(
    configured: date | None,
    trips: Sequence[TripInterval],
    reference_date: date,
) -> date:
    """Goal start: the configured date, else the earliest departure, else the reference date."""
    if configured is not None:
        return configured
    if trips:
        return min(t.departure for t in trips)
    return reference_date


def classify(
    value: int,
    limit: int,
    *,
    start: date,
    reference_date: date,
    window_days: int,
    has_trips: bool,
    settings: EngineSettings,
) -> GoalStatus:
    """Shared status rules for limit-watching goals.

    ``value`` is the watched figure (e.g. a rolling absence total) compared
    against ``limit``. Engines layer eligibility on top of this.
    """
    if reference_date < start or (reference_date == start and not has_trips):
        return GoalStatus.NOT_STARTED
    if value > limit:
        return GoalStatus.LIMIT_EXCEEDED
    if limit > 0 and value >= settings.at_risk_fraction * limit:
        return GoalStatus.AT_RISK
    if (reference_date - start).days + 1 >= window_days:
        return GoalStatus.ON_TRACK
    return GoalStatus.IN_PROGRESS


def metric_status(value: int, limit: int, settings: EngineSettings) -> MetricStatus:
    if value > limit:
        return "exceeded"
    if limit > 0 and value >= settings.at_risk_fraction * limit:
        return "warning"
    return "ok"


def risk_level(value: int, limit: int, settings: EngineSettings) -> RiskLevel:
    if value > limit:
        return "critical"
    if limit > 0 and value >= settings.at_risk_fraction * limit:
        return "caution"
    return "low"


def progress_between(start: date, end: date, reference_date: date) -> int:
    """Elapsed share of ``[start, end]`` as a floored percentage in 0..100."""
    if reference_date <= start:
        return 0
    if reference_date >= end:
        return 100
    total = (end - start).days
    return min(100, max(0, math.floor(100 * (reference_date - start).days / total)))


def days_metric(
    key: str,
    label: str,
    value: int,
    *,
    limit: int | None = None,
    settings: EngineSettings | None = None,
    tooltip: str | None = None,
) -> GoalMetric:
    status: MetricStatus = "ok"
    if limit is not None and settings is not None:
        status = metric_status(value, limit, settings)
    return GoalMetric(
        key=key,
        label=label,
        value=int(value),
        unit="days",
        limit=limit,
        status=status,
        tooltip=tooltip,
    )


def date_metric(key: str, label: str, value: date | None, tooltip: str | None = None) -> GoalMetric:
    return GoalMetric(
        key=key,
        label=label,
        value=value.isoformat() if value is not None else None,
        unit="date",
        tooltip=tooltip,
    )


def to_offending(windows: Iterable[WindowTotal]) -> list[OffendingWindow]:
    return [
        OffendingWindow(start=w.start, end=w.end, days=w.days)
        for w in windows
        if w.start is not None and w.end is not None
    ]


def related_ids(windows: Iterable[WindowTotal], trips: Sequence[TripInterval]) -> list[str]:
    """Trip ids behind the given windows, in trip order, without duplicates."""
    wanted: set[str] = set()
    for window in windows:
        wanted.update(window.source_ids)
    return [t.id for t in trips if t.id in wanted]


def trip_bars(trips: Sequence[TripInterval], start: date) -> list[TripBar]:
    return [
        TripBar(
            trip_id=t.id,
            out_date=t.departure,
            in_date=t.return_date,
            start_offset=(t.departure - start).days,
            end_offset=(t.return_date - start).days,
            full_days=full_days_abroad(t),
            label=t.label,
        )
        for t in trips
    ]


def rolling_visualization(
    timeline: AbsenceTimeline,
    trips: Sequence[TripInterval],
    *,
    window_days: int,
    limit: int,
    start: date,
    end: date,
    settings: EngineSettings,
) -> GoalVisualization:
    """Sampled trailing-window series for ``[start, end]`` plus trip bars."""
    points: list[RollingDataPoint] = []
    if end >= start:
        for day, total in sample_trailing_series(
            timeline, window_days, start, end, settings.visualization_points
        ):
            points.append(
                RollingDataPoint(
                    day=day,
                    rolling_days=total,
                    risk_level=risk_level(total, limit, settings),
                )
            )
    return GoalVisualization(rolling_absence_data=points, trip_bars=trip_bars(trips, start))


def timeline_for(
    spans: Sequence[Any],
    start: date,
    end: date,
    window_days: int,
) -> AbsenceTimeline:
    """Timeline covering ``[start, end)`` with one window of padding each side."""
    return AbsenceTimeline.covering(spans, start, max(end, start + ONE_DAY), pad_days=window_days)


def window_bounds(day: date, window_days: int) -> tuple[date, date]:
    """Inclusive first and last day of the window ending on ``day``."""
    return day - timedelta(days=window_days - 1), day


__all__ = [
    "settings_or_default",
    "coerce_config",
    "fmt_date",
    "resolve_start",
    "classify",
    "metric_status",
    "risk_level",
    "progress_between",
    "days_metric",
    "date_metric",
    "to_offending",
    "related_ids",
    "trip_bars",
    "rolling_visualization",
    "timeline_for",
    "window_bounds",
]
