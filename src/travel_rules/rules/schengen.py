"""Schengen area short-stay rule: 90 days in any 180-day period.

Trips here are stays *inside* the Schengen area. By default the entry and
exit days are not counted (full days only, consistent with the other
engines); ``count_travel_days`` switches to the official stay-day counting
where both are included.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, timedelta

import numpy as np

from travel_rules.compute.days import ONE_DAY, DaySpan, absence_spans, clip_spans
from travel_rules.compute.rolling import (
    AbsenceTimeline,
    max_window_absence,
    offending_windows,
)
from travel_rules.config import EngineSettings
from travel_rules.domain.goal import (
    GoalCategory,
    GoalStatus,
    GoalType,
    Jurisdiction,
    SchengenConfig,
)
from travel_rules.domain.result import GoalCalculationResult, GoalWarning
from travel_rules.domain.trip import TripInterval
from travel_rules.rules._common import (
    classify,
    coerce_config,
    date_metric,
    days_metric,
    fmt_date,
    related_ids,
    resolve_start,
    rolling_visualization,
    settings_or_default,
    timeline_for,
    to_offending,
)

logger = logging.getLogger(__name__)

SCHENGEN_WINDOW_DAYS = 180
SCHENGEN_LIMIT_DAYS = 90


def next_reset_date(timeline: AbsenceTimeline, reference_date: date, window_days: int) -> date | None:
    """Day the oldest counted day of the window ending on ``reference_date``
    drops out of the window."""
    first = reference_date - timedelta(days=window_days - 1)
    day = first
    while day <= reference_date:
        if timeline.total(day, day + ONE_DAY):
            return day + timedelta(days=window_days)
        day += ONE_DAY
    return None


def max_stay_from(
    spans: Sequence[DaySpan],
    entry_day: date,
    window_days: int,
    limit: int,
) -> int:
    """Longest stay starting on ``entry_day`` that keeps every window holding a
    stay day within ``limit``.

    Planned stays after ``entry_day`` count too: a window that starts during
    the hypothetical stay and reaches into a later trip must also fit.
    """
    origin = entry_day - timedelta(days=window_days - 1)
    horizon = limit + 2 * window_days
    base = AbsenceTimeline(spans, origin, origin + timedelta(days=horizon)).indicator
    entry = window_days - 1
    for length in range(1, limit + 2):
        trial = base.copy()
        trial[entry : entry + length] = 1
        cum = np.concatenate([np.zeros(1, dtype=np.int64), np.cumsum(trial)])
        starts = np.arange(entry + length)
        if int((cum[starts + window_days] - cum[starts]).max()) > limit:
            return length - 1
    return limit + 1


class SchengenEngine:
    """Schengen 90/180 compliance monitor."""

    goal_type = GoalType.SCHENGEN_90_180
    jurisdiction = Jurisdiction.SCHENGEN
    name = "Schengen 90/180"
    category = GoalCategory.IMMIGRATION
    description = "Stay within 90 days in any 180-day period in the Schengen area"
    config_model = SchengenConfig

    def calculate(
        self,
        trips: list[TripInterval],
        config: SchengenConfig,
        reference_date: date,
        settings: EngineSettings | None = None,
    ) -> GoalCalculationResult:
        settings = settings_or_default(settings)
        config = coerce_config(self.goal_type, config, SchengenConfig)
        trips = sorted(trips, key=lambda t: (t.departure, t.return_date, t.id))
        window = SCHENGEN_WINDOW_DAYS
        limit = SCHENGEN_LIMIT_DAYS
        start = resolve_start(config.start_date, trips, reference_date)

        spans = clip_spans(
            absence_spans(trips, include_travel_days=config.count_travel_days), start, date.max
        )
        last_day = max([reference_date] + [s.end for s in spans])
        timeline = timeline_for(spans, start, last_day + ONE_DAY, window)
        peak = max_window_absence(spans, window)
        breaches = offending_windows(spans, window, limit)
        used = timeline.window_total_ending(reference_date, window)
        logger.debug("Schengen: %d days used on %s, peak %d", used, reference_date, peak.days)

        status = classify(
            peak.days,
            limit,
            start=start,
            reference_date=reference_date,
            window_days=window,
            has_trips=bool(trips),
            settings=settings,
        )
        reset = next_reset_date(timeline, reference_date, window)
        metrics = [
            days_metric(
                "days_used",
                "Days Used (180-day window)",
                used,
                limit=limit,
                settings=settings,
                tooltip=f"Days in the Schengen area in the {window} days up to the reference date",
            ),
            days_metric("days_remaining", "Days Remaining", max(0, limit - used)),
            days_metric(
                "peak_window_days",
                "Highest 180-Day Total",
                peak.days,
                limit=limit,
                settings=settings,
                tooltip=(
                    f"{fmt_date(peak.start)} to {fmt_date(peak.end)}, planned trips included"
                    if peak.start is not None
                    else None
                ),
            ),
            date_metric(
                "next_reset_date",
                "Next Day Drops Out",
                reset,
                tooltip="When the oldest counted day leaves the 180-day window",
            ),
            days_metric(
                "max_stay_from_tomorrow",
                "Longest Stay Starting Tomorrow",
                max_stay_from(spans, reference_date + ONE_DAY, window, limit),
            ),
        ]

        warnings: list[GoalWarning] = []
        if breaches:
            warnings.append(
                GoalWarning(
                    severity="error",
                    title="90-Day Limit Exceeded",
                    message=(
                        f"{len(breaches)} period(s) exceed {limit} days in {window} days; "
                        f"the highest reaches {peak.days} days."
                    ),
                    action="Shorten or move the trips in the listed periods",
                    details=[
                        f"{fmt_date(w.start)} to {fmt_date(w.end)}: {w.days} days" for w in breaches
                    ],
                    related_trip_ids=related_ids(breaches, trips),
                    offending_windows=to_offending(breaches),
                )
            )
        elif status == GoalStatus.AT_RISK:
            warnings.append(
                GoalWarning(
                    severity="warning",
                    title="Close to 90-Day Limit",
                    message=(
                        f"{peak.days} of {limit} days used between {fmt_date(peak.start)} "
                        f"and {fmt_date(peak.end)}."
                    ),
                    action="Check remaining days before booking further travel",
                    related_trip_ids=related_ids([peak], trips),
                )
            )

        visualization = rolling_visualization(
            timeline,
            trips,
            window_days=window,
            limit=limit,
            start=start,
            end=last_day,
            settings=settings,
        )
        return GoalCalculationResult(
            goal_type=self.goal_type,
            status=status,
            progress_percent=0,
            reference_date=reference_date,
            start_date=start,
            metrics=metrics,
            warnings=warnings,
            visualization=visualization,
        )


__all__ = [
    "SCHENGEN_WINDOW_DAYS",
    "SCHENGEN_LIMIT_DAYS",
    "next_reset_date",
    "max_stay_from",
    "SchengenEngine",
]
