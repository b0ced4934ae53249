"""User-defined rolling-window threshold goals."""

from __future__ import annotations

import logging
from datetime import date

from travel_rules.compute.days import ONE_DAY, absence_spans, clip_spans
from travel_rules.compute.rolling import max_window_absence, offending_windows
from travel_rules.config import EngineSettings
from travel_rules.domain.goal import (
    CustomThresholdConfig,
    GoalCategory,
    GoalType,
    Jurisdiction,
)
from travel_rules.domain.result import GoalCalculationResult, GoalMetric, GoalWarning
from travel_rules.domain.trip import TripInterval
from travel_rules.rules._common import (
    classify,
    coerce_config,
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


class CustomThresholdEngine:
    """Custom limit over a rolling window.

    ``days_away`` goals cap full days away per window at ``threshold_days``.
    ``days_present`` goals require ``threshold_days`` present per window,
    which is the same as capping days away at ``window_days - threshold_days``.
    The window ending on the reference date decides the status; earlier
    breaches are reported as warnings only.
    """

    goal_type = GoalType.CUSTOM_THRESHOLD
    jurisdiction = Jurisdiction.GLOBAL
    name = "Custom Threshold"
    category = GoalCategory.PERSONAL
    description = "Track a custom day limit over a rolling window"
    config_model = CustomThresholdConfig

    def calculate(
        self,
        trips: list[TripInterval],
        config: CustomThresholdConfig,
        reference_date: date,
        settings: EngineSettings | None = None,
    ) -> GoalCalculationResult:
        settings = settings_or_default(settings)
        config = coerce_config(self.goal_type, config, CustomThresholdConfig)
        trips = sorted(trips, key=lambda t: (t.departure, t.return_date, t.id))
        window = config.window_days
        limit = config.absence_limit
        start = resolve_start(config.start_date, trips, reference_date)

        spans = clip_spans(absence_spans(trips), start, date.max)
        last_day = max([reference_date] + [s.end for s in spans])
        timeline = timeline_for(spans, start, last_day + ONE_DAY, window)
        away = timeline.window_total_ending(reference_date, window)
        peak = max_window_absence(spans, window)
        breaches = offending_windows(spans, window, limit)
        logger.debug("Custom threshold: %d of %d days away in window", away, limit)

        status = classify(
            away,
            limit,
            start=start,
            reference_date=reference_date,
            window_days=window,
            has_trips=bool(trips),
            settings=settings,
        )

        label = config.description or f"{config.threshold_days} days in {window}"
        metrics: list[GoalMetric] = []
        if config.count_direction == "days_away":
            metrics.append(
                days_metric(
                    "current_window_days",
                    "Days Away (current window)",
                    away,
                    limit=limit,
                    settings=settings,
                    tooltip=f"{label}: full days away in the {window} days up to the reference date",
                )
            )
        else:
            tracked = max(0, min(window, (reference_date - start).days + 1))
            present = max(0, tracked - away)
            metrics.append(
                GoalMetric(
                    key="current_window_days",
                    label="Days Present (current window)",
                    value=present,
                    unit="days",
                    limit=config.threshold_days,
                    status="ok" if away <= limit else "exceeded",
                    tooltip=f"{label}: days present in the {window} days up to the reference date",
                )
            )
        metrics.extend(
            [
                days_metric(
                    "days_away_allowed",
                    "Days Away Remaining",
                    max(0, limit - away),
                ),
                days_metric(
                    "peak_window_days",
                    "Highest Window Absence",
                    peak.days,
                    limit=limit,
                    settings=settings,
                ),
            ]
        )

        warnings: list[GoalWarning] = []
        past = [w for w in breaches if w.end is not None and w.end < reference_date]
        ahead = [w for w in breaches if w.end is not None and w.end >= reference_date]
        if away > limit and past:
            # The run covering the reference date is current even if its peak is behind it.
            ahead.insert(0, past.pop())
        if past:
            warnings.append(
                GoalWarning(
                    severity="warning",
                    title="Past Threshold Breach",
                    message=f"The limit of {limit} days away was exceeded in {len(past)} earlier window(s).",
                    details=[f"{fmt_date(w.start)} to {fmt_date(w.end)}: {w.days} days" for w in past],
                    related_trip_ids=related_ids(past, trips),
                    offending_windows=to_offending(past),
                )
            )
        if ahead:
            warnings.append(
                GoalWarning(
                    severity="error",
                    title="Threshold Exceeded",
                    message=f"Current or planned travel exceeds {limit} days away in {window} days.",
                    action="Shorten or move the trips in the listed periods",
                    details=[f"{fmt_date(w.start)} to {fmt_date(w.end)}: {w.days} days" for w in ahead],
                    related_trip_ids=related_ids(ahead, trips),
                    offending_windows=to_offending(ahead),
                )
            )

        return GoalCalculationResult(
            goal_type=self.goal_type,
            status=status,
            progress_percent=0,
            reference_date=reference_date,
            start_date=start,
            metrics=metrics,
            warnings=warnings,
            visualization=rolling_visualization(
                timeline,
                trips,
                window_days=window,
                limit=limit,
                start=start,
                end=last_day,
                settings=settings,
            ),
        )


__all__ = ["CustomThresholdEngine"]
