"""Plain counter of days away from (or present in) a location, with no limit."""

from __future__ import annotations

from datetime import date

from travel_rules.compute.days import ONE_DAY, absence_spans, clip_spans, total_days
from travel_rules.config import EngineSettings
from travel_rules.domain.goal import (
    DaysCounterConfig,
    GoalCategory,
    GoalStatus,
    GoalType,
    Jurisdiction,
)
from travel_rules.domain.result import GoalCalculationResult, GoalMetric, GoalVisualization
from travel_rules.domain.trip import TripInterval
from travel_rules.rules._common import coerce_config, fmt_date, resolve_start, trip_bars


class DaysCounterEngine:
    goal_type = GoalType.DAYS_COUNTER
    jurisdiction = Jurisdiction.GLOBAL
    name = "Days Counter"
    category = GoalCategory.PERSONAL
    description = "Count days spent in or away from a location"
    config_model = DaysCounterConfig

    def calculate(
        self,
        trips: list[TripInterval],
        config: DaysCounterConfig,
        reference_date: date,
        settings: EngineSettings | None = None,
    ) -> GoalCalculationResult:
        config = coerce_config(self.goal_type, config, DaysCounterConfig)
        trips = sorted(trips, key=lambda t: (t.departure, t.return_date, t.id))
        start = resolve_start(config.start_date, trips, reference_date)
        location = config.reference_location

        if reference_date < start:
            return GoalCalculationResult(
                goal_type=self.goal_type,
                status=GoalStatus.NOT_STARTED,
                progress_percent=0,
                reference_date=reference_date,
                start_date=start,
            )

        # Inclusive of the reference date.
        tracked = (reference_date - start).days + 1
        away = total_days(clip_spans(absence_spans(trips), start, reference_date + ONE_DAY))
        present = tracked - away
        if config.count_direction == "days_away":
            primary, label = away, f"Days Away from {location}"
            secondary = GoalMetric(key="days_present", label=f"Days in {location}", value=present)
        else:
            primary, label = present, f"Days in {location}"
            secondary = GoalMetric(key="days_away", label="Days Away", value=away)
        share = round(100 * primary / tracked) if tracked else 0

        metrics = [
            GoalMetric(
                key="primary_count",
                label=label,
                value=primary,
                tooltip=f"Since {fmt_date(start)}",
            ),
            GoalMetric(key="tracking_period", label="Total Days Tracked", value=tracked),
            secondary,
            GoalMetric(
                key="percentage",
                label="% Time Away" if config.count_direction == "days_away" else "% Time Present",
                value=share,
                unit="percent",
            ),
        ]
        status = (
            GoalStatus.NOT_STARTED
            if reference_date == start and not trips
            else GoalStatus.IN_PROGRESS
        )
        return GoalCalculationResult(
            goal_type=self.goal_type,
            status=status,
            progress_percent=0,
            reference_date=reference_date,
            start_date=start,
            metrics=metrics,
            visualization=GoalVisualization(trip_bars=trip_bars(trips, start)),
        )


__all__ = ["DaysCounterEngine"]
