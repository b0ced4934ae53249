"""UK tax residency (automatic UK test) for one tax year.

The tax year runs 6 April to 5 April. A day counts as a UK day when the
subject is in the UK at midnight, so each trip removes the nights from
departure up to the day before return. 183 UK days make the subject
resident under the automatic UK test; fewer than 16 make them non-resident
under the automatic overseas test.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, timedelta

import numpy as np

from travel_rules.compute.days import ONE_DAY, DaySpan, clip_spans, total_days
from travel_rules.compute.presence import days_present, midnight_absence_spans
from travel_rules.config import EngineSettings
from travel_rules.domain.goal import GoalCategory, GoalStatus, GoalType, Jurisdiction, UKTaxConfig
from travel_rules.domain.result import (
    GoalCalculationResult,
    GoalMetric,
    GoalRequirement,
    GoalVisualization,
    GoalWarning,
    RequirementStatus,
)
from travel_rules.domain.trip import TripInterval
from travel_rules.rules._common import (
    coerce_config,
    date_metric,
    days_metric,
    fmt_date,
    progress_between,
    settings_or_default,
    trip_bars,
)

logger = logging.getLogger(__name__)

RESIDENCE_DAYS = 183
OVERSEAS_TEST_DAYS = 16


def projected_threshold_day(
    spans: Sequence[DaySpan],
    year_start: date,
    year_end: date,
    needed: int,
) -> date | None:
    """Day on which the ``needed``-th UK day falls, or None if it never does."""
    n = (year_end - year_start).days
    present = np.ones(n, dtype=np.int64)
    for span in clip_spans(spans, year_start, year_end):
        present[(span.start - year_start).days : (span.end - year_start).days] = 0
    reached = np.flatnonzero(np.cumsum(present) >= needed)
    if reached.size == 0:
        return None
    return year_start + timedelta(days=int(reached[0]))


class UKTaxResidencyEngine:
    goal_type = GoalType.UK_TAX_RESIDENCY
    jurisdiction = Jurisdiction.UK
    name = "UK Tax Residency"
    category = GoalCategory.TAX
    description = "Count UK days against the 183-day automatic residence test"
    config_model = UKTaxConfig

    def calculate(
        self,
        trips: list[TripInterval],
        config: UKTaxConfig,
        reference_date: date,
        settings: EngineSettings | None = None,
    ) -> GoalCalculationResult:
        settings = settings_or_default(settings)
        config = coerce_config(self.goal_type, config, UKTaxConfig)
        year_start = config.year_start
        year_end = config.year_end + ONE_DAY
        year_days = (year_end - year_start).days
        spans = midnight_absence_spans(trips)

        elapsed_end = min(max(reference_date + ONE_DAY, year_start), year_end)
        present_to_date = days_present(spans, year_start, elapsed_end)
        absent_to_date = (elapsed_end - year_start).days - present_to_date
        days_left = (year_end - elapsed_end).days
        max_possible = present_to_date + days_left
        projected = days_present(spans, year_start, year_end)
        projected_absent = year_days - projected
        planned_absent = total_days(clip_spans(spans, elapsed_end, year_end))
        threshold_day = projected_threshold_day(spans, year_start, year_end, RESIDENCE_DAYS)
        logger.debug(
            "Tax year %s: %d UK days to date, %d projected", config.tax_year, present_to_date, projected
        )

        absence_allowance = year_days - RESIDENCE_DAYS
        if reference_date < year_start:
            status = GoalStatus.NOT_STARTED
        elif present_to_date >= RESIDENCE_DAYS:
            status = GoalStatus.ELIGIBLE
        elif max_possible < RESIDENCE_DAYS:
            status = GoalStatus.LIMIT_EXCEEDED
        elif (
            projected < RESIDENCE_DAYS
            or projected_absent >= settings.at_risk_fraction * absence_allowance
        ):
            status = GoalStatus.AT_RISK
        else:
            status = GoalStatus.ON_TRACK

        progress = 0 if status == GoalStatus.NOT_STARTED else progress_between(
            year_start, year_end, reference_date + ONE_DAY
        )
        if status == GoalStatus.ELIGIBLE:
            progress = 100

        metrics: list[GoalMetric] = [
            date_metric("tax_year_start", "Tax Year Start", year_start),
            date_metric("tax_year_end", "Tax Year End", config.year_end),
            days_metric(
                "days_present",
                "UK Days So Far",
                present_to_date,
                tooltip="Days spent in the UK at midnight since the start of the tax year",
            ),
            days_metric("days_absent", "Nights Abroad So Far", absent_to_date),
            days_metric(
                "projected_days_present",
                "Projected UK Days",
                projected,
                tooltip="UK days by year end, assuming no travel beyond planned trips",
            ),
            days_metric(
                "days_needed",
                "UK Days Still Needed",
                max(0, RESIDENCE_DAYS - present_to_date),
            ),
            days_metric("days_remaining_in_year", "Days Left in Tax Year", days_left),
            days_metric(
                "remaining_absence_allowance",
                "Days Abroad Still Available",
                max(0, projected - RESIDENCE_DAYS),
                tooltip="Further nights abroad possible while still reaching 183 UK days",
            ),
        ]
        if planned_absent:
            metrics.append(days_metric("planned_days_absent", "Planned Nights Abroad", planned_absent))

        warnings: list[GoalWarning] = []
        if status == GoalStatus.LIMIT_EXCEEDED:
            warnings.append(
                GoalWarning(
                    severity="error",
                    title="183 Days No Longer Reachable",
                    message=(
                        f"Only {max_possible} UK days are possible in tax year {config.tax_year}."
                    ),
                    action="Residence may still arise under the sufficient ties test",
                )
            )
        elif status == GoalStatus.AT_RISK and projected < RESIDENCE_DAYS:
            warnings.append(
                GoalWarning(
                    severity="warning",
                    title="Planned Travel Keeps You Below 183 Days",
                    message=(
                        f"Planned trips leave {projected} projected UK days in tax year "
                        f"{config.tax_year}."
                    ),
                    action="Review planned trips if you need to be UK resident",
                    related_trip_ids=[t.id for t in trips if t.return_date > reference_date],
                )
            )
        if status != GoalStatus.NOT_STARTED and max_possible < OVERSEAS_TEST_DAYS:
            warnings.append(
                GoalWarning(
                    severity="info",
                    title="Automatic Overseas Test",
                    message=(
                        f"Fewer than {OVERSEAS_TEST_DAYS} UK days in {config.tax_year}: "
                        "non-resident under the automatic overseas test."
                    ),
                )
            )

        uk_test: RequirementStatus
        if present_to_date >= RESIDENCE_DAYS:
            uk_test = "met"
        elif max_possible < RESIDENCE_DAYS:
            uk_test = "not_met"
        else:
            uk_test = "pending"
        overseas_test: RequirementStatus
        if max_possible < OVERSEAS_TEST_DAYS:
            overseas_test = "met"
        elif present_to_date >= OVERSEAS_TEST_DAYS:
            overseas_test = "not_met"
        else:
            overseas_test = "pending"
        requirements = [
            GoalRequirement(
                key="automatic_uk_test",
                label=f"Spend {RESIDENCE_DAYS} days in the UK",
                status=uk_test,
                detail=(
                    f"183rd UK day: {fmt_date(threshold_day)}"
                    if threshold_day is not None
                    else "Not reachable with planned travel"
                ),
            ),
            GoalRequirement(
                key="automatic_overseas_test",
                label=f"Spend fewer than {OVERSEAS_TEST_DAYS} days in the UK",
                status=overseas_test,
            ),
        ]

        in_year = [t for t in trips if t.return_date > year_start and t.departure < year_end]
        return GoalCalculationResult(
            goal_type=self.goal_type,
            status=status,
            progress_percent=progress,
            eligibility_date=threshold_day,
            days_until_eligible=(
                (threshold_day - reference_date).days if threshold_day is not None else None
            ),
            reference_date=reference_date,
            start_date=year_start,
            metrics=metrics,
            warnings=warnings,
            requirements=requirements,
            visualization=GoalVisualization(trip_bars=trip_bars(in_year, year_start)),
        )


__all__ = [
    "RESIDENCE_DAYS",
    "OVERSEAS_TEST_DAYS",
    "projected_threshold_day",
    "UKTaxResidencyEngine",
]
