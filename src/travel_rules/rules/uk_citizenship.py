"""British citizenship by naturalisation, following ILR.

Requirements checked against the trip history:
- residence: no more than 90 full days abroad per qualifying year over the
  qualifying period ending on the application date (450 over 5 years, 270
  over 3 years when married to a British citizen);
- final year: no more than 90 days abroad in the last 12 months;
- settled status: ILR held for 12 months, unless married to a British citizen.

Good character, language and Life in the UK are reported as untracked
checklist items.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta

from travel_rules.compute.days import ONE_DAY, absence_spans, add_years
from travel_rules.compute.rolling import AbsenceTimeline
from travel_rules.config import EngineSettings
from travel_rules.domain.goal import (
    GoalCategory,
    GoalStatus,
    GoalType,
    Jurisdiction,
    UKCitizenshipConfig,
)
from travel_rules.domain.result import GoalCalculationResult, GoalRequirement, GoalWarning
from travel_rules.domain.trip import TripInterval
from travel_rules.rules._common import (
    coerce_config,
    date_metric,
    days_metric,
    fmt_date,
    progress_between,
    rolling_visualization,
    settings_or_default,
    timeline_for,
)

logger = logging.getLogger(__name__)

DAYS_PER_QUALIFYING_YEAR = 90
FINAL_YEAR_LIMIT = 90
FINAL_YEAR_DAYS = 365


@dataclass(frozen=True)
class AbsenceCheck:
    """Absence figures for an application made on ``day``."""

    day: date
    period_total: int
    final_year_total: int
    period_limit: int

    @property
    def period_ok(self) -> bool:
        return self.period_total <= self.period_limit

    @property
    def final_year_ok(self) -> bool:
        return self.final_year_total <= FINAL_YEAR_LIMIT

    @property
    def ok(self) -> bool:
        return self.period_ok and self.final_year_ok


def check_application_day(timeline: AbsenceTimeline, day: date, years: int) -> AbsenceCheck:
    """Absence over the ``years`` and the 12 months before ``day``."""
    return AbsenceCheck(
        day=day,
        period_total=timeline.total(add_years(day, -years), day),
        final_year_total=timeline.total(add_years(day, -1), day),
        period_limit=DAYS_PER_QUALIFYING_YEAR * years,
    )


class UKCitizenshipEngine:
    goal_type = GoalType.UK_CITIZENSHIP
    jurisdiction = Jurisdiction.UK
    name = "British Citizenship"
    category = GoalCategory.IMMIGRATION
    description = "Track residence and absence limits for naturalisation"
    config_model = UKCitizenshipConfig

    def calculate(
        self,
        trips: list[TripInterval],
        config: UKCitizenshipConfig,
        reference_date: date,
        settings: EngineSettings | None = None,
    ) -> GoalCalculationResult:
        settings = settings_or_default(settings)
        config = coerce_config(self.goal_type, config, UKCitizenshipConfig)
        trips = sorted(trips, key=lambda t: (t.departure, t.return_date, t.id))
        years = config.qualifying_years or (3 if config.married_to_british else 5)
        grant = config.ilr_grant_date

        base = grant if config.married_to_british else add_years(grant, 1)
        horizon = base + timedelta(days=settings.search_horizon_days)
        spans = absence_spans(trips)
        timeline = timeline_for(
            spans, add_years(grant, -years - 1), horizon + ONE_DAY, FINAL_YEAR_DAYS
        )

        at_base = check_application_day(timeline, base, years)
        eligibility: date | None = None
        day = base
        while day <= horizon:
            if check_application_day(timeline, day, years).ok:
                eligibility = day
                break
            day += ONE_DAY
        logger.debug("Citizenship eligibility for ILR granted %s: %s", grant, eligibility)
        pushed = eligibility is None or eligibility > base

        if reference_date < grant:
            status = GoalStatus.NOT_STARTED
        elif eligibility is not None and reference_date >= eligibility:
            status = GoalStatus.ELIGIBLE
        elif pushed:
            status = GoalStatus.LIMIT_EXCEEDED
        elif (
            at_base.period_total >= settings.at_risk_fraction * at_base.period_limit
            or at_base.final_year_total >= settings.at_risk_fraction * FINAL_YEAR_LIMIT
        ):
            status = GoalStatus.AT_RISK
        elif (reference_date - grant).days + 1 >= FINAL_YEAR_DAYS:
            status = GoalStatus.ON_TRACK
        else:
            status = GoalStatus.IN_PROGRESS

        if status == GoalStatus.ELIGIBLE:
            progress = 100
        elif status == GoalStatus.NOT_STARTED:
            progress = 0
        else:
            progress = min(99, progress_between(grant, eligibility or base, reference_date))

        today = check_application_day(timeline, reference_date + ONE_DAY, years)
        ilr_held = max(0, (reference_date - grant).days)
        metrics = [
            date_metric("ilr_grant_date", "ILR Granted", grant),
            days_metric("ilr_held", "Days Holding ILR", ilr_held),
            days_metric(
                "qualifying_period_absence",
                f"Absence in Last {years} Years",
                today.period_total,
                limit=today.period_limit,
                settings=settings,
                tooltip=f"Full days abroad in the {years} years up to the reference date",
            ),
            days_metric(
                "final_year_absence",
                "Absence in Last 12 Months",
                today.final_year_total,
                limit=FINAL_YEAR_LIMIT,
                settings=settings,
            ),
        ]
        if eligibility is not None:
            at_elig = check_application_day(timeline, eligibility, years)
            metrics.append(
                days_metric(
                    "absence_at_eligibility",
                    "Qualifying Absence at Eligibility",
                    at_elig.period_total,
                    limit=at_elig.period_limit,
                    settings=settings,
                )
            )

        warnings: list[GoalWarning] = []
        if pushed:
            failed = []
            if not at_base.period_ok:
                failed.append(
                    f"{at_base.period_total} days abroad in the {years} years before "
                    f"{fmt_date(base)} (limit {at_base.period_limit})"
                )
            if not at_base.final_year_ok:
                failed.append(
                    f"{at_base.final_year_total} days abroad in the 12 months before "
                    f"{fmt_date(base)} (limit {FINAL_YEAR_LIMIT})"
                )
            warnings.append(
                GoalWarning(
                    severity="error" if status == GoalStatus.LIMIT_EXCEEDED else "warning",
                    title="Absence Limit Exceeded",
                    message="Absences push the earliest application date back.",
                    action=(
                        f"Earliest application date: {fmt_date(eligibility)}"
                        if eligibility is not None
                        else "No compliant application date within the search horizon"
                    ),
                    details=failed,
                )
            )
        elif status == GoalStatus.AT_RISK:
            warnings.append(
                GoalWarning(
                    severity="warning",
                    title="Close to Absence Limit",
                    message=(
                        f"Projected absence at {fmt_date(base)}: {at_base.period_total} of "
                        f"{at_base.period_limit} days over {years} years, "
                        f"{at_base.final_year_total} of {FINAL_YEAR_LIMIT} in the final year."
                    ),
                    action="Plan any upcoming travel carefully",
                )
            )

        held_needed = not config.married_to_british
        requirements = [
            GoalRequirement(
                key="qualifying_period",
                label=f"Live in the UK for {years} years",
                status="met" if status == GoalStatus.ELIGIBLE else "pending",
                detail=(
                    f"Eligible from {fmt_date(eligibility)}"
                    if eligibility is not None
                    else "No eligible date within the search horizon"
                ),
            ),
            GoalRequirement(
                key="total_absence",
                label=f"No more than {at_base.period_limit} days abroad",
                status="met" if at_base.period_ok else "not_met",
            ),
            GoalRequirement(
                key="final_year_absence",
                label=f"No more than {FINAL_YEAR_LIMIT} days abroad in the final 12 months",
                status="met" if at_base.final_year_ok else "not_met",
            ),
            GoalRequirement(
                key="ilr_held",
                label="Hold ILR for 12 months" if held_needed else "Hold ILR",
                status=(
                    "met"
                    if reference_date >= (add_years(grant, 1) if held_needed else grant)
                    else "pending"
                ),
            ),
            GoalRequirement(
                key="life_in_uk_test",
                label="Pass the Life in the UK test",
                status="unknown",
                detail="Not tracked",
            ),
            GoalRequirement(
                key="english_language",
                label="Meet the English language requirement",
                status="unknown",
                detail="Not tracked",
            ),
        ]

        visualization = rolling_visualization(
            timeline,
            trips,
            window_days=FINAL_YEAR_DAYS,
            limit=FINAL_YEAR_LIMIT,
            start=grant,
            end=max(reference_date, eligibility or base),
            settings=settings,
        )
        return GoalCalculationResult(
            goal_type=self.goal_type,
            status=status,
            progress_percent=progress,
            eligibility_date=eligibility,
            days_until_eligible=(
                (eligibility - reference_date).days if eligibility is not None else None
            ),
            reference_date=reference_date,
            start_date=grant,
            metrics=metrics,
            warnings=warnings,
            requirements=requirements,
            visualization=visualization,
        )


__all__ = [
    "DAYS_PER_QUALIFYING_YEAR",
    "FINAL_YEAR_LIMIT",
    "AbsenceCheck",
    "check_application_day",
    "UKCitizenshipEngine",
]
