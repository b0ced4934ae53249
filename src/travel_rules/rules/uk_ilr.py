"""UK Indefinite Leave to Remain engine.

Qualifying period:
    The clock starts on the visa start date when the subject entered the UK
    within ``ilr_max_pre_entry_days`` of it; the gap before entry then counts
    as absence. A later entry starts the clock on the entry date instead.

Absence rule:
    No more than ``ilr_max_absence_days`` (180) full days outside the UK in
    any rolling ``ilr_window_days`` (365) window of the qualifying period.
    Planned (future) trips are included.

Breach handling (``EngineSettings.ilr_breach_policy``):
    - sliding_period: eligibility is the earliest date whose qualifying
      period, ending on that date, contains no breaching window.
    - reset_clock: the qualifying period restarts on the first UK day after
      the breaching absence, repeated until a compliant period is found.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta

import numpy as np

from travel_rules.compute.days import (
    ONE_DAY,
    DaySpan,
    absence_spans,
    add_years,
    calendar_day_span,
    clip_spans,
    merge_overlapping,
    span_containing,
    union_spans,
)
from travel_rules.compute.presence import continuous_presence
from travel_rules.compute.rolling import (
    AbsenceTimeline,
    WindowTotal,
    max_window_absence,
    offending_windows,
)
from travel_rules.config import BreachPolicy, EngineSettings
from travel_rules.domain.goal import (
    GoalCategory,
    GoalStatus,
    GoalType,
    Jurisdiction,
    UKILRConfig,
)
from travel_rules.domain.result import (
    GoalCalculationResult,
    GoalMetric,
    GoalRequirement,
    GoalWarning,
)
from travel_rules.domain.trip import TripInterval
from travel_rules.rules._common import (
    classify,
    coerce_config,
    date_metric,
    days_metric,
    fmt_date,
    progress_between,
    related_ids,
    rolling_visualization,
    settings_or_default,
    timeline_for,
    to_offending,
)

logger = logging.getLogger(__name__)

PRE_ENTRY_ID = "pre_entry"


@dataclass(frozen=True)
class QualifyingStart:
    """Where the ILR clock starts.

    Attributes:
        start: First day of the qualifying period.
        pre_entry_days: Days between visa start and first UK entry.
        pre_entry_counted: True when those days fall inside the period (as
            absence); False when the period starts on the entry date.
    """

    start: date
    pre_entry_days: int
    pre_entry_counted: bool


@dataclass(frozen=True)
class EligibilitySearch:
    """Outcome of the eligibility date search."""

    eligibility_date: date | None
    effective_start: date
    base_date: date

    @property
    def pushed(self) -> bool:
        return self.eligibility_date is None or self.eligibility_date > self.base_date


def qualifying_start(config: UKILRConfig, settings: EngineSettings) -> QualifyingStart:
    visa_start = config.visa_start_date
    entry = config.vignette_entry_date
    if entry is None or entry == visa_start:
        return QualifyingStart(visa_start, 0, False)
    gap = (entry - visa_start).days
    if gap <= settings.ilr_max_pre_entry_days:
        return QualifyingStart(visa_start, gap, True)
    return QualifyingStart(entry, gap, False)


def ilr_absence_spans(trips: Sequence[TripInterval], qstart: QualifyingStart) -> list[DaySpan]:
    """Full-day absences inside the qualifying period, pre-entry gap included."""
    spans = absence_spans(trips)
    if qstart.pre_entry_counted:
        spans.append(
            DaySpan(
                qstart.start,
                qstart.start + timedelta(days=qstart.pre_entry_days),
                (PRE_ENTRY_ID,),
            )
        )
    return clip_spans(union_spans(spans), qstart.start, date.max)


def sliding_period_search(
    timeline: AbsenceTimeline,
    qstart: date,
    *,
    years: int,
    window_days: int,
    limit: int,
    early_days: int,
    horizon: date,
) -> EligibilitySearch:
    """Earliest date E whose qualifying period ``[E - years, E)`` is compliant.

    A breaching window starting on day s rules out every candidate whose
    period still contains s, so the search jumps straight past it.
    """
    early = timedelta(days=early_days)
    base = add_years(qstart, years) - early
    candidate = base
    while candidate <= horizon:
        period_start = max(add_years(candidate + early, -years), qstart)
        totals = timeline.forward_totals(window_days, period_start, candidate)
        over = np.flatnonzero(totals > limit)
        if over.size == 0:
            return EligibilitySearch(candidate, period_start, base)
        first_bad = period_start + timedelta(days=int(over[0]))
        following = add_years(first_bad + ONE_DAY, years) - early
        candidate = following if following > candidate else candidate + ONE_DAY
    logger.debug("No compliant ILR period found up to %s", horizon)
    return EligibilitySearch(None, qstart, base)


def reset_clock_search(
    timeline: AbsenceTimeline,
    spans: Sequence[DaySpan],
    qstart: date,
    *,
    years: int,
    window_days: int,
    limit: int,
    early_days: int,
    horizon: date,
) -> EligibilitySearch:
    """Restart the qualifying period after each breaching absence."""
    early = timedelta(days=early_days)
    base = add_years(qstart, years) - early
    start = qstart
    while start <= horizon:
        target = add_years(start, years) - early
        breach = timeline.first_day_exceeding(window_days, limit, start, target)
        if breach is None:
            return EligibilitySearch(target, start, base)
        span = span_containing(spans, breach)
        restart = span.end if span is not None else breach + ONE_DAY
        logger.debug("ILR limit exceeded on %s, clock restarts on %s", breach, restart)
        start = max(restart, start + ONE_DAY)
    return EligibilitySearch(None, start, base)


class UKILREngine:
    """UK ILR: qualifying residence with a rolling 180-in-365 absence cap."""

    goal_type = GoalType.UK_ILR
    jurisdiction = Jurisdiction.UK
    name = "UK Indefinite Leave to Remain"
    category = GoalCategory.IMMIGRATION
    description = "Track continuous residence for ILR eligibility"
    config_model = UKILRConfig

    def calculate(
        self,
        trips: list[TripInterval],
        config: UKILRConfig,
        reference_date: date,
        settings: EngineSettings | None = None,
    ) -> GoalCalculationResult:
        settings = settings_or_default(settings)
        config = coerce_config(self.goal_type, config, UKILRConfig)
        trips = sorted(trips, key=lambda t: (t.departure, t.return_date, t.id))
        window = settings.ilr_window_days
        limit = settings.ilr_max_absence_days
        years = config.track_years

        qstart = qualifying_start(config, settings)
        spans = ilr_absence_spans(trips, qstart)
        base = add_years(qstart.start, years) - timedelta(days=settings.ilr_early_application_days)
        horizon = base + timedelta(days=settings.search_horizon_days)
        timeline = timeline_for(spans, qstart.start, add_years(horizon, years) + ONE_DAY, window)

        if settings.ilr_breach_policy == BreachPolicy.RESET_CLOCK:
            search = reset_clock_search(
                timeline,
                spans,
                qstart.start,
                years=years,
                window_days=window,
                limit=limit,
                early_days=settings.ilr_early_application_days,
                horizon=horizon,
            )
        else:
            search = sliding_period_search(
                timeline,
                qstart.start,
                years=years,
                window_days=window,
                limit=limit,
                early_days=settings.ilr_early_application_days,
                horizon=horizon,
            )
        eligibility = search.eligibility_date
        logger.debug(
            "ILR %d-year track from %s: base %s, eligibility %s (%s)",
            years,
            qstart.start,
            base,
            eligibility,
            settings.ilr_breach_policy.value,
        )

        period_end = max(base, eligibility or base)
        period_spans = clip_spans(spans, qstart.start, period_end)
        peak = max_window_absence(period_spans, window)
        breaches = offending_windows(period_spans, window, limit)

        started = reference_date > qstart.start or (
            reference_date == qstart.start and bool(trips)
        )
        if not started:
            status = GoalStatus.NOT_STARTED
        elif eligibility is not None and reference_date >= eligibility:
            status = GoalStatus.ELIGIBLE
        elif search.pushed:
            status = GoalStatus.LIMIT_EXCEEDED
        else:
            status = classify(
                peak.days,
                limit,
                start=qstart.start,
                reference_date=reference_date,
                window_days=window,
                has_trips=bool(trips),
                settings=settings,
            )

        if status == GoalStatus.ELIGIBLE:
            progress = 100
        elif status == GoalStatus.NOT_STARTED:
            progress = 0
        else:
            progress = min(
                99,
                progress_between(search.effective_start, eligibility or base, reference_date),
            )

        current = 0
        if reference_date >= qstart.start:
            current = int(
                timeline.trailing_totals(
                    window, reference_date, reference_date + ONE_DAY, floor=qstart.start
                )[0]
            )

        metrics = self._metrics(
            trips, spans, timeline, qstart, reference_date, period_end, peak, current, settings
        )
        warnings = self._warnings(
            trips, qstart, status, search, peak, breaches, current, reference_date, settings
        )
        requirements = [
            GoalRequirement(
                key="qualifying_period",
                label="Complete qualifying period",
                status="met" if status == GoalStatus.ELIGIBLE else "pending",
                detail=(
                    f"Eligible from {fmt_date(eligibility)}"
                    if eligibility is not None
                    else "No eligible date within the search horizon"
                ),
            ),
            GoalRequirement(
                key="absence_limit",
                label="Stay within absence limits",
                status="not_met" if breaches else "met",
                detail=(
                    f"Exceeded {limit}-day limit in {len(breaches)} window(s)"
                    if breaches
                    else "Within limits"
                ),
            ),
        ]
        visualization = rolling_visualization(
            timeline,
            trips,
            window_days=window,
            limit=limit,
            start=qstart.start,
            end=max(reference_date, period_end),
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
            start_date=qstart.start,
            metrics=metrics,
            warnings=warnings,
            requirements=requirements,
            visualization=visualization,
        )

    def _metrics(
        self,
        trips: Sequence[TripInterval],
        spans: Sequence[DaySpan],
        timeline: AbsenceTimeline,
        qstart: QualifyingStart,
        reference_date: date,
        period_end: date,
        peak: WindowTotal,
        current: int,
        settings: EngineSettings,
    ) -> list[GoalMetric]:
        limit = settings.ilr_max_absence_days
        window = settings.ilr_window_days
        tomorrow = reference_date + ONE_DAY
        to_date = timeline.total(qstart.start, tomorrow) if reference_date >= qstart.start else 0
        planned = timeline.total(max(tomorrow, qstart.start), period_end)
        nights = sum(
            calendar_day_span(t)
            for t in merge_overlapping(trips)
            if qstart.start <= t.departure <= reference_date
        )

        metrics = [
            date_metric("qualifying_start", "Qualifying Period Start", qstart.start),
            days_metric(
                "total_days_outside",
                "Total Days Outside UK",
                to_date,
                tooltip="Total full days spent outside the UK since the qualifying period began",
            ),
            days_metric(
                "calendar_days_outside",
                "Nights Outside UK",
                nights,
                tooltip="Calendar days between departure and return, travel days included once",
            ),
        ]
        if planned:
            metrics.append(
                days_metric(
                    "planned_days_outside",
                    "Planned Days Outside UK",
                    planned,
                    tooltip="Full days of future trips inside the qualifying period",
                )
            )
        if reference_date >= qstart.start:
            presence = continuous_presence(spans, qstart.start, reference_date)
            metrics.extend(
                [
                    days_metric(
                        "continuous_leave",
                        "Days in UK",
                        presence.days_present,
                        tooltip="Days physically present in the UK",
                    ),
                    days_metric(
                        "longest_continuous_presence",
                        "Longest Stay in UK",
                        presence.longest.days,
                        tooltip=(
                            f"{fmt_date(presence.longest.start)} to {fmt_date(presence.longest.end)}"
                            if presence.longest.days
                            else None
                        ),
                    ),
                    days_metric(
                        "current_continuous_presence",
                        "Current Stay in UK",
                        presence.current.days,
                    ),
                ]
            )
        metrics.append(
            days_metric(
                "max_rolling_absence",
                "Max 12-Month Absence",
                peak.days,
                limit=limit,
                settings=settings,
                tooltip=(
                    f"Maximum absence in any rolling {window}-day period (limit: {limit} days)"
                    + (f", {fmt_date(peak.start)} to {fmt_date(peak.end)}" if peak.start else "")
                ),
            )
        )
        metrics.append(
            days_metric(
                "current_rolling",
                "Current 12-Month Total",
                current,
                limit=limit,
                settings=settings,
                tooltip=f"Absence days in the {window}-day period ending on the reference date",
            )
        )
        remaining = max(0, limit - current)
        metrics.append(
            GoalMetric(
                key="remaining_allowance",
                label="Days Available",
                value=remaining,
                unit="days",
                status="warning" if remaining < limit * (1 - settings.at_risk_fraction) else "ok",
                tooltip="Days you can still spend outside the UK in the current window",
            )
        )
        if qstart.pre_entry_days:
            metrics.append(
                days_metric(
                    "pre_entry_days",
                    "Days Before First Entry",
                    qstart.pre_entry_days,
                    limit=settings.ilr_max_pre_entry_days,
                    settings=settings,
                    tooltip="Days between the visa start date and first entry to the UK",
                )
            )
        return metrics

    def _warnings(
        self,
        trips: Sequence[TripInterval],
        qstart: QualifyingStart,
        status: GoalStatus,
        search: EligibilitySearch,
        peak: WindowTotal,
        breaches: Sequence[WindowTotal],
        current: int,
        reference_date: date,
        settings: EngineSettings,
    ) -> list[GoalWarning]:
        limit = settings.ilr_max_absence_days
        warnings: list[GoalWarning] = []

        if breaches:
            if search.eligibility_date is not None:
                action = f"Earliest eligibility moves to {fmt_date(search.eligibility_date)}"
            else:
                action = "Review your travel history; no compliant qualifying period was found"
            warnings.append(
                GoalWarning(
                    severity="error" if status == GoalStatus.LIMIT_EXCEEDED else "warning",
                    title="Absence Limit Exceeded",
                    message=(
                        f"You have exceeded the maximum of {limit} days outside the UK "
                        f"in a {settings.ilr_window_days}-day period."
                    ),
                    action=action,
                    details=[
                        f"{fmt_date(w.start)} to {fmt_date(w.end)}: {w.days} days"
                        for w in breaches
                    ],
                    related_trip_ids=related_ids(breaches, trips),
                    offending_windows=to_offending(breaches),
                )
            )
        elif peak.days >= settings.at_risk_fraction * limit:
            warnings.append(
                GoalWarning(
                    severity="warning",
                    title="Close to Absence Limit",
                    message=(
                        f"{peak.days} of {limit} allowed days are used between "
                        f"{fmt_date(peak.start)} and {fmt_date(peak.end)}."
                    ),
                    action="Plan any upcoming travel carefully",
                    related_trip_ids=related_ids([peak], trips),
                )
            )

        remaining = limit - current
        if not breaches and status != GoalStatus.ELIGIBLE and 0 <= remaining < limit * (
            1 - settings.at_risk_fraction
        ):
            warnings.append(
                GoalWarning(
                    severity="warning",
                    title="Low Remaining Allowance",
                    message=f"You only have {remaining} days left in your current 12-month window.",
                    action="Plan any upcoming travel carefully",
                )
            )

        if qstart.pre_entry_days:
            if qstart.pre_entry_counted:
                message = (
                    f"The {qstart.pre_entry_days} days between visa start and first entry "
                    "count as absence."
                )
            else:
                message = (
                    f"First entry came {qstart.pre_entry_days} days after visa start, so the "
                    f"qualifying period starts on {fmt_date(qstart.start)}."
                )
            warnings.append(GoalWarning(severity="info", title="Pre-Entry Period", message=message))

        if status not in (GoalStatus.ELIGIBLE, GoalStatus.NOT_STARTED):
            if search.eligibility_date is not None:
                days_left = (search.eligibility_date - reference_date).days
                message = (
                    f"Eligible from {fmt_date(search.eligibility_date)} "
                    f"({days_left} days from {fmt_date(reference_date)})."
                )
            else:
                message = "No eligibility date could be found within the search horizon."
            warnings.append(GoalWarning(severity="info", title="Not Yet Eligible", message=message))
        return warnings


__all__ = [
    "PRE_ENTRY_ID",
    "QualifyingStart",
    "EligibilitySearch",
    "qualifying_start",
    "ilr_absence_spans",
    "sliding_period_search",
    "reset_clock_search",
    "UKILREngine",
]
