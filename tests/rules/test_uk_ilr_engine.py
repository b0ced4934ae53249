from __future__ import annotations

from datetime import date

import pytest

from travel_rules.config import BreachPolicy, EngineSettings
from travel_rules.domain.goal import GoalStatus, UKILRConfig
from travel_rules.rules.uk_ilr import (
    PRE_ENTRY_ID,
    UKILREngine,
    ilr_absence_spans,
    qualifying_start,
)

ENGINE = UKILREngine()
CONFIG = UKILRConfig(visa_start_date=date(2020, 1, 1), track_years=5)


def _run(trips, reference: date, config: UKILRConfig = CONFIG, settings=None):
    return ENGINE.calculate(trips, config, reference, settings)


class TestNoAbsence:
    def test_eligible_on_anniversary(self) -> None:
        result = _run([], date(2025, 1, 1))
        assert result.status == GoalStatus.ELIGIBLE
        assert result.eligibility_date == date(2025, 1, 1)
        assert result.progress_percent == 100
        assert result.days_until_eligible == 0

    def test_on_track_before_anniversary(self) -> None:
        result = _run([], date(2024, 6, 1))
        assert result.status == GoalStatus.ON_TRACK
        assert result.eligibility_date == date(2025, 1, 1)
        assert result.days_until_eligible == 214
        assert result.progress_percent == 88

    def test_in_progress_during_first_window(self) -> None:
        assert _run([], date(2020, 6, 1)).status == GoalStatus.IN_PROGRESS

    def test_not_started_before_visa(self) -> None:
        result = _run([], date(2019, 12, 1))
        assert result.status == GoalStatus.NOT_STARTED
        assert result.progress_percent == 0

    def test_not_started_on_visa_day_without_trips(self) -> None:
        assert _run([], date(2020, 1, 1)).status == GoalStatus.NOT_STARTED

    def test_ten_year_track(self) -> None:
        config = UKILRConfig(visa_start_date=date(2020, 1, 1), track_years=10)
        assert _run([], date(2021, 1, 1), config).eligibility_date == date(2030, 1, 1)


class TestAbsenceLimit:
    def test_exactly_at_limit_is_compliant(self, trip) -> None:
        trips = [trip("t1", "2021-01-01", "2021-07-01")]
        result = _run(trips, date(2022, 1, 1))
        assert result.metric_value("max_rolling_absence") == 180
        assert result.status == GoalStatus.AT_RISK
        assert result.eligibility_date == date(2025, 1, 1)
        titles = [w.title for w in result.warnings]
        assert "Close to Absence Limit" in titles
        assert "Low Remaining Allowance" in titles
        assert "Absence Limit Exceeded" not in titles

    def test_breach_slides_the_period(self, trip) -> None:
        trips = [trip("t1", "2021-01-01", "2021-07-02")]
        result = _run(trips, date(2024, 1, 1))
        assert result.status == GoalStatus.LIMIT_EXCEEDED
        assert result.eligibility_date == date(2026, 1, 3)
        breach = next(w for w in result.warnings if w.title == "Absence Limit Exceeded")
        assert breach.severity == "error"
        assert breach.related_trip_ids == ["t1"]
        assert breach.offending_windows[0].days == 181
        assert result.get_metric("max_rolling_absence").status == "exceeded"

    def test_breach_with_reset_clock(self, trip) -> None:
        trips = [trip("t1", "2021-01-01", "2021-07-02")]
        settings = EngineSettings(ilr_breach_policy=BreachPolicy.RESET_CLOCK)
        result = _run(trips, date(2024, 1, 1), settings=settings)
        assert result.status == GoalStatus.LIMIT_EXCEEDED
        assert result.eligibility_date == date(2026, 7, 2)

    def test_planned_trip_counts(self, trip) -> None:
        trips = [trip("future", "2023-01-01", "2023-07-02")]
        result = _run(trips, date(2022, 1, 1))
        assert result.status == GoalStatus.LIMIT_EXCEEDED
        assert result.metric_value("planned_days_outside") == 181

    def test_eligible_after_pushed_date(self, trip) -> None:
        trips = [trip("t1", "2021-01-01", "2021-07-02")]
        result = _run(trips, date(2026, 1, 3))
        assert result.status == GoalStatus.ELIGIBLE
        requirement = next(r for r in result.requirements if r.key == "absence_limit")
        assert requirement.status == "not_met"


class TestPreEntry:
    def test_short_gap_counts_as_absence(self) -> None:
        config = UKILRConfig(
            visa_start_date=date(2020, 1, 1), vignette_entry_date=date(2020, 3, 1)
        )
        result = _run([], date(2021, 1, 1), config)
        assert result.start_date == date(2020, 1, 1)
        assert result.metric_value("pre_entry_days") == 60
        assert result.metric_value("total_days_outside") == 60
        assert result.eligibility_date == date(2025, 1, 1)
        assert any(w.title == "Pre-Entry Period" for w in result.warnings)

    def test_long_gap_moves_start_to_entry(self) -> None:
        config = UKILRConfig(
            visa_start_date=date(2020, 1, 1), vignette_entry_date=date(2020, 8, 1)
        )
        result = _run([], date(2021, 1, 1), config)
        assert result.start_date == date(2020, 8, 1)
        assert result.eligibility_date == date(2025, 8, 1)
        assert result.metric_value("total_days_outside") == 0

    def test_pre_entry_span_is_tagged(self) -> None:
        config = UKILRConfig(
            visa_start_date=date(2020, 1, 1), vignette_entry_date=date(2020, 1, 31)
        )
        qstart = qualifying_start(config, EngineSettings())
        spans = ilr_absence_spans([], qstart)
        assert spans[0].source_ids == (PRE_ENTRY_ID,)
        assert spans[0].days == 30


def test_metrics_as_of_reference(trip) -> None:
    result = _run([trip("t1", "2023-03-01", "2023-03-11")], date(2023, 6, 1))
    assert result.metric_value("total_days_outside") == 9
    assert result.metric_value("calendar_days_outside") == 10
    assert result.metric_value("current_rolling") == 9
    assert result.metric_value("remaining_allowance") == 171
    assert result.metric_value("current_continuous_presence") == 83
    assert result.get_metric("planned_days_outside") is None


def test_early_application_window(trip) -> None:
    settings = EngineSettings(ilr_early_application_days=28)
    assert _run([], date(2024, 6, 1), settings=settings).eligibility_date == date(2024, 12, 4)


def test_progress_never_decreases(trip) -> None:
    trips = [
        trip("a", "2020-05-01", "2020-06-15"),
        trip("b", "2022-02-01", "2022-04-20"),
        trip("c", "2024-08-01", "2024-08-20"),
    ]
    previous = -1
    for year in range(2019, 2026):
        for month in (1, 4, 7, 10):
            result = _run(trips, date(year, month, 15))
            assert result.progress_percent >= previous
            previous = result.progress_percent
    assert previous == 100


@pytest.mark.parametrize("track", [2, 3, 5, 10])
def test_visualization_covers_period(track: int) -> None:
    config = UKILRConfig(visa_start_date=date(2020, 1, 1), track_years=track)
    result = _run([], date(2021, 1, 1), config)
    points = result.visualization.rolling_absence_data
    assert points[0].day == date(2020, 1, 1)
    assert all(p.risk_level == "low" for p in points)
