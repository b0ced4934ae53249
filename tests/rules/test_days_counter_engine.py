from __future__ import annotations

from datetime import date

from travel_rules.domain.goal import DaysCounterConfig, GoalStatus
from travel_rules.rules.days_counter import DaysCounterEngine

ENGINE = DaysCounterEngine()
START = date(2024, 1, 1)


def test_days_away(trip) -> None:
    config = DaysCounterConfig(start_date=START)
    result = ENGINE.calculate([trip("t1", "2024-01-10", "2024-01-20")], config, date(2024, 1, 31))
    assert result.status == GoalStatus.IN_PROGRESS
    assert result.metric_value("primary_count") == 9
    assert result.metric_value("tracking_period") == 31
    assert result.metric_value("days_present") == 22
    assert result.metric_value("percentage") == 29
    assert result.progress_percent == 0


def test_days_present(trip) -> None:
    config = DaysCounterConfig(
        start_date=START, count_direction="days_present", reference_location="London"
    )
    result = ENGINE.calculate([trip("t1", "2024-01-10", "2024-01-20")], config, date(2024, 1, 31))
    primary = result.get_metric("primary_count")
    assert primary.value == 22
    assert primary.label == "Days in London"
    assert result.metric_value("days_away") == 9
    assert result.metric_value("percentage") == 71


def test_trip_clipped_to_reference(trip) -> None:
    config = DaysCounterConfig(start_date=START)
    result = ENGINE.calculate([trip("t1", "2024-01-25", "2024-02-10")], config, date(2024, 1, 31))
    assert result.metric_value("primary_count") == 6


def test_not_started() -> None:
    config = DaysCounterConfig(start_date=START)
    result = ENGINE.calculate([], config, date(2023, 12, 1))
    assert result.status == GoalStatus.NOT_STARTED
    assert result.metrics == []
    assert ENGINE.calculate([], config, START).status == GoalStatus.NOT_STARTED


def test_start_defaults_to_first_departure(trip) -> None:
    result = ENGINE.calculate(
        [trip("t1", "2024-03-01", "2024-03-05")], DaysCounterConfig(), date(2024, 3, 31)
    )
    assert result.start_date == date(2024, 3, 1)
    assert result.metric_value("tracking_period") == 31
