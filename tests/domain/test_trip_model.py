from __future__ import annotations

import logging
from datetime import date

import pytest

from travel_rules.domain.trip import (
    TripInterval,
    TripRecord,
    coerce_date,
    normalize_trips,
    parse_iso_date,
)
from travel_rules.errors import InvalidTripInterval


class TestTripInterval:
    def test_same_day_trip_is_rejected(self) -> None:
        with pytest.raises(InvalidTripInterval) as exc_info:
            TripInterval("t1", date(2024, 1, 10), date(2024, 1, 10))
        assert exc_info.value.trip_id == "t1"
        assert "same-day" in exc_info.value.message

    def test_return_before_departure_is_rejected(self) -> None:
        with pytest.raises(InvalidTripInterval, match="precedes departure"):
            TripInterval("t2", date(2024, 1, 10), date(2024, 1, 5))

    def test_source_ids_default_to_own_id(self) -> None:
        interval = TripInterval("t1", date(2024, 1, 10), date(2024, 1, 20))
        assert interval.source_ids == ("t1",)

    def test_label(self) -> None:
        interval = TripInterval(
            "t1", date(2024, 1, 10), date(2024, 1, 20), departure_label="Heathrow"
        )
        assert interval.label == "Heathrow -> Unknown"


class TestFromRecord:
    def test_camel_case_record(self) -> None:
        interval = TripInterval.from_record(
            {
                "id": "t1",
                "outDate": "2024-01-10",
                "inDate": "2024-01-20",
                "outRoute": "LHR",
                "inRoute": "CDG",
                "title": "Paris",
            }
        )
        assert interval.departure == date(2024, 1, 10)
        assert interval.return_date == date(2024, 1, 20)
        assert interval.departure_label == "LHR"
        assert interval.return_label == "CDG"

    def test_snake_case_record_and_int_id(self) -> None:
        interval = TripInterval.from_record({"id": 7, "out_date": "2024-01-10", "in_date": "2024-01-12"})
        assert interval.id == "7"

    def test_record_model_accepted(self) -> None:
        record = TripRecord(id="t1", out_date="2024-01-10", in_date="2024-01-12")
        assert TripInterval.from_record(record).id == "t1"

    def test_timezone_aware_datetimes_use_utc_date(self) -> None:
        interval = TripInterval.from_record(
            {"id": "t1", "outDate": "2024-01-10T23:30:00-02:00", "inDate": "2024-01-20"}
        )
        assert interval.departure == date(2024, 1, 11)

    def test_missing_return_date(self) -> None:
        with pytest.raises(InvalidTripInterval, match="incomplete trip") as exc_info:
            TripInterval.from_record({"id": "t1", "outDate": "2024-01-10"})
        assert exc_info.value.trip_id == "t1"

    def test_unparseable_date(self) -> None:
        with pytest.raises(InvalidTripInterval, match="unparseable date"):
            TripInterval.from_record({"id": "t1", "outDate": "10 Jan", "inDate": "2024-01-20"})

    def test_missing_id_is_malformed(self) -> None:
        with pytest.raises(InvalidTripInterval, match="malformed trip record") as exc_info:
            TripInterval.from_record({"outDate": "2024-01-10", "inDate": "2024-01-20"})
        assert exc_info.value.trip_id is None


class TestNormalizeTrips:
    def test_sorted_by_departure(self) -> None:
        result = normalize_trips(
            [
                {"id": "b", "outDate": "2024-03-01", "inDate": "2024-03-05"},
                {"id": "a", "outDate": "2024-01-01", "inDate": "2024-01-05"},
            ]
        )
        assert [t.id for t in result.intervals] == ["a", "b"]
        assert result.skipped == ()

    def test_raise_mode_fails_on_first_invalid(self) -> None:
        with pytest.raises(InvalidTripInterval) as exc_info:
            normalize_trips(
                [
                    {"id": "ok", "outDate": "2024-01-01", "inDate": "2024-01-05"},
                    {"id": "bad", "outDate": "2024-02-01", "inDate": "2024-02-01"},
                ]
            )
        assert exc_info.value.trip_id == "bad"

    def test_skip_mode_reports_skipped_ids(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="travel_rules.domain.trip"):
            result = normalize_trips(
                [
                    {"id": "ok", "outDate": "2024-01-01", "inDate": "2024-01-05"},
                    {"id": "bad", "outDate": "2024-02-01", "inDate": "2024-01-01"},
                    {"id": "half", "outDate": "2024-03-01"},
                ],
                on_invalid="skip",
            )
        assert [t.id for t in result.intervals] == ["ok"]
        assert result.skipped_ids == ["bad", "half"]
        assert "Skipping invalid trip" in caplog.text

    def test_skip_mode_reports_rows_without_id(self) -> None:
        result = normalize_trips(
            [
                {"id": "ok", "outDate": "2024-01-01", "inDate": "2024-01-05"},
                {"outDate": "2024-02-01", "inDate": "2024-02-05"},
                {"id": "same", "outDate": "2024-03-01", "inDate": "2024-03-01"},
            ],
            on_invalid="skip",
        )
        assert result.skipped_ids == ["#2", "same"]
        assert result.skipped[0].row == 2

    def test_duplicate_ids_rejected(self) -> None:
        with pytest.raises(InvalidTripInterval, match="duplicate trip id"):
            normalize_trips(
                [
                    {"id": "a", "outDate": "2024-01-01", "inDate": "2024-01-05"},
                    {"id": "a", "outDate": "2024-02-01", "inDate": "2024-02-05"},
                ]
            )

    def test_intervals_pass_through(self) -> None:
        interval = TripInterval("t1", date(2024, 1, 1), date(2024, 1, 3))
        assert normalize_trips([interval]).intervals == (interval,)

    def test_unknown_policy(self) -> None:
        with pytest.raises(ValueError, match="on_invalid"):
            normalize_trips([], on_invalid="ignore")  # type: ignore[arg-type]


def test_parse_iso_date_empty_is_none() -> None:
    assert parse_iso_date(None) is None
    assert parse_iso_date("  ") is None


def test_parse_iso_date_rejects_slashes() -> None:
    with pytest.raises(ValueError):
        parse_iso_date("2024/01/01")


def test_coerce_date_requires_value() -> None:
    assert coerce_date("2024-02-29") == date(2024, 2, 29)
    with pytest.raises(ValueError, match="reference_date is required"):
        coerce_date("", label="reference_date")
    with pytest.raises(ValueError, match="not an ISO date"):
        coerce_date("yesterday")
