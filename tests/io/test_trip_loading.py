from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from travel_rules.domain.trip import normalize_trips
from travel_rules.io.trips import (
    TripFileError,
    load_trip_records,
    normalize_date_text,
    parse_trip_csv,
    parse_trip_json,
)


class TestParseTripCsv:
    def test_spreadsheet_headers(self) -> None:
        text = (
            "Trip ID,Date Out,Date In,Departure Route,Return Route\n"
            "paris,10/01/2024,20/01/2024,LHR,CDG\n"
            ",,,,\n"
            ",2024-03-01,2024-03-09,,\n"
        )
        rows = parse_trip_csv(text)
        assert rows == [
            {
                "id": "paris",
                "outDate": "2024-01-10",
                "inDate": "2024-01-20",
                "outRoute": "LHR",
                "inRoute": "CDG",
            },
            {"id": "3", "outDate": "2024-03-01", "inDate": "2024-03-09", "outRoute": "", "inRoute": ""},
        ]

    def test_rows_feed_normalization(self) -> None:
        rows = parse_trip_csv("outDate,inDate\n2024-01-10,2024-01-20\n")
        intervals = normalize_trips(rows).intervals
        assert intervals[0].id == "1"
        assert intervals[0].departure == date(2024, 1, 10)

    def test_quoted_fields(self) -> None:
        rows = parse_trip_csv('outDate,inDate,title\n2024-01-10,2024-01-20,"Paris, then\nLyon"\n')
        assert rows[0]["title"] == "Paris, then\nLyon"

    def test_missing_date_columns(self) -> None:
        with pytest.raises(TripFileError, match="departure and return date columns"):
            parse_trip_csv("Date Out,Destination\n2024-01-10,Paris\n")

    def test_empty_text(self) -> None:
        with pytest.raises(TripFileError, match="no header"):
            parse_trip_csv("")


class TestParseTripJson:
    def test_list_payload(self) -> None:
        rows = parse_trip_json('[{"outDate": "2024-01-10", "inDate": "2024-01-20"}]')
        assert rows == [{"outDate": "2024-01-10", "inDate": "2024-01-20", "id": "1"}]

    def test_object_payload(self) -> None:
        rows = parse_trip_json('{"trips": [{"id": 7, "out_date": "10.01.2024", "in_date": "2024-01-20"}]}')
        assert rows[0]["id"] == 7
        assert rows[0]["outDate"] == "2024-01-10"

    def test_malformed(self) -> None:
        with pytest.raises(TripFileError, match="Malformed JSON"):
            parse_trip_json("{")

    def test_wrong_shape(self) -> None:
        with pytest.raises(TripFileError, match="must be a list"):
            parse_trip_json('{"journeys": []}')
        with pytest.raises(TripFileError, match="not an object"):
            parse_trip_json('["2024-01-01"]')


def test_normalize_date_text() -> None:
    assert normalize_date_text(" 31/12/2024 ") == "2024-12-31"
    assert normalize_date_text("31-12-2024") == "2024-12-31"
    assert normalize_date_text("2024-01-10T10:00:00Z") == "2024-01-10T10:00:00Z"
    assert normalize_date_text("someday") == "someday"


def test_load_trip_records_by_suffix(tmp_path: Path) -> None:
    csv_path = tmp_path / "trips.CSV"
    csv_path.write_text("\ufeffoutDate,inDate\n2024-01-10,2024-01-20\n", encoding="utf-8")
    json_path = tmp_path / "trips.json"
    json_path.write_text('[{"id": "a", "outDate": "2024-01-10", "inDate": "2024-01-20"}]', encoding="utf-8")
    assert load_trip_records(csv_path)[0]["outDate"] == "2024-01-10"
    assert load_trip_records(json_path)[0]["id"] == "a"


def test_load_missing_file(tmp_path: Path) -> None:
    with pytest.raises(TripFileError, match="Trip file not found"):
        load_trip_records(tmp_path / "missing.json")


def test_load_non_utf8_file(tmp_path: Path) -> None:
    path = tmp_path / "trips.csv"
    path.write_bytes(b"\xff\xfeoutDate,inDate\n")
    with pytest.raises(TripFileError, match="not valid UTF-8"):
        load_trip_records(path)
