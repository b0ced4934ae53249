"""Trip file input."""

from travel_rules.io.trips import (
    TripFileError,
    load_trip_records,
    normalize_date_text,
    parse_trip_csv,
    parse_trip_json,
)

__all__ = [
    "TripFileError",
    "load_trip_records",
    "normalize_date_text",
    "parse_trip_csv",
    "parse_trip_json",
]
