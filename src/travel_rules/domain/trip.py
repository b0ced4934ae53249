"""Trip records and validated absence intervals.

This module provides:
- TripRecord: wire shape of one trip row as supplied by callers
- TripInterval: immutable, validated departure/return pair
- SkippedTrip: a rejected row kept for caller-side reporting
- normalize_trips: records -> sorted intervals (raise or skip-and-report)
- parse_iso_date / coerce_date: calendar-date parsing helpers
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from travel_rules.errors import InvalidTripInterval

logger = logging.getLogger(__name__)

InvalidTripPolicy = Literal["raise", "skip"]


class TripRecord(BaseModel):
    """One caller-supplied trip row.

    Dates stay as strings here; they are parsed (and rejected with the trip id
    attached) when the record becomes a TripInterval.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str
    out_date: str | None = None
    in_date: str | None = None
    out_route: str | None = None
    in_route: str | None = None
    title: str | None = Field(default=None, description="Display-only trip name")

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


def parse_iso_date(value: str | date | datetime | None) -> date | None:
    """Parse an ISO-8601 date or datetime into a calendar date.

    Timezone-aware datetimes are converted to UTC before taking the date so
    that day arithmetic never depends on the caller's offset.

    Returns:
        The calendar date, or None for empty input.

    Raises:
        ValueError: If the value is not a recognizable ISO date.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    if len(text) == 10:
        return date.fromisoformat(text)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC)
    return parsed.date()


def coerce_date(value: str | date | datetime, *, label: str = "date") -> date:
    """Like parse_iso_date but rejects empty input."""
    try:
        parsed = parse_iso_date(value)
    except ValueError as exc:
        raise ValueError(f"{label} is not an ISO date: {value!r}") from exc
    if parsed is None:
        raise ValueError(f"{label} is required")
    return parsed


@dataclass(frozen=True)
class TripInterval:
    """A validated round trip out of the home territory.

    ``departure`` is the day the subject left, ``return_date`` the day they
    came back. Route labels are display-only.
    """

    id: str
    departure: date
    return_date: date
    departure_label: str = ""
    return_label: str = ""
    source_ids: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.return_date == self.departure:
            raise InvalidTripInterval(
                self.id, f"same-day trip ({self.departure.isoformat()}) has no absence to count"
            )
        if self.return_date < self.departure:
            raise InvalidTripInterval(
                self.id,
                f"return {self.return_date.isoformat()} precedes departure "
                f"{self.departure.isoformat()}",
            )
        if not self.source_ids:
            object.__setattr__(self, "source_ids", (self.id,))

    @property
    def label(self) -> str:
        return f"{self.departure_label or 'Unknown'} -> {self.return_label or 'Unknown'}"

    @classmethod
    def from_record(cls, record: TripRecord | Mapping[str, Any]) -> TripInterval:
        """Validate one wire record into an interval."""
        if not isinstance(record, TripRecord):
            try:
                record = TripRecord.model_validate(record)
            except ValidationError as exc:
                trip_id = record.get("id") if isinstance(record, Mapping) else None
                raise InvalidTripInterval(
                    None if trip_id is None else str(trip_id), f"malformed trip record: {exc}"
                ) from exc
        try:
            departure = parse_iso_date(record.out_date)
            return_date = parse_iso_date(record.in_date)
        except ValueError as exc:
            raise InvalidTripInterval(record.id, f"unparseable date: {exc}") from exc
        if departure is None or return_date is None:
            raise InvalidTripInterval(record.id, "incomplete trip: both dates are required")
        return cls(
            id=record.id,
            departure=departure,
            return_date=return_date,
            departure_label=record.out_route or "",
            return_label=record.in_route or "",
        )


@dataclass(frozen=True)
class SkippedTrip:
    trip_id: str | None
    reason: str
    row: int = 0

    @property
    def label(self) -> str:
        """Trip id, or ``#<row>`` (1-based input position) for rows without one."""
        return self.trip_id if self.trip_id is not None else f"#{self.row}"


@dataclass(frozen=True)
class NormalizedTrips:
    """Result of normalize_trips: valid intervals plus any rejected rows."""

    intervals: tuple[TripInterval, ...]
    skipped: tuple[SkippedTrip, ...] = ()

    @property
    def skipped_ids(self) -> list[str]:
        return [s.label for s in self.skipped]


def normalize_trips(
    records: Iterable[TripRecord | TripInterval | Mapping[str, Any]],
    *,
    on_invalid: InvalidTripPolicy = "raise",
) -> NormalizedTrips:
    """Validate trip rows and sort them ascending by departure.

    Args:
        records: Wire records, mappings, or already-built intervals.
        on_invalid: "raise" fails on the first invalid row; "skip" collects
            rejected rows into ``NormalizedTrips.skipped`` so the caller can
            report them.

    Raises:
        InvalidTripInterval: In "raise" mode, for the first invalid row.
    """
    if on_invalid not in ("raise", "skip"):
        raise ValueError(f"on_invalid must be 'raise' or 'skip', got {on_invalid!r}")

    intervals: list[TripInterval] = []
    skipped: list[SkippedTrip] = []
    seen: set[str] = set()
    for row, record in enumerate(records, start=1):
        try:
            interval = (
                record if isinstance(record, TripInterval) else TripInterval.from_record(record)
            )
            if interval.id in seen:
                raise InvalidTripInterval(interval.id, "duplicate trip id")
        except InvalidTripInterval as exc:
            if on_invalid == "raise":
                raise
            logger.warning("Skipping invalid trip: %s", exc.message)
            skipped.append(SkippedTrip(trip_id=exc.trip_id, reason=exc.message, row=row))
            continue
        seen.add(interval.id)
        intervals.append(interval)

    intervals.sort(key=lambda t: (t.departure, t.return_date, t.id))
    return NormalizedTrips(intervals=tuple(intervals), skipped=tuple(skipped))


__all__ = [
    "InvalidTripPolicy",
    "TripRecord",
    "TripInterval",
    "SkippedTrip",
    "NormalizedTrips",
    "normalize_trips",
    "parse_iso_date",
    "coerce_date",
]
