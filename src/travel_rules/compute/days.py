"""Pure day-count primitives over trip intervals.

This module contains ONLY calendar-date arithmetic - no I/O, no clock reads.
All arithmetic uses ``datetime.date`` ordinals (proleptic Gregorian), so
leap days and century years come out right and daylight-saving offsets never
enter the picture.

Conventions:
- A trip (departure D1, return D2) keeps the subject abroad for the *full
  days* D1+1 .. D2-1; the travel days themselves count as present.
- Internally, absences are ``DaySpan`` half-open day ranges ``[start, end)``.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta

from travel_rules.domain.trip import TripInterval

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class DaySpan:
    """Half-open range of calendar days ``[start, end)``.

    Attributes:
        start: First day in the span.
        end: First day after the span.
        source_ids: Trip ids that contributed to the span.
    """

    start: date
    end: date
    source_ids: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"DaySpan end {self.end} precedes start {self.start}")

    @property
    def days(self) -> int:
        return (self.end - self.start).days

    @property
    def last_day(self) -> date:
        """Last day inside the span (inclusive); undefined for empty spans."""
        return self.end - ONE_DAY

    def overlap_days(self, start: date, end: date) -> int:
        """Number of span days inside ``[start, end)``."""
        lo = max(self.start, start)
        hi = min(self.end, end)
        return max(0, (hi - lo).days)


def days_between(start: date, end: date) -> int:
    """Signed whole-day difference ``end - start``."""
    return (end - start).days


def add_years(day: date, years: int) -> date:
    """Add calendar years; Feb 29 maps to Feb 28 in non-leap target years."""
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        return day.replace(year=day.year + years, day=28)


def full_days_abroad(interval: TripInterval) -> int:
    """Full days spent abroad, excluding both the departure and return day."""
    return (interval.return_date - interval.departure).days - 1


def calendar_day_span(interval: TripInterval) -> int:
    """Calendar days between departure and return (nights away)."""
    return (interval.return_date - interval.departure).days


def merge_overlapping(intervals: Iterable[TripInterval]) -> list[TripInterval]:
    """Coalesce overlapping or touching intervals.

    Two intervals merge when ``next.departure <= current.return_date``; the
    merged interval spans ``min(departure)`` to ``max(return_date)`` and keeps
    the first interval's id plus every source id. The result does not depend
    on input order.
    """
    ordered = sorted(intervals, key=lambda t: (t.departure, t.return_date, t.id))
    merged: list[TripInterval] = []
    for interval in ordered:
        if merged and interval.departure <= merged[-1].return_date:
            current = merged[-1]
            if interval.return_date > current.return_date:
                return_date = interval.return_date
                return_label = interval.return_label
            else:
                return_date = current.return_date
                return_label = current.return_label
            merged[-1] = TripInterval(
                id=current.id,
                departure=current.departure,
                return_date=return_date,
                departure_label=current.departure_label,
                return_label=return_label,
                source_ids=current.source_ids + interval.source_ids,
            )
        else:
            merged.append(interval)
    return merged


def absence_spans(
    intervals: Iterable[TripInterval],
    *,
    include_travel_days: bool = False,
) -> list[DaySpan]:
    """Convert intervals into sorted, disjoint absence spans.

    Args:
        intervals: Trip intervals in any order, possibly overlapping.
        include_travel_days: Count departure and return days as absent
            (stay-day counting) instead of full days only.

    Returns:
        Non-empty spans sorted by start; overlapping absence is counted once.
    """
    spans: list[DaySpan] = []
    for interval in merge_overlapping(intervals):
        if include_travel_days:
            span = DaySpan(interval.departure, interval.return_date + ONE_DAY, interval.source_ids)
        else:
            span = DaySpan(interval.departure + ONE_DAY, interval.return_date, interval.source_ids)
        if span.days > 0:
            spans.append(span)
    return union_spans(spans)


def union_spans(spans: Iterable[DaySpan]) -> list[DaySpan]:
    """Sort spans and merge any that overlap or touch."""
    out: list[DaySpan] = []
    for span in sorted(spans, key=lambda s: (s.start, s.end)):
        if span.days == 0:
            continue
        if out and span.start <= out[-1].end:
            last = out[-1]
            out[-1] = DaySpan(last.start, max(last.end, span.end), last.source_ids + span.source_ids)
        else:
            out.append(span)
    return out


def clip_spans(spans: Sequence[DaySpan], start: date, end: date) -> list[DaySpan]:
    """Restrict spans to ``[start, end)``, dropping spans that fall outside."""
    clipped: list[DaySpan] = []
    for span in spans:
        lo = max(span.start, start)
        hi = min(span.end, end)
        if lo < hi:
            clipped.append(DaySpan(lo, hi, span.source_ids))
    return clipped


def total_days(spans: Iterable[DaySpan]) -> int:
    return sum(span.days for span in spans)


def span_containing(spans: Sequence[DaySpan], day: date) -> DaySpan | None:
    """Return the span that contains ``day``, if any."""
    for span in spans:
        if span.start <= day < span.end:
            return span
        if span.start > day:
            break
    return None


__all__ = [
    "ONE_DAY",
    "DaySpan",
    "days_between",
    "add_years",
    "full_days_abroad",
    "calendar_day_span",
    "merge_overlapping",
    "absence_spans",
    "union_spans",
    "clip_spans",
    "total_days",
    "span_containing",
]
