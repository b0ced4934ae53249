"""Continuous-presence and days-present analysis.

Presence is the complement of the absence spans inside a goal's period.
Travel days count as present under full-day counting, so the run between two
trips covers the return day of the first through the departure day of the
next.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date

from travel_rules.compute.days import ONE_DAY, DaySpan, clip_spans, total_days, union_spans
from travel_rules.domain.trip import TripInterval


@dataclass(frozen=True)
class PresenceRun:
    """Unbroken run of in-territory days, ``start`` to ``end`` inclusive."""

    start: date | None
    end: date | None
    days: int


EMPTY_RUN = PresenceRun(start=None, end=None, days=0)


@dataclass(frozen=True)
class ContinuousPresence:
    """Presence summary for a period ``[start, reference]``.

    Attributes:
        longest: Longest run inside the period (earliest on ties).
        current: Run ending on the reference date; empty when the reference
            date is a day abroad.
        days_present: In-territory days in the period.
        days_absent: Absence days in the period.
        total_days: Days in the period.
    """

    longest: PresenceRun
    current: PresenceRun
    days_present: int
    days_absent: int
    total_days: int


def presence_runs(spans: Sequence[DaySpan], start: date, reference: date) -> list[PresenceRun]:
    """In-territory runs between absence spans within ``[start, reference]``."""
    if reference < start:
        return []
    end = reference + ONE_DAY
    runs: list[PresenceRun] = []
    cursor = start
    for span in clip_spans(union_spans(spans), start, end):
        if span.start > cursor:
            runs.append(PresenceRun(cursor, span.start - ONE_DAY, (span.start - cursor).days))
        cursor = span.end
    if cursor < end:
        runs.append(PresenceRun(cursor, reference, (end - cursor).days))
    return runs


def continuous_presence(
    spans: Sequence[DaySpan],
    start: date,
    reference: date,
) -> ContinuousPresence:
    """Longest and current presence runs between ``start`` and ``reference``."""
    if reference < start:
        return ContinuousPresence(EMPTY_RUN, EMPTY_RUN, 0, 0, 0)
    runs = presence_runs(spans, start, reference)
    total = (reference - start).days + 1
    present = sum(r.days for r in runs)
    longest = max(runs, key=lambda r: r.days) if runs else EMPTY_RUN
    current = runs[-1] if runs and runs[-1].end == reference else EMPTY_RUN
    return ContinuousPresence(
        longest=longest,
        current=current,
        days_present=present,
        days_absent=total - present,
        total_days=total,
    )


def midnight_absence_spans(intervals: Iterable[TripInterval]) -> list[DaySpan]:
    """Days whose midnight is spent abroad: departure day up to the day before return."""
    return union_spans(
        DaySpan(t.departure, t.return_date, t.source_ids) for t in intervals
    )


def days_present(spans: Sequence[DaySpan], start: date, end: date) -> int:
    """Days in ``[start, end)`` not covered by ``spans``."""
    if end <= start:
        return 0
    return (end - start).days - total_days(clip_spans(union_spans(spans), start, end))


__all__ = [
    "PresenceRun",
    "EMPTY_RUN",
    "ContinuousPresence",
    "presence_runs",
    "continuous_presence",
    "midnight_absence_spans",
    "days_present",
]
