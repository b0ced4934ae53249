"""Rolling-window absence analysis.

Two complementary views of the same data:

- ``max_window_absence``: the largest absence total inside any window of
  ``W`` days, found with a sweep over span starts (O(n log n) for n spans).
  The maximum of a sliding sum over disjoint spans is always reached with
  the window starting on a span start, so only those windows are tested.
- ``AbsenceTimeline``: a dense daily absence indicator with prefix sums
  (numpy), for per-day questions such as "absence in the 12 months ending
  today", the first day a limit is crossed, or chart series.

Windows are counted in calendar days. A window starting on day ``s`` covers
``[s, s + W)``; the window "ending on" day ``t`` covers ``(t - W, t]``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta

import numpy as np
from numpy.typing import NDArray

from travel_rules.compute.days import DaySpan, union_spans

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WindowTotal:
    """Absence total of one rolling window.

    Attributes:
        days: Absence days inside the window.
        start: First day of the window, or None when there is no absence.
        end: Last day of the window (inclusive), or None.
        source_ids: Trip ids with absence inside the window.
    """

    days: int
    start: date | None = None
    end: date | None = None
    source_ids: tuple[str, ...] = field(default_factory=tuple)


def max_window_absence(spans: Sequence[DaySpan], window_days: int) -> WindowTotal:
    """Maximum absence inside any ``window_days``-long window.

    Args:
        spans: Absence spans; they are normalized (sorted, merged) first.
        window_days: Window length W in days.

    Returns:
        WindowTotal for the earliest window reaching the maximum. A single
        span longer than W contributes exactly W.
    """
    if window_days <= 0:
        raise ValueError(f"window_days must be > 0, got {window_days}")
    merged = union_spans(spans)
    if not merged:
        return WindowTotal(days=0)

    starts = [s.start.toordinal() for s in merged]
    ends = [s.end.toordinal() for s in merged]
    prefix = [0]
    for lo, hi in zip(starts, ends):
        prefix.append(prefix[-1] + (hi - lo))

    best_days = -1
    best_i = best_j = 0
    j = 0
    n = len(merged)
    for i in range(n):
        window_end = starts[i] + window_days
        j = max(j, i)
        while j < n and ends[j] <= window_end:
            j += 1
        total = prefix[j] - prefix[i]
        last = j
        if j < n and starts[j] < window_end:
            total += window_end - starts[j]
            last = j + 1
        if total > best_days:
            best_days, best_i, best_j = total, i, last

    start = merged[best_i].start
    ids: list[str] = []
    for span in merged[best_i:best_j]:
        ids.extend(span.source_ids)
    return WindowTotal(
        days=best_days,
        start=start,
        end=start + timedelta(days=window_days - 1),
        source_ids=tuple(ids),
    )


class AbsenceTimeline:
    """Daily absence indicator over ``[origin, end)`` with prefix sums.

    Days outside the timeline are treated as present. Build it wide enough
    for the questions being asked (callers pad by one window on each side).
    """

    def __init__(self, spans: Sequence[DaySpan], origin: date, end: date) -> None:
        if end < origin:
            raise ValueError(f"timeline end {end} precedes origin {origin}")
        self.spans = union_spans(spans)
        self.origin = origin
        self.end = end
        n = (end - origin).days
        indicator = np.zeros(n, dtype=np.int64)
        for span in self.spans:
            lo = max(0, (span.start - origin).days)
            hi = min(n, (span.end - origin).days)
            if lo < hi:
                indicator[lo:hi] = 1
        self.indicator: NDArray[np.int64] = indicator
        self._cum: NDArray[np.int64] = np.concatenate(
            [np.zeros(1, dtype=np.int64), np.cumsum(indicator)]
        )

    @classmethod
    def covering(
        cls,
        spans: Sequence[DaySpan],
        start: date,
        end: date,
        *,
        pad_days: int = 0,
    ) -> AbsenceTimeline:
        """Timeline covering ``[start, end)`` and every span, padded both ways."""
        merged = union_spans(spans)
        lo = min([start] + [s.start for s in merged])
        hi = max([end] + [s.end for s in merged])
        pad = timedelta(days=pad_days)
        return cls(merged, lo - pad, hi + pad)

    def __len__(self) -> int:
        return int(self.indicator.size)

    def _index(self, day: date) -> int:
        return min(max((day - self.origin).days, 0), len(self))

    def day_at(self, index: int) -> date:
        return self.origin + timedelta(days=int(index))

    def total(self, start: date, end: date) -> int:
        """Absence days in ``[start, end)``."""
        lo, hi = self._index(start), self._index(end)
        if hi <= lo:
            return 0
        return int(self._cum[hi] - self._cum[lo])

    def window_total_ending(self, day: date, window_days: int) -> int:
        """Absence in the window ending on ``day`` (inclusive)."""
        return self.total(day - timedelta(days=window_days - 1), day + timedelta(days=1))

    def forward_totals(self, window_days: int, start: date, end: date) -> NDArray[np.int64]:
        """Totals of windows ``[s, s + W)`` clipped to ``[start, end)``, for s in ``[start, end)``."""
        lo, hi = self._index(start), self._index(end)
        if hi <= lo:
            return np.zeros(0, dtype=np.int64)
        idx = np.arange(lo, hi)
        upper = np.minimum(idx + window_days, hi)
        return self._cum[upper] - self._cum[idx]

    def trailing_totals(
        self,
        window_days: int,
        start: date,
        end: date,
        *,
        floor: date | None = None,
    ) -> NDArray[np.int64]:
        """Totals of windows ending on each day t in ``[start, end)``.

        Args:
            window_days: Window length W.
            start: First window end day.
            end: One past the last window end day.
            floor: Ignore absence before this day (e.g. a qualifying start).
        """
        lo, hi = self._index(start), self._index(end)
        if hi <= lo:
            return np.zeros(0, dtype=np.int64)
        idx = np.arange(lo, hi)
        lower = np.maximum(idx - window_days + 1, 0)
        if floor is not None:
            lower = np.maximum(lower, self._index(floor))
        lower = np.minimum(lower, idx + 1)
        return self._cum[idx + 1] - self._cum[lower]

    def max_window(self, window_days: int, start: date, end: date) -> int:
        """Largest window total with every window clipped to ``[start, end)``."""
        totals = self.forward_totals(window_days, start, end)
        return int(totals.max()) if totals.size else 0

    def first_day_exceeding(
        self,
        window_days: int,
        limit: int,
        start: date,
        end: date,
    ) -> date | None:
        """First day t in ``[start, end)`` whose trailing window (floored at
        ``start``) holds more than ``limit`` absence days."""
        totals = self.trailing_totals(window_days, start, end, floor=start)
        over = np.flatnonzero(totals > limit)
        if over.size == 0:
            return None
        return start + timedelta(days=int(over[0]))


def window_total_ending(spans: Sequence[DaySpan], day: date, window_days: int) -> int:
    """Absence in the ``window_days`` window ending on ``day`` (inclusive)."""
    window_start = day - timedelta(days=window_days - 1)
    window_end = day + timedelta(days=1)
    return sum(span.overlap_days(window_start, window_end) for span in spans)


def offending_windows(
    spans: Sequence[DaySpan],
    window_days: int,
    limit: int,
) -> list[WindowTotal]:
    """Windows whose absence total exceeds ``limit``.

    Consecutive exceeding windows are grouped into one run and reported by the
    run's peak window, so a single long absence yields one entry.
    """
    merged = union_spans(spans)
    if not merged:
        return []
    first = merged[0].start
    last = merged[-1].end + timedelta(days=window_days)
    timeline = AbsenceTimeline(merged, first - timedelta(days=window_days), last)
    totals = timeline.trailing_totals(window_days, first, last)
    over = totals > limit
    if not over.any():
        return []

    padded = np.concatenate([[False], over, [False]])
    edges = np.flatnonzero(np.diff(padded.astype(np.int8)))
    found: list[WindowTotal] = []
    for run_start, run_end in zip(edges[::2], edges[1::2]):
        peak = int(run_start + np.argmax(totals[run_start:run_end]))
        window_end = first + timedelta(days=peak)
        window_start = window_end - timedelta(days=window_days - 1)
        ids: list[str] = []
        for span in merged:
            if span.overlap_days(window_start, window_end + timedelta(days=1)):
                ids.extend(span.source_ids)
        found.append(
            WindowTotal(
                days=int(totals[peak]),
                start=window_start,
                end=window_end,
                source_ids=tuple(ids),
            )
        )
    logger.debug("Found %d offending %d-day windows over limit %d", len(found), window_days, limit)
    return found


def sample_trailing_series(
    timeline: AbsenceTimeline,
    window_days: int,
    start: date,
    end: date,
    max_points: int,
) -> list[tuple[date, int]]:
    """Trailing-window totals for days in ``[start, end]``, thinned to about
    ``max_points`` samples; the final day is always included."""
    stop = end + timedelta(days=1)
    totals = timeline.trailing_totals(window_days, start, stop)
    n = int(totals.size)
    if n == 0:
        return []
    step = max(1, n // max(1, max_points))
    picks = list(range(0, n, step))
    if picks[-1] != n - 1:
        picks.append(n - 1)
    return [(start + timedelta(days=i), int(totals[i])) for i in picks]


__all__ = [
    "WindowTotal",
    "max_window_absence",
    "AbsenceTimeline",
    "window_total_ending",
    "offending_windows",
    "sample_trailing_series",
]
