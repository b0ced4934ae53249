"""Pure day-accounting analyzers (no I/O, no clock reads)."""

from travel_rules.compute.days import (
    DaySpan,
    absence_spans,
    add_years,
    calendar_day_span,
    clip_spans,
    days_between,
    full_days_abroad,
    merge_overlapping,
    total_days,
    union_spans,
)
from travel_rules.compute.presence import (
    ContinuousPresence,
    PresenceRun,
    continuous_presence,
    days_present,
    midnight_absence_spans,
)
from travel_rules.compute.rolling import (
    AbsenceTimeline,
    WindowTotal,
    max_window_absence,
    offending_windows,
    window_total_ending,
)

__all__ = [
    "DaySpan",
    "absence_spans",
    "add_years",
    "calendar_day_span",
    "clip_spans",
    "days_between",
    "full_days_abroad",
    "merge_overlapping",
    "total_days",
    "union_spans",
    "ContinuousPresence",
    "PresenceRun",
    "continuous_presence",
    "days_present",
    "midnight_absence_spans",
    "AbsenceTimeline",
    "WindowTotal",
    "max_window_absence",
    "offending_windows",
    "window_total_ending",
]
