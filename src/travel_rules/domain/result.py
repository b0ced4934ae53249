"""Structured result types for goal calculations.

All engines return a GoalCalculationResult. Results hold plain data only
(dates, numbers, strings) so that ``to_payload()`` yields JSON-ready,
camelCase output with ISO-8601 dates and no custom codecs.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from travel_rules.domain.goal import GoalStatus, GoalType

MetricUnit = Literal["days", "months", "years", "percent", "date", "none"]
MetricStatus = Literal["ok", "warning", "exceeded"]
WarningSeverity = Literal["info", "warning", "error"]
RequirementStatus = Literal["met", "pending", "not_met", "unknown"]
RiskLevel = Literal["low", "caution", "critical"]


class _ResultModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class GoalMetric(_ResultModel):
    """One display figure, e.g. "Max absence in any 12 months".

    Attributes:
        key: Stable machine-readable identifier.
        label: Human-readable label (may change between versions).
        value: The figure itself; dates are ISO strings.
        unit: Display unit.
        limit: The rule limit this figure is compared against, if any.
        status: Traffic-light status of the figure against its limit.
        tooltip: Optional longer explanation.
    """

    key: str
    label: str
    value: int | float | str | None
    unit: MetricUnit = "days"
    limit: int | None = None
    status: MetricStatus = "ok"
    tooltip: str | None = None


class OffendingWindow(_ResultModel):
    """A rolling window whose absence total exceeds the limit (inclusive dates)."""

    start: date
    end: date
    days: int


class GoalWarning(_ResultModel):
    severity: WarningSeverity
    title: str
    message: str
    action: str | None = None
    details: list[str] = Field(default_factory=list)
    related_trip_ids: list[str] = Field(default_factory=list)
    offending_windows: list[OffendingWindow] = Field(default_factory=list)


class GoalRequirement(_ResultModel):
    key: str
    label: str
    status: RequirementStatus
    detail: str | None = None


class RollingDataPoint(_ResultModel):
    """Absence total of the rolling window ending on ``day``."""

    day: date
    rolling_days: int
    risk_level: RiskLevel


class TripBar(_ResultModel):
    """A trip positioned on a timeline measured in days from the goal start."""

    trip_id: str
    out_date: date
    in_date: date
    start_offset: int
    end_offset: int
    full_days: int
    label: str


class GoalVisualization(_ResultModel):
    rolling_absence_data: list[RollingDataPoint] = Field(default_factory=list)
    trip_bars: list[TripBar] = Field(default_factory=list)


class GoalCalculationResult(_ResultModel):
    """Engine output for one goal.

    Attributes:
        goal_type: The goal type that produced this result.
        status: State-machine status as of ``reference_date``.
        progress_percent: 0-100; 0 for pure compliance monitors.
        eligibility_date: Earliest date the completion criterion holds, or
            None when not applicable / not computable.
        days_until_eligible: Signed days from ``reference_date`` to
            ``eligibility_date`` (<= 0 once eligible).
        reference_date: The "as of" date of the calculation.
        start_date: Goal start used by the engine.
        metrics: Ordered display figures.
        warnings: Alerts with concrete dates and trip ids.
        requirements: Checklist items for milestone goals.
        visualization: Optional chart data.
        skipped_trip_ids: Trip ids the caller chose to skip as invalid.
    """

    goal_type: GoalType
    status: GoalStatus
    progress_percent: int = Field(ge=0, le=100)
    eligibility_date: date | None = None
    days_until_eligible: int | None = None
    reference_date: date
    start_date: date | None = None
    metrics: list[GoalMetric] = Field(default_factory=list)
    warnings: list[GoalWarning] = Field(default_factory=list)
    requirements: list[GoalRequirement] = Field(default_factory=list)
    visualization: GoalVisualization | None = None
    skipped_trip_ids: list[str] = Field(default_factory=list)

    @property
    def is_eligible(self) -> bool:
        return self.status == GoalStatus.ELIGIBLE

    @property
    def limit_exceeded(self) -> bool:
        return self.status == GoalStatus.LIMIT_EXCEEDED

    def get_metric(self, key: str) -> GoalMetric | None:
        """Get a metric by key.

        Args:
            key: Metric identifier (e.g., "max_rolling_absence").

        Returns:
            GoalMetric if found, None otherwise.
        """
        for metric in self.metrics:
            if metric.key == key:
                return metric
        return None

    def metric_value(self, key: str) -> Any:
        metric = self.get_metric(key)
        if metric is None:
            raise KeyError(f"No metric with key '{key}'")
        return metric.value

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready camelCase representation."""
        return self.model_dump(mode="json", by_alias=True)


__all__ = [
    "MetricUnit",
    "MetricStatus",
    "WarningSeverity",
    "RequirementStatus",
    "RiskLevel",
    "GoalMetric",
    "OffendingWindow",
    "GoalWarning",
    "GoalRequirement",
    "RollingDataPoint",
    "TripBar",
    "GoalVisualization",
    "GoalCalculationResult",
]
