"""Goal types, statuses and per-type configuration models.

Goal configs are a tagged union keyed by ``type``: each engine declares the
one variant it accepts and configs are validated at the boundary, before any
calculation starts. Wire payloads use camelCase (``visaStartDate``); snake_case
field names are accepted as well.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from travel_rules.errors import InvalidGoalConfig


class GoalType(str, Enum):
    """Closed set of supported goal types."""

    UK_ILR = "uk_ilr"
    UK_CITIZENSHIP = "uk_citizenship"
    UK_TAX_RESIDENCY = "uk_tax_residency"
    SCHENGEN_90_180 = "schengen_90_180"
    CUSTOM_THRESHOLD = "custom_threshold"
    DAYS_COUNTER = "days_counter"


class Jurisdiction(str, Enum):
    UK = "uk"
    SCHENGEN = "schengen"
    GLOBAL = "global"


class GoalCategory(str, Enum):
    IMMIGRATION = "immigration"
    TAX = "tax"
    PERSONAL = "personal"


class GoalStatus(str, Enum):
    """Shared goal state machine.

    Engines report up to ``ELIGIBLE``; ``ACHIEVED`` is set by callers once
    the user confirms completion.
    """

    NOT_STARTED = "not_started"  # Nothing to evaluate yet
    IN_PROGRESS = "in_progress"  # Started, trajectory not yet established
    ON_TRACK = "on_track"  # Under the at-risk margin
    AT_RISK = "at_risk"  # Within the margin of the limit
    LIMIT_EXCEEDED = "limit_exceeded"  # Limit breached
    ELIGIBLE = "eligible"  # Criterion met as of the reference date
    ACHIEVED = "achieved"  # Caller-confirmed completion


CountDirection = Literal["days_away", "days_present"]

_TAX_YEAR_RE = re.compile(r"^(\d{4})-(\d{2})$")


class _GoalConfigModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class UKILRConfig(_GoalConfigModel):
    """UK Indefinite Leave to Remain."""

    type: Literal["uk_ilr"] = "uk_ilr"
    visa_start_date: date
    vignette_entry_date: date | None = None
    track_years: Literal[2, 3, 5, 10] = Field(
        default=5,
        validation_alias=AliasChoices("trackYears", "track_years", "track"),
    )
    visa_type: str | None = None

    @model_validator(mode="after")
    def _entry_not_before_visa(self) -> UKILRConfig:
        if self.vignette_entry_date is not None and self.vignette_entry_date < self.visa_start_date:
            raise ValueError("vignette_entry_date precedes visa_start_date")
        return self


class UKCitizenshipConfig(_GoalConfigModel):
    """British citizenship by naturalisation (after ILR)."""

    type: Literal["uk_citizenship"] = "uk_citizenship"
    ilr_grant_date: date
    married_to_british: bool = False
    qualifying_years: Literal[3, 5] | None = None

    @model_validator(mode="after")
    def _route_years(self) -> UKCitizenshipConfig:
        expected = 3 if self.married_to_british else 5
        if self.qualifying_years is None:
            object.__setattr__(self, "qualifying_years", expected)
        elif self.qualifying_years != expected:
            raise ValueError(
                f"qualifying_years must be {expected} when married_to_british="
                f"{self.married_to_british}"
            )
        return self


class UKTaxConfig(_GoalConfigModel):
    """UK tax residency for one tax year (6 April - 5 April)."""

    type: Literal["uk_tax_residency"] = "uk_tax_residency"
    tax_year: str = Field(description='Tax year label, e.g. "2024-25"')

    @model_validator(mode="after")
    def _tax_year_shape(self) -> UKTaxConfig:
        match = _TAX_YEAR_RE.match(self.tax_year)
        if match is None:
            raise ValueError(f"tax_year must look like '2024-25', got {self.tax_year!r}")
        first = int(match.group(1))
        if (first + 1) % 100 != int(match.group(2)):
            raise ValueError(f"tax_year {self.tax_year!r} must span consecutive years")
        return self

    @property
    def first_year(self) -> int:
        return int(self.tax_year[:4])

    @property
    def year_start(self) -> date:
        return date(self.first_year, 4, 6)

    @property
    def year_end(self) -> date:
        return date(self.first_year + 1, 4, 5)


class SchengenConfig(_GoalConfigModel):
    """Schengen area 90 days in any 180-day period."""

    type: Literal["schengen_90_180"] = "schengen_90_180"
    start_date: date | None = None
    home_country: str | None = None
    count_travel_days: bool = Field(
        default=False,
        description="Count entry and exit days as days of stay instead of full days only",
    )


class CustomThresholdConfig(_GoalConfigModel):
    """User-defined day limit over a rolling window."""

    type: Literal["custom_threshold"] = "custom_threshold"
    threshold_days: int = Field(gt=0)
    window_days: int = Field(gt=0)
    count_direction: CountDirection = "days_away"
    start_date: date | None = None
    description: str | None = None

    @model_validator(mode="after")
    def _threshold_fits_window(self) -> CustomThresholdConfig:
        if self.threshold_days > self.window_days:
            raise ValueError(
                f"threshold_days ({self.threshold_days}) exceeds window_days ({self.window_days})"
            )
        return self

    @property
    def absence_limit(self) -> int:
        """Limit expressed as full days away within one window."""
        if self.count_direction == "days_present":
            return self.window_days - self.threshold_days
        return self.threshold_days


class DaysCounterConfig(_GoalConfigModel):
    """Plain counter of days away from, or present in, a location."""

    type: Literal["days_counter"] = "days_counter"
    count_direction: CountDirection = "days_away"
    reference_location: str = "Home"
    start_date: date | None = None


GoalConfig = Annotated[
    Union[
        UKILRConfig,
        UKCitizenshipConfig,
        UKTaxConfig,
        SchengenConfig,
        CustomThresholdConfig,
        DaysCounterConfig,
    ],
    Field(discriminator="type"),
]

CONFIG_MODELS: dict[GoalType, type[_GoalConfigModel]] = {
    GoalType.UK_ILR: UKILRConfig,
    GoalType.UK_CITIZENSHIP: UKCitizenshipConfig,
    GoalType.UK_TAX_RESIDENCY: UKTaxConfig,
    GoalType.SCHENGEN_90_180: SchengenConfig,
    GoalType.CUSTOM_THRESHOLD: CustomThresholdConfig,
    GoalType.DAYS_COUNTER: DaysCounterConfig,
}


def required_fields(goal_type: GoalType) -> list[str]:
    """camelCase names of the fields a config of this type must carry."""
    model = CONFIG_MODELS[goal_type]
    return [
        to_camel(name)
        for name, info in model.model_fields.items()
        if info.is_required() and name != "type"
    ]


def parse_goal_config(
    goal_type: GoalType,
    raw: Mapping[str, Any] | BaseModel | None,
    *,
    start_date: date | None = None,
) -> GoalConfig:
    """Validate a raw config against the variant for ``goal_type``.

    A missing ``type`` tag is filled in; a mismatching tag is rejected.
    ``start_date`` fills the variant's ``start_date`` when the variant has
    one and the payload leaves it empty.

    Raises:
        InvalidGoalConfig: On tag mismatch or any field validation failure.
    """
    model = CONFIG_MODELS[goal_type]
    if isinstance(raw, BaseModel):
        if not isinstance(raw, model):
            raise InvalidGoalConfig(
                goal_type.value, f"expected {model.__name__}, got {type(raw).__name__}"
            )
        payload: dict[str, Any] = raw.model_dump()
    elif raw is None:
        payload = {}
    elif isinstance(raw, Mapping):
        payload = dict(raw)
    else:
        raise InvalidGoalConfig(goal_type.value, f"config must be an object, got {type(raw).__name__}")

    tag = payload.setdefault("type", goal_type.value)
    if tag != goal_type.value:
        raise InvalidGoalConfig(
            goal_type.value, f"config type {tag!r} does not match goal type", fields=["type"]
        )
    if (
        start_date is not None
        and "start_date" in model.model_fields
        and payload.get("start_date") is None
        and payload.get("startDate") is None
    ):
        payload["start_date"] = start_date

    try:
        return model.model_validate(payload)  # type: ignore[return-value]
    except ValidationError as exc:
        fields = [".".join(str(p) for p in err["loc"]) for err in exc.errors() if err["loc"]]
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
            for err in exc.errors()
        )
        raise InvalidGoalConfig(goal_type.value, details, fields=fields) from exc


__all__ = [
    "GoalType",
    "Jurisdiction",
    "GoalCategory",
    "GoalStatus",
    "CountDirection",
    "UKILRConfig",
    "UKCitizenshipConfig",
    "UKTaxConfig",
    "SchengenConfig",
    "CustomThresholdConfig",
    "DaysCounterConfig",
    "GoalConfig",
    "CONFIG_MODELS",
    "required_fields",
    "parse_goal_config",
]
