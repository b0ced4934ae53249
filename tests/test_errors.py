"""Tests for the error taxonomy."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from travel_rules.errors import (
    ErrorType,
    InvalidGoalConfig,
    InvalidTripInterval,
    RuleEngineError,
    UnknownGoalType,
    make_error,
)


class TestInvalidTripInterval:
    def test_carries_trip_id(self) -> None:
        exc = InvalidTripInterval("t1", "same-day trip")
        assert exc.trip_id == "t1"
        assert "'t1'" in str(exc)
        assert "same-day trip" in exc.message

    def test_envelope(self) -> None:
        envelope = InvalidTripInterval("t1", "bad").to_envelope()
        assert envelope.type == ErrorType.INVALID_TRIP_INTERVAL
        assert envelope.context == {"trip_id": "t1"}

    def test_is_value_error(self) -> None:
        exc = InvalidTripInterval(None, "malformed")
        assert isinstance(exc, ValueError)
        assert isinstance(exc, RuleEngineError)


class TestUnknownGoalType:
    def test_message(self) -> None:
        exc = UnknownGoalType("mars_residency")
        assert exc.goal_type == "mars_residency"
        assert str(exc) == "Unsupported goal type: 'mars_residency'"

    def test_envelope(self) -> None:
        envelope = UnknownGoalType("x").to_envelope()
        assert envelope.type == ErrorType.UNKNOWN_GOAL_TYPE
        assert envelope.context["goal_type"] == "x"


class TestInvalidGoalConfig:
    def test_fields(self) -> None:
        exc = InvalidGoalConfig("uk_ilr", "visaStartDate: Field required", fields=["visaStartDate"])
        assert exc.fields == ["visaStartDate"]
        assert str(exc).startswith("Invalid uk_ilr config:")
        assert exc.to_envelope().context["fields"] == ["visaStartDate"]

    def test_fields_default_empty(self) -> None:
        assert InvalidGoalConfig("days_counter", "bad").fields == []

    def test_raise_and_catch_as_base(self) -> None:
        with pytest.raises(RuleEngineError) as exc_info:
            raise InvalidGoalConfig("schengen_90_180", "bad")
        assert exc_info.value.error_type == ErrorType.INVALID_GOAL_CONFIG


def test_error_types_are_distinct() -> None:
    assert len({e.value for e in ErrorType}) == 3


def test_make_error_envelope_is_frozen() -> None:
    envelope = make_error(ErrorType.UNKNOWN_GOAL_TYPE, "nope", goal_type="x")
    assert envelope.model_dump() == {
        "type": ErrorType.UNKNOWN_GOAL_TYPE,
        "message": "nope",
        "context": {"goal_type": "x"},
    }
    with pytest.raises(ValidationError):
        envelope.message = "changed"  # type: ignore[misc]
