from __future__ import annotations

import os
from collections.abc import Callable
from datetime import date

import pytest

from travel_rules.config import ENV_PREFIX
from travel_rules.domain.trip import TripInterval


@pytest.fixture(autouse=True)
def _clean_settings_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host TRAVEL_RULES_* overrides out of the tests."""
    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def trip() -> Callable[..., TripInterval]:
    """Build a TripInterval from ISO date strings."""

    def _make(trip_id: str, out_date: str, in_date: str) -> TripInterval:
        return TripInterval(
            id=trip_id,
            departure=date.fromisoformat(out_date),
            return_date=date.fromisoformat(in_date),
        )

    return _make
