"""Shared helpers for click-based `travel-rules` commands."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import click

from travel_rules.errors import RuleEngineError
from travel_rules.io.trips import TripFileError, load_trip_records

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_RUNTIME_ERROR = 2


class TravelRulesCliError(click.ClickException):
    """Click exception with explicit exit-code control."""

    def __init__(self, message: str, *, exit_code: int = EXIT_INPUT_ERROR) -> None:
        super().__init__(message)
        self.exit_code = int(exit_code)

    @classmethod
    def from_engine_error(cls, exc: RuleEngineError) -> TravelRulesCliError:
        return cls(f"{exc.error_type.value}: {exc.message}", exit_code=EXIT_INPUT_ERROR)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _goal_param_value(text: str) -> Any:
    lowered = text.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    try:
        return int(text)
    except ValueError:
        return text


def parse_goal_params(items: tuple[str, ...]) -> dict[str, Any]:
    """Turn repeated ``-p name=value`` options into goal config fields.

    Whole numbers become ints and ``true``/``false`` become booleans. Anything
    else, dates included, stays text for the goal config model to validate.
    """
    config: dict[str, Any] = {}
    for item in items:
        name, sep, raw_value = item.partition("=")
        name = name.strip()
        if not sep or not name:
            raise TravelRulesCliError(
                f"Goal parameter {item!r} must look like name=value (e.g. trackYears=5)"
            )
        config[name] = _goal_param_value(raw_value.strip())
    return config


def write_payload(payload: Any, out_path: Path | None) -> None:
    """Print a result payload, or save it when ``out_path`` is given."""
    text = json.dumps(payload, sort_keys=True, indent=2, ensure_ascii=False)
    if out_path is None:
        click.echo(text)
        return
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(text + "\n", encoding="utf-8")
    logger.info("Wrote result to %s", out_path)


def load_goal_config(path: Path) -> dict[str, Any]:
    """Read a goal config JSON object (camelCase field names)."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8-sig"))
    except FileNotFoundError as exc:
        raise TravelRulesCliError(f"Goal config file not found: {path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise TravelRulesCliError(f"Cannot read goal config {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise TravelRulesCliError(f"Goal config {path} is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise TravelRulesCliError(
            f"Goal config {path} must hold a JSON object, got {type(payload).__name__}"
        )
    return payload


def load_trips_or_fail(path: Path) -> list[dict[str, Any]]:
    try:
        return load_trip_records(path)
    except TripFileError as exc:
        raise TravelRulesCliError(str(exc)) from exc


def resolve_optional_output_path(output_arg: str | None) -> Path | None:
    """Map '-', empty, or None to stdout; otherwise return filesystem path."""
    if output_arg is None:
        return None
    value = str(output_arg).strip()
    if value in {"", "-"}:
        return None
    return Path(value)


__all__ = [
    "EXIT_OK",
    "EXIT_INPUT_ERROR",
    "EXIT_RUNTIME_ERROR",
    "TravelRulesCliError",
    "configure_logging",
    "parse_goal_params",
    "write_payload",
    "load_goal_config",
    "load_trips_or_fail",
    "resolve_optional_output_path",
]
