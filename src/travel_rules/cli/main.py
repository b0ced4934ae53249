"""`travel-rules` command line interface.

Usage:
    travel-rules calculate trips.csv -g uk_ilr -p visaStartDate=2020-01-01 --as-of 2024-06-01
    travel-rules describe-goals --format json
    travel-rules rolling trips.json --window 180 --limit 90
"""

from __future__ import annotations

import sys
from datetime import date
from pathlib import Path
from typing import Any

import click

from travel_rules.api.calculate import calculate, describe_goal_types
from travel_rules.cli.common_cli import (
    EXIT_INPUT_ERROR,
    EXIT_OK,
    EXIT_RUNTIME_ERROR,
    TravelRulesCliError,
    configure_logging,
    load_goal_config,
    load_trips_or_fail,
    parse_goal_params,
    resolve_optional_output_path,
    write_payload,
)
from travel_rules.compute.days import absence_spans, total_days
from travel_rules.compute.rolling import max_window_absence, offending_windows
from travel_rules.domain.goal import GoalType
from travel_rules.domain.trip import coerce_date, normalize_trips
from travel_rules.errors import RuleEngineError

_GOAL_TYPES = [g.value for g in GoalType]


def _parse_cli_date(value: str | None, *, option: str) -> date | None:
    if value is None:
        return None
    try:
        return coerce_date(value, label=option)
    except ValueError as exc:
        raise TravelRulesCliError(str(exc)) from exc


@click.group()
@click.version_option(package_name="travel-rules")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """travel-rules CLI for trip day-accounting and eligibility goals."""
    configure_logging(verbose)


@cli.command("calculate")
@click.argument("trips_path", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--goal-type",
    "-g",
    required=True,
    type=click.Choice(_GOAL_TYPES),
    help="Goal type to evaluate.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Goal config JSON object.",
)
@click.option(
    "--param",
    "-p",
    "params",
    multiple=True,
    help="Goal config override as KEY=VALUE (repeatable, VALUE parsed as JSON when possible).",
)
@click.option("--as-of", "as_of", default=None, help="Reference date (default: today).")
@click.option("--start-date", default=None, help="Goal start date for goals that track one.")
@click.option(
    "--skip-invalid",
    is_flag=True,
    default=False,
    help="Skip invalid trips and report their ids instead of failing.",
)
@click.option(
    "-o",
    "--out",
    "output_path_arg",
    type=str,
    default=None,
    help="Output path (default: stdout). Use '-' for stdout.",
)
def calculate_command(
    trips_path: Path,
    goal_type: str,
    config_path: Path | None,
    params: tuple[str, ...],
    as_of: str | None,
    start_date: str | None,
    skip_invalid: bool,
    output_path_arg: str | None,
) -> None:
    """Evaluate one goal against a trip history file (JSON or CSV)."""
    trips = load_trips_or_fail(trips_path)
    config: dict[str, Any] = {}
    if config_path is not None:
        config.update(load_goal_config(config_path))
    config.update(parse_goal_params(params))
    reference = _parse_cli_date(as_of, option="--as-of") or date.today()
    start = _parse_cli_date(start_date, option="--start-date")

    try:
        result = calculate(
            trips,
            goal_type,
            config,
            reference,
            start_date=start,
            invalid_trips="skip" if skip_invalid else "raise",
        )
    except RuleEngineError as exc:
        raise TravelRulesCliError.from_engine_error(exc) from exc
    except OverflowError as exc:
        raise TravelRulesCliError(f"Calculation failed: {exc}", exit_code=EXIT_RUNTIME_ERROR) from exc

    write_payload(result.to_payload(), resolve_optional_output_path(output_path_arg))


@cli.command("describe-goals")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
)
def describe_goals_command(output_format: str) -> None:
    """List the supported goal types and their required config fields."""
    described = describe_goal_types()
    if output_format == "json":
        write_payload(described, None)
        return
    for item in described:
        required = ", ".join(item["requiredFields"]) or "-"
        click.echo(f"{item['goalType']:<18} {item['name']}  [{item['jurisdiction']}]")
        click.echo(f"{'':<18} {item['description']}")
        click.echo(f"{'':<18} required: {required}")


@cli.command("rolling")
@click.argument("trips_path", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--window", "window_days", type=int, default=365, show_default=True)
@click.option("--limit", "limit_days", type=int, default=180, show_default=True)
@click.option(
    "--include-travel-days",
    is_flag=True,
    default=False,
    help="Count departure and return days as days away.",
)
@click.option("--skip-invalid", is_flag=True, default=False)
@click.option(
    "-o",
    "--out",
    "output_path_arg",
    type=str,
    default=None,
    help="Output path (default: stdout). Use '-' for stdout.",
)
def rolling_command(
    trips_path: Path,
    window_days: int,
    limit_days: int,
    include_travel_days: bool,
    skip_invalid: bool,
    output_path_arg: str | None,
) -> None:
    """Report the worst rolling window and every window over the limit."""
    if window_days <= 0:
        raise TravelRulesCliError("--window must be > 0")
    if limit_days < 0:
        raise TravelRulesCliError("--limit must be >= 0")
    records = load_trips_or_fail(trips_path)
    try:
        normalized = normalize_trips(records, on_invalid="skip" if skip_invalid else "raise")
    except RuleEngineError as exc:
        raise TravelRulesCliError.from_engine_error(exc) from exc

    spans = absence_spans(normalized.intervals, include_travel_days=include_travel_days)
    peak = max_window_absence(spans, window_days)
    payload = {
        "windowDays": window_days,
        "limitDays": limit_days,
        "totalDays": total_days(spans),
        "maxWindow": {
            "days": peak.days,
            "start": peak.start.isoformat() if peak.start else None,
            "end": peak.end.isoformat() if peak.end else None,
            "tripIds": list(peak.source_ids),
        },
        "offendingWindows": [
            {
                "days": w.days,
                "start": w.start.isoformat() if w.start else None,
                "end": w.end.isoformat() if w.end else None,
                "tripIds": list(w.source_ids),
            }
            for w in offending_windows(spans, window_days, limit_days)
        ],
        "skippedTripIds": normalized.skipped_ids,
    }
    write_payload(payload, resolve_optional_output_path(output_path_arg))


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    try:
        code = cli.main(args=argv, prog_name="travel-rules", standalone_mode=False)
        return int(code) if isinstance(code, int) else EXIT_OK
    except TravelRulesCliError as e:
        e.show()
        return e.exit_code
    except click.ClickException as e:
        e.show()
        return EXIT_INPUT_ERROR
    except click.Abort:
        click.echo("Aborted!", err=True)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
