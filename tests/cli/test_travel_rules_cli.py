from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from travel_rules.cli.common_cli import (
    EXIT_INPUT_ERROR,
    TravelRulesCliError,
    load_goal_config,
    parse_goal_params,
    resolve_optional_output_path,
)
from travel_rules.cli.main import cli, main


@pytest.fixture
def trips_json(tmp_path: Path) -> Path:
    path = tmp_path / "trips.json"
    path.write_text(
        json.dumps(
            {
                "trips": [
                    {"id": "t1", "outDate": "2021-03-01", "inDate": "2021-03-15"},
                    {"id": "t2", "outDate": "2023-06-01", "inDate": "2023-06-10"},
                ]
            }
        ),
        encoding="utf-8",
    )
    return path


def test_calculate_ilr(trips_json: Path, tmp_path: Path) -> None:
    out_path = tmp_path / "result.json"
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "calculate",
            str(trips_json),
            "-g",
            "uk_ilr",
            "-p",
            "visaStartDate=2020-01-01",
            "-p",
            "trackYears=5",
            "--as-of",
            "2025-01-01",
            "--out",
            str(out_path),
        ],
    )
    assert result.exit_code == 0, result.output
    payload = json.loads(out_path.read_text(encoding="utf-8"))
    assert payload["status"] == "eligible"
    assert payload["eligibilityDate"] == "2025-01-01"


def test_calculate_with_config_file(trips_json: Path, tmp_path: Path) -> None:
    config_path = tmp_path / "goal.json"
    config_path.write_text(json.dumps({"thresholdDays": 30, "windowDays": 90}), encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "calculate",
            str(trips_json),
            "-g",
            "custom_threshold",
            "--config",
            str(config_path),
            "--as-of",
            "2021-03-20",
        ],
    )
    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["goalType"] == "custom_threshold"
    assert payload["metrics"][0]["value"] == 13


def test_invalid_config_exit_code(trips_json: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["calculate", str(trips_json), "-g", "uk_ilr", "--as-of", "2024-01-01"])
    assert result.exit_code == EXIT_INPUT_ERROR
    assert "INVALID_GOAL_CONFIG" in result.output


def test_invalid_trip_can_be_skipped(tmp_path: Path) -> None:
    trips = tmp_path / "trips.json"
    trips.write_text(
        json.dumps(
            [
                {"id": "ok", "outDate": "2024-01-01", "inDate": "2024-01-05"},
                {"id": "bad", "outDate": "2024-02-01", "inDate": "2024-01-01"},
            ]
        ),
        encoding="utf-8",
    )
    out_path = tmp_path / "out.json"
    args = ["calculate", str(trips), "-g", "days_counter", "--as-of", "2024-03-01"]
    runner = CliRunner()

    failed = runner.invoke(cli, args)
    assert failed.exit_code == EXIT_INPUT_ERROR
    assert "INVALID_TRIP_INTERVAL" in failed.output

    skipped = runner.invoke(cli, args + ["--skip-invalid", "-o", str(out_path)])
    assert skipped.exit_code == 0, skipped.output
    assert json.loads(out_path.read_text(encoding="utf-8"))["skippedTripIds"] == ["bad"]


def test_missing_trip_file(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli, ["calculate", str(tmp_path / "nope.csv"), "-g", "schengen_90_180"]
    )
    assert result.exit_code == EXIT_INPUT_ERROR
    assert "Trip file not found" in result.output


def test_bad_as_of(trips_json: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli, ["calculate", str(trips_json), "-g", "schengen_90_180", "--as-of", "tomorrow"]
    )
    assert result.exit_code == EXIT_INPUT_ERROR
    assert "--as-of" in result.output


def test_rolling_on_csv(tmp_path: Path) -> None:
    csv_path = tmp_path / "trips.csv"
    csv_path.write_text(
        "Date Out,Date In,Departure Route,Return Route\n01/01/2024,01/04/2024,LHR,CDG\n",
        encoding="utf-8",
    )
    out_path = tmp_path / "rolling.json"
    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["rolling", str(csv_path), "--window", "180", "--limit", "89", "-o", str(out_path)],
    )
    assert result.exit_code == 0, result.output
    payload = json.loads(out_path.read_text(encoding="utf-8"))
    assert payload["totalDays"] == 90
    assert payload["maxWindow"]["start"] == "2024-01-02"
    assert payload["maxWindow"]["tripIds"] == ["1"]
    assert [w["days"] for w in payload["offendingWindows"]] == [90]


def test_rolling_rejects_bad_window(tmp_path: Path) -> None:
    csv_path = tmp_path / "trips.csv"
    csv_path.write_text("outDate,inDate\n", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(cli, ["rolling", str(csv_path), "--window", "0"])
    assert result.exit_code == EXIT_INPUT_ERROR
    assert "--window must be > 0" in result.output


def test_describe_goals_json() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["describe-goals", "--format", "json"])
    assert result.exit_code == 0, result.output
    assert len(json.loads(result.output)) == 6


def test_describe_goals_text() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["describe-goals"])
    assert result.exit_code == 0
    assert "uk_ilr" in result.output
    assert "required: visaStartDate" in result.output


def test_main_returns_exit_code(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["describe-goals", "--format", "json"]) == 0
    assert main(["calculate", "missing.json", "-g", "uk_ilr"]) == EXIT_INPUT_ERROR
    assert "Trip file not found" in capsys.readouterr().err


def test_parse_goal_params() -> None:
    parsed = parse_goal_params(
        ("trackYears=5", "visaStartDate=2020-01-01", "countTravelDays=True", "description=")
    )
    assert parsed == {
        "trackYears": 5,
        "visaStartDate": "2020-01-01",
        "countTravelDays": True,
        "description": "",
    }
    with pytest.raises(TravelRulesCliError, match="must look like name=value"):
        parse_goal_params(("trackYears",))
    with pytest.raises(TravelRulesCliError, match="must look like name=value"):
        parse_goal_params(("=5",))


def test_load_goal_config_errors(tmp_path: Path) -> None:
    with pytest.raises(TravelRulesCliError, match="Goal config file not found"):
        load_goal_config(tmp_path / "missing.json")
    listed = tmp_path / "list.json"
    listed.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(TravelRulesCliError, match="must hold a JSON object, got list"):
        load_goal_config(listed)
    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    with pytest.raises(TravelRulesCliError, match="not valid JSON"):
        load_goal_config(broken)


def test_resolve_optional_output_path() -> None:
    assert resolve_optional_output_path(None) is None
    assert resolve_optional_output_path("-") is None
    assert resolve_optional_output_path("out.json") == Path("out.json")


def test_non_utf8_trip_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "trips.csv"
    path.write_bytes(b"\xff\xfe")
    code = main(["calculate", str(path), "-g", "days_counter", "--as-of", "2024-03-01"])
    assert code == EXIT_INPUT_ERROR
    assert "not valid UTF-8" in capsys.readouterr().err
