"""Trip history file loading (JSON or CSV).

Rows come back as plain dicts in wire shape (``id``, ``outDate``, ``inDate``,
``outRoute``, ``inRoute``); validation happens later in ``normalize_trips``
so that bad rows are reported with their trip id.
"""

from __future__ import annotations

import csv
import json
import logging
from datetime import datetime
from io import StringIO
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Normalized header -> wire field. Headers are lowercased with spaces,
# underscores and dashes removed before lookup.
_HEADER_ALIASES: dict[str, str] = {
    "id": "id",
    "tripid": "id",
    "trip": "id",
    "outdate": "outDate",
    "dateout": "outDate",
    "departure": "outDate",
    "departuredate": "outDate",
    "depart": "outDate",
    "indate": "inDate",
    "datein": "inDate",
    "return": "inDate",
    "returndate": "inDate",
    "arrival": "inDate",
    "outroute": "outRoute",
    "from": "outRoute",
    "departureroute": "outRoute",
    "inroute": "inRoute",
    "to": "inRoute",
    "returnroute": "inRoute",
    "title": "title",
    "name": "title",
}

_DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%d.%m.%Y")
_DATE_FIELDS = ("outDate", "inDate")


class TripFileError(ValueError):
    """Raised when a trip file cannot be read or has an unusable layout."""


def _normalize_header(header: str) -> str:
    return "".join(ch for ch in header.strip().lower() if ch not in " _-")


def normalize_date_text(value: str) -> str:
    """Return ``value`` as ``YYYY-MM-DD`` when it matches a known layout.

    Unrecognized text is returned unchanged so that validation can reject it
    with the trip id attached.
    """
    text = value.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date().isoformat()
        except ValueError:
            continue
    return text


def _wire_row(raw: dict[str, Any], index: int) -> dict[str, Any]:
    row: dict[str, Any] = {}
    for key, value in raw.items():
        if key is None:
            continue
        field = _HEADER_ALIASES.get(_normalize_header(str(key)))
        if field is None or field in row:
            continue
        row[field] = value.strip() if isinstance(value, str) else value
    for name in _DATE_FIELDS:
        if isinstance(row.get(name), str):
            row[name] = normalize_date_text(row[name])
    if row.get("id") in (None, ""):
        row["id"] = str(index)
    return row


def parse_trip_csv(text: str) -> list[dict[str, Any]]:
    """Parse CSV text with a header row into wire-shaped trip rows.

    Rows without any date are skipped (blank spreadsheet lines); rows with a
    single date are kept so validation can report them as incomplete.
    """
    reader = csv.DictReader(StringIO(text))
    if not reader.fieldnames:
        raise TripFileError("CSV has no header row")
    known = {_HEADER_ALIASES.get(_normalize_header(h)) for h in reader.fieldnames if h}
    if "outDate" not in known or "inDate" not in known:
        raise TripFileError(
            f"CSV needs departure and return date columns, found {reader.fieldnames}"
        )
    rows: list[dict[str, Any]] = []
    for index, raw in enumerate(reader, 1):
        row = _wire_row(raw, index)
        if not row.get("outDate") and not row.get("inDate"):
            continue
        rows.append(row)
    logger.debug("Parsed %d trip rows from CSV", len(rows))
    return rows


def parse_trip_json(text: str) -> list[dict[str, Any]]:
    """Parse a JSON list of trips, or an object holding one under ``trips``."""
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise TripFileError(f"Malformed JSON: {exc}") from exc
    if isinstance(payload, dict):
        payload = payload.get("trips")
    if not isinstance(payload, list):
        raise TripFileError("JSON trip file must be a list or an object with a 'trips' list")
    rows: list[dict[str, Any]] = []
    for index, raw in enumerate(payload, 1):
        if not isinstance(raw, dict):
            raise TripFileError(f"Trip entry {index} is not an object")
        rows.append(_wire_row(raw, index))
    return rows


def load_trip_records(path: Path | str) -> list[dict[str, Any]]:
    """Load trip rows from a ``.json`` or ``.csv`` file.

    Raises:
        TripFileError: If the file is missing, unreadable or malformed.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8-sig")
    except FileNotFoundError as exc:
        raise TripFileError(f"Trip file not found: {path}") from exc
    except UnicodeDecodeError as exc:
        raise TripFileError(
            f"Trip file is not valid UTF-8: {path} ({exc.reason} at byte {exc.start})"
        ) from exc
    except OSError as exc:
        raise TripFileError(f"Cannot read trip file: {exc}") from exc

    if path.suffix.lower() == ".csv":
        return parse_trip_csv(text)
    return parse_trip_json(text)


__all__ = [
    "TripFileError",
    "normalize_date_text",
    "parse_trip_csv",
    "parse_trip_json",
    "load_trip_records",
]
