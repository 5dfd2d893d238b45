"""Strict CSV ingestion of location rows.

Any bad row aborts the whole file; nothing is published from a partially
valid input.
"""

from __future__ import annotations

import csv
import math
import uuid
from pathlib import Path

from csv_to_cloudkit.common.constants import CSV_COLUMNS, MAX_RECORDS_PER_RUN
from csv_to_cloudkit.common.errors import InputValidationError
from csv_to_cloudkit.common.models import LocationRecord


def _read_csv_rows(path: Path) -> tuple[list[str], list[dict]]:
    if not path.exists():
        raise InputValidationError(f"Missing CSV input: {path}")
    try:
        with path.open("r", encoding="utf-8-sig", newline="") as f:
            reader = csv.DictReader(f)
            return list(reader.fieldnames or []), list(reader)
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        raise InputValidationError(f"Unable to read CSV input {path}: {exc}") from exc


def _parse_uuid(value: str | None, line: int) -> uuid.UUID:
    try:
        return uuid.UUID((value or "").strip())
    except ValueError as exc:
        raise InputValidationError(f"Row {line}: invalid uuid {value!r}") from exc


def _parse_coordinate(value: str | None, column: str, line: int) -> float:
    try:
        parsed = float((value or "").strip())
    except ValueError as exc:
        raise InputValidationError(f"Row {line}: invalid {column} {value!r}") from exc
    if not math.isfinite(parsed):
        raise InputValidationError(f"Row {line}: {column} must be finite, got {value!r}")
    return parsed


def parse_row(row: dict, line: int) -> LocationRecord:
    for column in CSV_COLUMNS:
        if row.get(column) is None:
            raise InputValidationError(f"Row {line}: missing value for {column}")
    return LocationRecord(
        identifier=_parse_uuid(row["uuid"], line),
        country=row["country"],
        city=row["city"],
        name=row["name"],
        url=row["url"],
        latitude=_parse_coordinate(row["latitude"], "latitude", line),
        longitude=_parse_coordinate(row["longitude"], "longitude", line),
        status=row["status"],
    )


def read_locations(path: Path, *, max_records: int = MAX_RECORDS_PER_RUN) -> list[LocationRecord]:
    header, rows = _read_csv_rows(path)

    missing = [column for column in CSV_COLUMNS if column not in header]
    if missing:
        raise InputValidationError(f"CSV header is missing columns: {', '.join(missing)}")

    if len(rows) > max_records:
        raise InputValidationError(
            f"CSV has {len(rows)} rows; at most {max_records} records can be written per run"
        )

    # Line 1 is the header.
    return [parse_row(row, line) for line, row in enumerate(rows, start=2)]
