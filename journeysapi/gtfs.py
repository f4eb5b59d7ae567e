"""Reading GTFS text files and the municipality table from a directory."""

from __future__ import annotations

import csv
import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Tuple

MUNICIPALITY_FILE_NAME = "municipalities.txt"

_GTFS_FILES = (
    ("agencies", "agency.txt"),
    ("routes", "routes.txt"),
    ("stops", "stops.txt"),
    ("trips", "trips.txt"),
    ("stop_times", "stop_times.txt"),
    ("calendar_items", "calendar.txt"),
    ("calendar_dates", "calendar_dates.txt"),
    ("shapes", "shapes.txt"),
)


@dataclass(frozen=True)
class CsvRecord:
    """One data row of a CSV file, keyed by column name."""

    fields: Mapping[str, str]
    line_number: int = 0

    def get(self, name: str) -> Optional[str]:
        """Return the value of a column, or None if the file has no such column."""
        return self.fields.get(name)


@dataclass
class GTFSBundle:
    """Records of every GTFS file of a data set, and the errors met reading them."""

    agencies: List[CsvRecord] = field(default_factory=list)
    routes: List[CsvRecord] = field(default_factory=list)
    stops: List[CsvRecord] = field(default_factory=list)
    trips: List[CsvRecord] = field(default_factory=list)
    stop_times: List[CsvRecord] = field(default_factory=list)
    calendar_items: List[CsvRecord] = field(default_factory=list)
    calendar_dates: List[CsvRecord] = field(default_factory=list)
    shapes: List[CsvRecord] = field(default_factory=list)
    municipalities: List[CsvRecord] = field(default_factory=list)
    errors: List[Exception] = field(default_factory=list)


def _read_rows(path: str) -> List[Tuple[int, List[str]]]:
    """Parse a CSV file, skipping blank lines; rows carry their starting line number."""
    with open(path, encoding="utf-8-sig", newline="") as handle:
        kept = [(number, line) for number, line in enumerate(handle, start=1) if line.strip()]

    reader = csv.reader([line for _, line in kept])
    rows = []
    consumed = 0
    try:
        for row in reader:
            start = kept[consumed][0]
            consumed = reader.line_num
            rows.append((start, row))
    except csv.Error as exc:
        raise ValueError(f"{path}: {exc}") from exc
    return rows


def _read_records(path: str, strip_values: bool) -> List[CsvRecord]:
    rows = _read_rows(path)
    if not rows:
        return []
    (_, header), *data = rows
    names = [name.strip() for name in header]
    records = []
    for line_number, row in data:
        if len(row) != len(names):
            raise ValueError(f"{path}: line {line_number}: wrong number of fields")
        values = [value.strip() for value in row] if strip_values else row
        records.append(CsvRecord(dict(zip(names, values)), line_number))
    return records


def read_csv_records(path: str) -> List[CsvRecord]:
    """Read a GTFS file whose first line names the columns.

    A leading byte order mark and blank lines are skipped. Raises OSError if
    the file cannot be opened and ValueError if it is malformed.
    """
    return _read_records(path, strip_values=False)


def read_municipalities(gtfs_path: str) -> List[CsvRecord]:
    """Read the municipality table of a data set, with values trimmed.

    A missing file yields no municipalities.
    """
    try:
        return _read_records(os.path.join(gtfs_path, MUNICIPALITY_FILE_NAME), strip_values=True)
    except FileNotFoundError:
        return []


def load_gtfs_bundle(gtfs_path: str) -> GTFSBundle:
    """Read every GTFS file of a directory, collecting errors instead of raising."""
    loaded = {}
    errors: List[Exception] = []
    for attribute, file_name in _GTFS_FILES:
        try:
            loaded[attribute] = read_csv_records(os.path.join(gtfs_path, file_name))
        except (OSError, ValueError) as exc:
            errors.append(exc)
    try:
        loaded["municipalities"] = read_municipalities(gtfs_path)
    except (OSError, ValueError) as exc:
        errors.append(exc)
    return GTFSBundle(**loaded, errors=errors)