"""Row records and the data files the terminal front end edits.

Rows are plain dicts carrying a stable ``"id"``; the list holding them is owned
by the caller and only ever mutated in place.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Sequence

import yaml

ID_KEY = "id"

Row = dict[str, Any]


class RowsError(Exception):
    """Raised when a data file cannot be read or written."""


def find_row(rows: Sequence[Row], row_id: Any) -> Row | None:
    """Locate a row by persistent identifier (linear scan)."""
    for row in rows:
        if row.get(ID_KEY) == row_id:
            return row
    return None


def index_of(rows: Sequence[Row], row_id: Any) -> int | None:
    for i, row in enumerate(rows):
        if row.get(ID_KEY) == row_id:
            return i
    return None


def cell_text(value: Any) -> str:
    return "" if value is None else str(value)


def infer_columns(rows: Sequence[Row]) -> list[str]:
    """Field keys in first-seen order, excluding the identifier."""
    keys: list[str] = []
    for row in rows:
        for key in row:
            if key != ID_KEY and key not in keys:
                keys.append(key)
    return keys


def _ensure_ids(rows: list[Row]) -> None:
    if all(ID_KEY in row for row in rows):
        return
    for n, row in enumerate(rows, start=1):
        row.setdefault(ID_KEY, n)


def load_rows(path: str | Path) -> tuple[list[Row], list[str]]:
    """Load rows and field keys from a CSV or YAML file.

    Returns:
        Tuple of (rows, columns)
    """
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise RowsError(f"Cannot read {p}: {e}") from None

    suffix = p.suffix.lower()
    if suffix in (".yaml", ".yml"):
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise RowsError(f"YAML parse error: {e}") from None
        columns: list[str] | None = None
        if isinstance(data, dict):
            columns = data.get("columns")
            data = data.get("rows", [])
        if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
            raise RowsError("YAML data must be a list of mappings or {columns, rows}.")
        rows = [dict(r) for r in data]
        _ensure_ids(rows)
        if columns is None:
            columns = infer_columns(rows)
        return rows, [str(c) for c in columns if c != ID_KEY]

    if suffix in (".csv", ".tsv", ".txt"):
        delimiter = "\t" if suffix == ".tsv" else ","
        reader = csv.DictReader(text.splitlines(), delimiter=delimiter)
        rows = [dict(r) for r in reader]
        header = list(reader.fieldnames or [])
        _ensure_ids(rows)
        return rows, [c for c in header if c != ID_KEY]

    raise RowsError(f"Unsupported data file type: {p.suffix or '(none)'}")


def save_rows(path: str | Path, rows: Sequence[Row], columns: Sequence[str]) -> None:
    p = Path(path)
    suffix = p.suffix.lower()
    try:
        if suffix in (".yaml", ".yml"):
            payload = {"columns": list(columns), "rows": [dict(r) for r in rows]}
            p.write_text(yaml.safe_dump(payload, sort_keys=False, allow_unicode=True), encoding="utf-8")
            return
        if suffix in (".csv", ".tsv", ".txt"):
            delimiter = "\t" if suffix == ".tsv" else ","
            fieldnames = [ID_KEY, *columns]
            with open(p, "w", encoding="utf-8", newline="") as fh:
                writer = csv.DictWriter(fh, fieldnames=fieldnames, delimiter=delimiter, extrasaction="ignore")
                writer.writeheader()
                for row in rows:
                    writer.writerow({k: cell_text(row.get(k)) for k in fieldnames})
            return
    except OSError as e:
        raise RowsError(f"Cannot write {p}: {e}") from None
    raise RowsError(f"Unsupported data file type: {p.suffix or '(none)'}")
