"""Free-text search and key:value filter state.

Search execution belongs to a collaborator ``search_fn(term, params)`` that
returns a replacement row list; `search_rows` is the in-memory one.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from cellgrid.core.rows import ID_KEY, Row, cell_text

logger = logging.getLogger(__name__)

SearchFn = Callable[[str, list[str]], list[Row]]


@dataclass(frozen=True)
class Filter:
    key: str
    value: str

    def as_param(self) -> str:
        return f"{self.key}:{self.value}"

    @classmethod
    def parse(cls, text: str) -> Filter | None:
        """Parse ``key:value``; both halves are required."""
        key, sep, value = text.partition(":")
        if not sep or not key or not value:
            return None
        return cls(key, value)


def unique_values(rows: Sequence[Row], key: str) -> list[str]:
    values = {cell_text(r.get(key)) for r in rows if r.get(key) is not None and r.get(key) != ""}
    return sorted(values)


def toggle_filter(current: Sequence[Filter], key: str, value: str) -> list[Filter]:
    target = Filter(key, value)
    if target in current:
        return [f for f in current if f != target]
    return [*current, target]


def remove_filter(current: Sequence[Filter], filter_to_remove: Filter) -> list[Filter]:
    return [f for f in current if f != filter_to_remove]


def _sort_key(row: Row) -> tuple[int, Any]:
    rid = row.get(ID_KEY)
    if isinstance(rid, (int, float)) and not isinstance(rid, bool):
        return (0, rid)
    return (1, cell_text(rid))


def search_rows(
    rows: Sequence[Row],
    term: str,
    filters: Sequence[str],
    columns: Sequence[str] | None = None,
) -> list[Row]:
    """In-memory search collaborator.

    - `term` matches case-insensitively as a substring of any searchable column.
    - Filters are ``key:value`` strings: values for one key are OR'd, keys are AND'd.
    - Result is ordered by row id; rows are the same objects, not copies.
    """
    grouped: dict[str, set[str]] = {}
    for raw in filters:
        flt = Filter.parse(raw)
        if flt is not None:
            grouped.setdefault(flt.key, set()).add(flt.value)

    needle = term.casefold()
    out: list[Row] = []
    for row in rows:
        if needle:
            keys = columns if columns is not None else [k for k in row if k != ID_KEY]
            if not any(needle in cell_text(row.get(k)).casefold() for k in keys):
                continue
        if any(cell_text(row.get(k)) not in values for k, values in grouped.items()):
            continue
        out.append(row)
    return sorted(out, key=_sort_key)


@dataclass
class SearchState:
    term: str = ""
    input_value: str = ""
    selected_filters: list[Filter] = field(default_factory=list)
    filter_options: dict[str, list[str]] = field(default_factory=dict)
    error: str = ""

    def params(self) -> list[str]:
        return [f.as_param() for f in self.selected_filters]

    def search(self, base_rows: Sequence[Row], search_fn: SearchFn) -> list[Row]:
        """Replacement rows for the current term and filters."""
        if not self.term and not self.selected_filters:
            self.error = ""
            return list(base_rows)
        try:
            result = search_fn(self.term, self.params())
        except Exception as e:
            self.error = str(e) or "An unknown error occurred."
            logger.error("Search failed: %s", self.error)
            return []
        self.error = ""
        return list(result)

    def execute_search(self) -> None:
        self.term = self.input_value

    def clear_search(self) -> None:
        self.term = ""
        self.input_value = ""

    def get_filter_items(self, key: str, rows: Sequence[Row]) -> list[str]:
        if key in self.filter_options:
            return self.filter_options[key]
        return unique_values(rows, key)

    def select_filter_item(self, value: str, key: str, rows: Sequence[Row]) -> None:
        self.selected_filters = toggle_filter(self.selected_filters, key, value)
        # options stay stable while the key is filtered
        if key not in self.filter_options:
            self.filter_options[key] = self.get_filter_items(key, rows)

    def remove_filter(self, flt: Filter) -> None:
        self.selected_filters = remove_filter(self.selected_filters, flt)

    def clear_all_filters(self) -> None:
        self.selected_filters = []

    def cleanup_filter_cache(self) -> None:
        active = {f.key for f in self.selected_filters}
        for key in list(self.filter_options):
            if key not in active:
                del self.filter_options[key]

    def is_filter_selected(self, key: str, value: str) -> bool:
        return Filter(key, value) in self.selected_filters

    def filter_count(self) -> int:
        return len(self.selected_filters)
