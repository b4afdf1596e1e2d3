from __future__ import annotations

from collections.abc import Sequence
from functools import cmp_to_key
from typing import Any, Literal

from cellgrid.core.rows import Row

SortDirection = Literal["asc", "desc"]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def sort_rows(rows: Sequence[Row], key: str, direction: SortDirection = "asc") -> list[Row]:
    """Return a new list sorted by `key`. Missing values always sort last."""
    sign = 1 if direction == "asc" else -1

    def compare(a: Row, b: Row) -> int:
        va = a.get(key)
        vb = b.get(key)
        if va is None and vb is None:
            return 0
        if va is None:
            return 1
        if vb is None:
            return -1
        if _is_number(va) and _is_number(vb):
            return ((va > vb) - (va < vb)) * sign
        sa = str(va).casefold()
        sb = str(vb).casefold()
        return ((sa > sb) - (sa < sb)) * sign

    return sorted(rows, key=cmp_to_key(compare))


class SortState:
    """Current sort column/direction with a per-list result cache."""

    def __init__(self) -> None:
        self.key = ""
        self.direction: SortDirection = "asc"
        self._cache: dict[str, list[Row]] = {}
        self._last_rows: Sequence[Row] | None = None

    def _cache_key(self) -> str:
        return f"{self.key}-{self.direction}"

    def update(self, key: str, direction: SortDirection) -> None:
        # choosing the active sort again turns it off
        if self.key == key and self.direction == direction:
            self.reset()
        else:
            self.key = key
            self.direction = direction

    def reset(self) -> None:
        self.key = ""
        self.direction = "asc"
        self.invalidate_cache()

    def invalidate_cache(self) -> None:
        self._cache.clear()
        self._last_rows = None

    def apply(self, rows: Sequence[Row]) -> Sequence[Row]:
        if self._last_rows is not rows:
            self._cache.clear()
            self._last_rows = rows
        if not self.key:
            return rows
        ck = self._cache_key()
        if ck not in self._cache:
            self._cache[ck] = sort_rows(rows, self.key, self.direction)
        return self._cache[ck]

    def is_active(self, key: str) -> bool:
        return self.key == key

    def state_for(self, key: str) -> tuple[bool, SortDirection]:
        return self.key == key, self.direction
