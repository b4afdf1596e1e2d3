from __future__ import annotations

from cellgrid.core.sort import SortState, sort_rows

ROWS = [
    {"id": 1, "n": 10, "s": "beta"},
    {"id": 2, "n": None, "s": "Alpha"},
    {"id": 3, "n": 2, "s": None},
    {"id": 4, "n": 33, "s": "gamma"},
]


def _ids(rows) -> list[int]:  # type: ignore[no-untyped-def]
    return [r["id"] for r in rows]


def test_numbers_sort_numerically_missing_last() -> None:
    assert _ids(sort_rows(ROWS, "n", "asc")) == [3, 1, 4, 2]
    assert _ids(sort_rows(ROWS, "n", "desc")) == [4, 1, 3, 2]


def test_strings_sort_casefolded() -> None:
    assert _ids(sort_rows(ROWS, "s", "asc")) == [2, 1, 4, 3]


def test_sort_does_not_mutate_input() -> None:
    original = list(ROWS)
    sort_rows(ROWS, "n", "desc")
    assert ROWS == original


def test_sort_state_toggles_and_caches() -> None:
    state = SortState()
    assert state.apply(ROWS) is ROWS
    state.update("n", "asc")
    first = state.apply(ROWS)
    assert _ids(first) == [3, 1, 4, 2]
    assert state.apply(ROWS) is first
    assert state.is_active("n")
    assert state.state_for("n") == (True, "asc")
    state.update("n", "asc")
    assert not state.is_active("n")
    assert state.apply(ROWS) is ROWS


def test_sort_state_cache_follows_list_identity() -> None:
    state = SortState()
    state.update("n", "asc")
    first = state.apply(ROWS)
    other = list(ROWS)
    assert state.apply(other) is not first
