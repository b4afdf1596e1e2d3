from __future__ import annotations

from cellgrid.core.history import HistoryLog


def _rows() -> list[dict]:
    return [{"id": 1, "a": "x"}, {"id": 2, "a": "y"}, {"id": 3, "b": "q"}]


def test_record_same_value_is_noop() -> None:
    log = HistoryLog()
    log.record(1, "a", "x", "x")
    assert log.undo_stack == ()
    assert not log.can_undo


def test_record_clears_redo() -> None:
    rows = _rows()
    log = HistoryLog()
    log.record(1, "a", "x", "z")
    rows[0]["a"] = "z"
    log.undo(rows)
    assert log.can_redo
    log.record(2, "a", "y", "w")
    assert not log.can_redo


def test_undo_redo_n_times_round_trips() -> None:
    rows = _rows()
    log = HistoryLog()
    edits = [(1, "a", "x", "x1"), (2, "a", "y", "y1"), (3, "b", "q", "q1")]
    for row_id, key, old, new in edits:
        next(r for r in rows if r["id"] == row_id)[key] = new
        log.record(row_id, key, old, new)
    edited = [dict(r) for r in rows]

    for n in range(1, len(edits) + 1):
        for _ in range(n):
            assert log.undo(rows) is not None
        for _ in range(n):
            assert log.redo(rows) is not None
        assert rows == edited


def test_undo_resolves_row_by_id_after_reorder() -> None:
    rows = _rows()
    log = HistoryLog()
    rows[0]["a"] = "z"
    log.record(1, "a", "x", "z")
    rows.reverse()
    action = log.undo(rows)
    assert action is not None
    assert next(r for r in rows if r["id"] == 1)["a"] == "x"


def test_undo_drops_action_for_missing_row() -> None:
    rows = _rows()
    log = HistoryLog()
    log.record(1, "a", "x", "z")
    filtered = [r for r in rows if r["id"] != 1]
    assert log.undo(filtered) is None
    assert not log.can_undo
    assert not log.can_redo


def test_empty_stacks_return_none() -> None:
    log = HistoryLog()
    assert log.undo([]) is None
    assert log.redo([]) is None


def test_clear() -> None:
    log = HistoryLog()
    log.record(1, "a", "x", "z")
    log.clear()
    assert log.undo_stack == ()
    assert log.redo_stack == ()
