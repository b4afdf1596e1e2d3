from __future__ import annotations

from typing import Any

from cellgrid.core.edit import EditSession
from cellgrid.core.sizing import Sizing


class Recorder:
    def __init__(self) -> None:
        self.calls: list[tuple[Any, str, Any, Any]] = []

    def __call__(self, row_id: Any, key: str, old: Any, new: Any) -> None:
        self.calls.append((row_id, key, old, new))


def test_start_edit_widens_column_and_resets_row_height() -> None:
    sizing = Sizing()
    sizing.rows.set_height(0, 80)
    session = EditSession()
    session.start_edit(0, 0, "a", "x" * 30, sizing)
    assert session.is_editing
    # 30 chars * 8 + 16
    assert sizing.columns.get_width("a") == 256
    assert sizing.rows.get_height(0) == 32
    assert session.input_value == "x" * 30


def test_start_edit_caps_width_and_never_shrinks() -> None:
    sizing = Sizing()
    session = EditSession()
    session.start_edit(0, 0, "a", "x" * 200, sizing)
    assert sizing.columns.get_width("a") == 300
    session.cancel(sizing)

    sizing.columns.set_width("b", 280)
    session.start_edit(0, 1, "b", "hi", sizing)
    assert sizing.columns.get_width("b") == 280


def test_row_grows_only_at_width_cap() -> None:
    sizing = Sizing()
    session = EditSession()
    session.start_edit(0, 0, "a", "short", sizing)
    session.update_row_height(100, sizing)
    assert sizing.rows.get_height(0) == 32
    session.cancel(sizing)

    session.start_edit(0, 0, "a", "y" * 100, sizing)
    session.update_row_height(100, sizing)
    assert sizing.rows.get_height(0) == 116
    session.update_row_height(4, sizing)
    assert sizing.rows.get_height(0) == 32


def test_save_trims_writes_and_records() -> None:
    rows = [{"id": 7, "a": "x"}]
    sizing = Sizing()
    session = EditSession()
    record = Recorder()
    session.start_edit(0, 0, "a", "x", sizing, row_id=7)
    session.input_value = "  z  "
    assert session.save(rows, record, sizing)
    assert rows[0]["a"] == "z"
    assert record.calls == [(7, "a", "x", "z")]
    assert not session.is_editing
    assert sizing.columns.get_width("a") == 150
    assert sizing.rows.override(0) is None


def test_save_unchanged_value_records_nothing() -> None:
    rows = [{"id": 1, "a": "x"}]
    sizing = Sizing()
    session = EditSession()
    record = Recorder()
    session.start_edit(0, 0, "a", "x", sizing, row_id=1)
    session.input_value = "x "
    assert session.save(rows, record, sizing)
    assert record.calls == []


def test_save_for_missing_row_fails_quietly_and_restores() -> None:
    sizing = Sizing()
    sizing.rows.set_height(3, 64)
    session = EditSession()
    record = Recorder()
    session.start_edit(3, 0, "a", "abc", sizing, row_id=99)
    session.input_value = "changed"
    assert session.save([{"id": 1, "a": "x"}], record, sizing) is False
    assert record.calls == []
    assert not session.is_editing
    assert sizing.rows.get_height(3) == 64
    assert sizing.columns.get_width("a") == 150


def test_save_follows_id_when_index_moved() -> None:
    rows = [{"id": 1, "a": "x"}, {"id": 2, "a": "y"}]
    sizing = Sizing()
    session = EditSession()
    session.start_edit(0, 0, "a", "x", sizing, row_id=1)
    session.input_value = "z"
    rows.reverse()
    assert session.save(rows, Recorder(), sizing)
    assert rows[1] == {"id": 1, "a": "z"}
    assert rows[0]["a"] == "y"


def test_cancel_restores_without_writing() -> None:
    rows = [{"id": 1, "a": "x"}]
    sizing = Sizing()
    sizing.columns.set_width("a", 90)
    session = EditSession()
    session.start_edit(0, 0, "a", "x" * 40, sizing, row_id=1)
    session.input_value = "nope"
    session.cancel(sizing)
    assert rows[0]["a"] == "x"
    assert sizing.columns.get_width("a") == 90
    session.cancel(sizing)  # idle cancel is harmless


def test_starting_second_edit_resolves_first() -> None:
    sizing = Sizing()
    session = EditSession()
    session.start_edit(0, 0, "a", "x" * 40, sizing)
    session.start_edit(1, 1, "b", "y", sizing)
    assert session.is_editing_cell(1, 1)
    assert not session.is_editing_cell(0, 0)
    assert sizing.columns.get_width("a") == 150


def test_retarget_moves_transient_height() -> None:
    sizing = Sizing()
    session = EditSession()
    session.start_edit(2, 0, "a", "x" * 100, sizing, row_id=5)
    session.update_row_height(64, sizing)
    session.retarget(0, sizing)
    assert session.edit_position() is not None
    assert session.edit_position().row == 0
    assert sizing.rows.get_height(0) == 80
    assert sizing.rows.override(2) is None
    session.cancel(sizing)
    assert sizing.rows.override(0) is None


def test_history_gets_raw_original_value() -> None:
    rows = [{"id": 1, "n": 5}]
    sizing = Sizing()
    session = EditSession()
    record = Recorder()
    session.start_edit(0, 0, "n", 5, sizing, row_id=1)
    assert session.input_value == "5"
    session.input_value = "5 "
    assert session.save(rows, record, sizing)
    assert record.calls == []
    assert rows[0]["n"] == 5

    session.start_edit(0, 0, "n", 5, sizing, row_id=1)
    session.input_value = "6"
    session.save(rows, record, sizing)
    assert record.calls == [(1, "n", 5, "6")]
