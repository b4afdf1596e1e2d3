from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Sequence

from cellgrid.core.rows import ID_KEY, Row, cell_text, find_row
from cellgrid.core.selection import Cell
from cellgrid.core.settings import DEFAULT_SETTINGS
from cellgrid.core.sizing import Sizing

logger = logging.getLogger(__name__)

HistoryCallback = Callable[[Any, str, Any, Any], None]


@dataclass(frozen=True)
class EditState:
    row: int
    col: int
    key: str
    original_value: Any
    original_column_width: float
    original_row_height: float | None = None  # None: row had no override
    row_id: Any = None


class EditSession:
    """Lifecycle of editing one cell: Idle -> Editing -> Idle.

    While editing, the cell's column is widened to fit the content (up to
    `max_width`) and the row height follows the rendered content once the
    column is capped. Commit and cancel both put the geometry back.
    """

    def __init__(
        self,
        *,
        max_width: int = DEFAULT_SETTINGS.edit_max_width,
        char_width: int = DEFAULT_SETTINGS.edit_char_width,
        padding: int = DEFAULT_SETTINGS.edit_padding,
        row_height: int = DEFAULT_SETTINGS.default_row_height,
    ) -> None:
        self.max_width = max_width
        self.char_width = char_width
        self.padding = padding
        self.row_height = row_height
        self.state: EditState | None = None
        self.input_value: str = ""

    @property
    def is_editing(self) -> bool:
        return self.state is not None

    def content_width(self, text: str) -> int:
        return min(self.max_width, len(text) * self.char_width + self.padding)

    def start_edit(
        self,
        row: int,
        col: int,
        key: str,
        current_value: Any,
        sizing: Sizing,
        row_id: Any = None,
    ) -> None:
        if self.state is not None:
            # only one cell may be open; the caller normally commits first
            self.cancel(sizing)

        text = cell_text(current_value)
        original_width = sizing.columns.get_width(key)
        original_height = sizing.rows.override(row)
        self.state = EditState(
            row=row,
            col=col,
            key=key,
            original_value=current_value,
            original_column_width=original_width,
            original_row_height=original_height,
            row_id=row_id,
        )
        self.input_value = text

        expanded = min(self.max_width, max(original_width, self.content_width(text)))
        sizing.columns.set_width(key, expanded)
        # pending content measurement
        sizing.rows.set_height(row, self.row_height)

    def update_row_height(self, rendered_height: float | None, sizing: Sizing) -> None:
        """Apply the measured editor height once the column can no longer widen."""
        if self.state is None or rendered_height is None:
            return
        if sizing.columns.get_width(self.state.key) >= self.max_width:
            height = max(self.row_height, rendered_height + self.padding)
        else:
            height = self.row_height
        sizing.rows.set_height(self.state.row, height)

    def _restore(self, state: EditState, sizing: Sizing) -> None:
        sizing.columns.set_width(state.key, state.original_column_width)
        if state.original_row_height is None:
            sizing.rows.reset_height(state.row)
        else:
            sizing.rows.set_height(state.row, state.original_row_height)
        self.state = None
        self.input_value = ""

    def _resolve_row(self, state: EditState, rows: Sequence[Row]) -> Row | None:
        if 0 <= state.row < len(rows):
            row = rows[state.row]
            if state.row_id is None or row.get(ID_KEY) == state.row_id:
                return row
        if state.row_id is None:
            return None
        return find_row(rows, state.row_id)

    def save(self, rows: Sequence[Row], on_history_record: HistoryCallback, sizing: Sizing) -> bool:
        """Commit the pending value. Returns False when there was nothing to save to."""
        if self.state is None:
            return False
        state = self.state
        new_value = self.input_value.strip()
        row = self._resolve_row(state, rows)
        if row is None:
            logger.debug("edit save dropped: row %r (index %d) is gone", state.row_id, state.row)
            self._restore(state, sizing)
            return False

        if new_value != cell_text(state.original_value):
            row[state.key] = new_value
            on_history_record(row.get(ID_KEY), state.key, state.original_value, new_value)
            logger.debug("edit committed: %r.%s = %r", row.get(ID_KEY), state.key, new_value)

        self._restore(state, sizing)
        return True

    def cancel(self, sizing: Sizing) -> None:
        if self.state is None:
            return
        self._restore(self.state, sizing)

    def retarget(self, row: int, sizing: Sizing) -> None:
        """Point the open edit at a new index after the rows were replaced."""
        if self.state is None or self.state.row == row:
            return
        transient = sizing.rows.get_height(self.state.row)
        if self.state.original_row_height is None:
            sizing.rows.reset_height(self.state.row)
        else:
            sizing.rows.set_height(self.state.row, self.state.original_row_height)
        self.state = replace(self.state, row=row, original_row_height=sizing.rows.override(row))
        sizing.rows.set_height(row, transient)

    def edit_position(self) -> Cell | None:
        if self.state is None:
            return None
        return Cell(self.state.row, self.state.col)

    def is_editing_cell(self, row: int, col: int) -> bool:
        return self.state is not None and self.state.row == row and self.state.col == col

    def is_editing_row(self, row: int) -> bool:
        return self.state is not None and self.state.row == row
