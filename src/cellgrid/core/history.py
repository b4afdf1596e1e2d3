from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

from cellgrid.core.rows import Row, find_row

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistoryAction:
    id: Any  # row identifier, never the array index
    key: str
    old_value: Any
    new_value: Any


class HistoryLog:
    """Linear undo/redo ledger of already-applied field edits.

    Rows are resolved by identifier on replay so the ledger survives re-sorts
    and re-filters. An action whose row is no longer present is dropped.
    """

    def __init__(self) -> None:
        self._undo: list[HistoryAction] = []
        self._redo: list[HistoryAction] = []

    @property
    def undo_stack(self) -> tuple[HistoryAction, ...]:
        return tuple(self._undo)

    @property
    def redo_stack(self) -> tuple[HistoryAction, ...]:
        return tuple(self._redo)

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def record(self, row_id: Any, key: str, old_value: Any, new_value: Any) -> None:
        if old_value == new_value:
            return
        self._undo.append(HistoryAction(row_id, key, old_value, new_value))
        self._redo.clear()

    def undo(self, rows: Sequence[Row]) -> HistoryAction | None:
        """Revert the newest action. Returns it when it was applied."""
        if not self._undo:
            return None
        action = self._undo.pop()
        row = find_row(rows, action.id)
        if row is None:
            logger.debug("undo dropped: row %r not in current view", action.id)
            return None
        row[action.key] = action.old_value
        self._redo.append(action)
        return action

    def redo(self, rows: Sequence[Row]) -> HistoryAction | None:
        if not self._redo:
            return None
        action = self._redo.pop()
        row = find_row(rows, action.id)
        if row is None:
            logger.debug("redo dropped: row %r not in current view", action.id)
            return None
        row[action.key] = action.new_value
        self._undo.append(action)
        return action

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
