from __future__ import annotations

import logging
from typing import Any

from cellgrid.core.settings import DEFAULT_SETTINGS

logger = logging.getLogger(__name__)


class ColumnWidths:
    """Per-column width overrides keyed by field key.

    Absent keys report the default width; every stored width is clamped to
    the minimum. Also tracks the header resize drag.
    """

    def __init__(
        self,
        *,
        default_width: int = DEFAULT_SETTINGS.default_column_width,
        min_width: int = DEFAULT_SETTINGS.min_column_width,
    ) -> None:
        if min_width <= 0:
            raise ValueError("min_width must be positive")
        self.default_width = max(default_width, min_width)
        self.min_width = min_width
        self._widths: dict[str, float] = {}
        self._resizing: str | None = None
        self._start_x: float = 0
        self._start_width: float = 0

    def get_width(self, key: str) -> float:
        return self._widths.get(key, self.default_width)

    def set_width(self, key: str, width: float) -> None:
        self._widths[key] = max(self.min_width, width)

    def reset_all(self) -> None:
        self._widths.clear()

    def total_width(self, keys: list[str], upto: int | None = None) -> float:
        """Sum of widths for `keys[:upto]` (all keys when `upto` is None)."""
        selected = keys if upto is None else keys[:upto]
        return sum(self.get_width(k) for k in selected)

    # ---- Resize drag ----
    @property
    def resizing_column(self) -> str | None:
        return self._resizing

    def start_resize(self, key: str, start_x: float) -> None:
        self._resizing = key
        self._start_x = start_x
        self._start_width = self.get_width(key)
        logger.debug("column resize started: %s at x=%s", key, start_x)

    def update_resize(self, current_x: float) -> None:
        if self._resizing is None:
            return
        self.set_width(self._resizing, self._start_width + (current_x - self._start_x))

    def end_resize(self) -> None:
        if self._resizing is not None:
            logger.debug("column resize ended: %s -> %s", self._resizing, self.get_width(self._resizing))
        self._resizing = None

    # ---- Plain record round-trip ----
    def to_record(self) -> dict[str, float]:
        return dict(self._widths)

    def load_record(self, record: dict[str, Any]) -> None:
        self._widths.clear()
        for key, value in record.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                continue
            self.set_width(str(key), value)


class RowHeights:
    """Per-row height overrides keyed by row index."""

    def __init__(self, *, default_height: int = DEFAULT_SETTINGS.default_row_height) -> None:
        if default_height <= 0:
            raise ValueError("default_height must be positive")
        self.default_height = default_height
        self._heights: dict[int, float] = {}

    def get_height(self, row: int) -> float:
        return self._heights.get(row, self.default_height)

    def override(self, row: int) -> float | None:
        return self._heights.get(row)

    def set_height(self, row: int, height: float) -> None:
        self._heights[row] = height

    def reset_height(self, row: int) -> None:
        self._heights.pop(row, None)

    def reset_all(self) -> None:
        self._heights.clear()

    def to_record(self) -> dict[str, float]:
        return {str(row): h for row, h in self._heights.items()}

    def load_record(self, record: dict[str, Any]) -> None:
        self._heights.clear()
        for key, value in record.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                continue
            try:
                row = int(key)
            except (TypeError, ValueError):
                continue
            self._heights[row] = value


class Sizing:
    """Column widths and row heights travelling together."""

    def __init__(self, columns: ColumnWidths | None = None, rows: RowHeights | None = None) -> None:
        self.columns = columns or ColumnWidths()
        self.rows = rows or RowHeights()

    def reset_all(self) -> None:
        self.columns.reset_all()
        self.rows.reset_all()
