from __future__ import annotations

from dataclasses import dataclass
from math import ceil, floor
from typing import Generic, Sequence, TypeVar

from cellgrid.core.settings import DEFAULT_SETTINGS
from cellgrid.core.sizing import ColumnWidths

T = TypeVar("T")


@dataclass
class ScrollPort:
    """Scrollable container geometry the window calculator may adjust.

    The rendering layer owns it and applies `scroll_top`/`scroll_left` back to
    whatever actually scrolls.
    """

    scroll_top: float = 0
    scroll_left: float = 0
    client_height: float = 0
    client_width: float = 0


@dataclass(frozen=True)
class VisibleSlice(Generic[T]):
    items: list[T]
    start_index: int
    end_index: int


class ViewportWindow:
    """Computes which contiguous rows to materialize for a scroll position.

    - Uses a fixed row height; per-row overrides do not affect windowing.
    - Adds `overscan` rows above and below the visible rows.
    """

    def __init__(
        self,
        *,
        row_height: int = DEFAULT_SETTINGS.default_row_height,
        overscan: int = DEFAULT_SETTINGS.overscan,
        header_height: int = DEFAULT_SETTINGS.header_height,
        bottom_buffer: int = DEFAULT_SETTINGS.bottom_buffer,
    ) -> None:
        if row_height <= 0:
            raise ValueError("row_height must be positive")
        if overscan < 0:
            raise ValueError("overscan must be >= 0")
        self.row_height = row_height
        self.overscan = overscan
        self.header_height = header_height
        self.bottom_buffer = bottom_buffer
        self.scroll_offset: float = 0
        self.container_size: float = 0

    # ---- State updates from the rendering layer ----
    def handle_scroll(self, offset: float) -> None:
        self.scroll_offset = max(0, offset)

    def update_container_size(self, size: float) -> None:
        self.container_size = max(0, size)

    # ---- Window ----
    def visible_range(self) -> tuple[int, int]:
        start = max(0, floor(self.scroll_offset / self.row_height) - self.overscan)
        visible_count = ceil(self.container_size / self.row_height)
        end = start + visible_count + self.overscan * 2
        return start, end

    def get_visible_items(self, data: Sequence[T]) -> VisibleSlice[T]:
        start, end = self.visible_range()
        end = min(end, len(data))
        return VisibleSlice(items=list(data[start:end]), start_index=start, end_index=end)

    def total_height(self, count: int) -> int:
        return count * self.row_height

    def offset_y(self) -> int:
        return self.visible_range()[0] * self.row_height

    def actual_index(self, visible_index: int) -> int:
        return self.visible_range()[0] + visible_index

    def is_row_visible(self, index: int) -> bool:
        start, end = self.visible_range()
        return start <= index < end

    # ---- Scrolling ----
    def scroll_to_row(self, index: int, port: ScrollPort | None) -> None:
        if port is None:
            return
        port.scroll_top = max(0, index * self.row_height)
        self.scroll_offset = port.scroll_top

    def ensure_visible(
        self,
        row: int,
        col: int,
        port: ScrollPort | None,
        columns: list[str] | None = None,
        sizing: ColumnWidths | None = None,
    ) -> None:
        """Scroll `port` minimally so the cell at (row, col) is fully in view.

        The row must not hide behind the sticky header band nor sit below the
        bottom edge; when column geometry is supplied the same is done
        horizontally.
        """
        if port is None:
            return

        header = self.header_height
        row_top = row * self.row_height + header
        row_bottom = row_top + self.row_height
        view_top = port.scroll_top + header
        view_bottom = port.scroll_top + port.client_height

        if row_top < view_top:
            port.scroll_top = max(0, row_top - header)
        elif row_bottom > view_bottom:
            port.scroll_top = max(0, row_bottom - port.client_height + self.bottom_buffer)
        self.scroll_offset = port.scroll_top

        if columns is None or sizing is None:
            return
        if col < 0 or col >= len(columns):
            return
        left = sizing.total_width(columns, upto=col)
        right = left + sizing.get_width(columns[col])
        view_left = port.scroll_left
        view_right = port.scroll_left + port.client_width
        if left < view_left:
            port.scroll_left = left
        elif right > view_right:
            port.scroll_left = max(0, right - port.client_width)
