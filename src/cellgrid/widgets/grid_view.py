from __future__ import annotations

from math import ceil

from rich.style import Style
from rich.text import Text
from textual import events
from textual.message import Message
from textual.widget import Widget
from textual.widgets import Input, TextArea

from cellgrid.core.dispatch import DispatchResult, EventHub, KeyInput, PointerInput
from cellgrid.core.engine import GridEngine
from cellgrid.core.rows import cell_text
from cellgrid.core.selection import Cell, OverlayRect
from cellgrid.ui.palette import PALETTE

# Terminal geometry: engine pixels per character column / text line.
PX_PER_CHAR = 8
PX_PER_LINE = 32


class GridView(Widget):
    """Virtualized spreadsheet surface over a `GridEngine`.

    - Renders only the rows of the engine's viewport window that fit on screen.
    - Acts as the engine's cell locator: only rows inside the virtualization
      window have geometry.
    - Forwards raw key/mouse input to the dispatcher through an `EventHub`.
    """

    GUTTER = 6
    SCROLL_STEP = 3
    can_focus = True

    class EditStarted(Message):
        def __init__(self, cell: Cell) -> None:
            super().__init__()
            self.cell = cell

    class EditEnded(Message):
        pass

    class MenuRequested(Message):
        """Context or header menu state was opened on the engine."""

    class SortRequested(Message):
        def __init__(self, key: str) -> None:
            super().__init__()
            self.key = key

    def __init__(self, engine: GridEngine, *, id: str | None = None) -> None:
        super().__init__(id=id)
        self.engine = engine
        self.hub = EventHub()
        self._unmount_dispatch = None
        self._unsubscribe = None
        self._line_rows: list[int] = []
        self._was_editing = False
        engine.set_locator(self)

    # ---- Lifecycle ----
    def on_mount(self) -> None:
        self._unmount_dispatch = self.engine.mount(self.hub)
        self._unsubscribe = self.engine.subscribe(self._on_engine_changed)
        self._sync_port()

    def on_unmount(self) -> None:
        if self._unmount_dispatch is not None:
            self._unmount_dispatch()
            self._unmount_dispatch = None
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def on_resize(self, event: events.Resize) -> None:
        self._sync_port()
        self.engine.selection.update_overlay()
        self.refresh()

    def _sync_port(self) -> None:
        port = self.engine.port
        port.client_height = max(0, self.size.height) * PX_PER_LINE
        port.client_width = max(0, self.size.width - self.GUTTER) * PX_PER_CHAR
        self.engine.viewport.update_container_size(max(0, self.size.height - 1) * PX_PER_LINE)
        self.engine.viewport.handle_scroll(port.scroll_top)

    def _on_engine_changed(self) -> None:
        editing = self.engine.edit.is_editing
        if editing and not self._was_editing:
            pos = self.engine.edit.edit_position()
            if pos is not None:
                self.post_message(self.EditStarted(pos))
        elif not editing and self._was_editing:
            self.post_message(self.EditEnded())
        self._was_editing = editing
        self.engine.viewport.handle_scroll(self.engine.port.scroll_top)
        self.refresh()

    # ---- Geometry (CellLocator) ----
    def _lines_for(self, row: int) -> int:
        return max(1, int(self.engine.sizing.rows.get_height(row) // PX_PER_LINE))

    def _col_chars(self, key: str) -> int:
        return max(1, int(self.engine.sizing.columns.get_width(key) // PX_PER_CHAR))

    def locate(self, row: int, col: int) -> OverlayRect | None:
        engine = self.engine
        start, end = engine.viewport.visible_range()
        end = min(end, len(engine.rows))
        if not (start <= row < end) or not (0 <= col < len(engine.columns)):
            return None
        header = engine.settings.header_height
        top = header + start * engine.viewport.row_height
        for r in range(start, row):
            top += engine.sizing.rows.get_height(r)
        left = engine.sizing.columns.total_width(engine.columns, upto=col)
        return OverlayRect(
            top=top,
            left=left,
            width=engine.sizing.columns.get_width(engine.columns[col]),
            height=engine.sizing.rows.get_height(row),
            visible=True,
        )

    def _top_row(self) -> int:
        return int(self.engine.port.scroll_top // self.engine.viewport.row_height)

    def column_at(self, x: int) -> tuple[int, int] | None:
        """(column index, char offset of its right edge) for screen column x."""
        if x < self.GUTTER:
            return None
        px = (x - self.GUTTER) * PX_PER_CHAR + self.engine.port.scroll_left
        left = 0.0
        for idx, key in enumerate(self.engine.columns):
            width = self._col_chars(key) * PX_PER_CHAR
            if left <= px < left + width:
                right_char = int((left + width - self.engine.port.scroll_left) // PX_PER_CHAR) + self.GUTTER
                return idx, right_char
            left += width
        return None

    def cell_at(self, x: int, y: int) -> Cell | None:
        if y < 1 or y - 1 >= len(self._line_rows):
            return None
        hit = self.column_at(x)
        if hit is None:
            return None
        return Cell(self._line_rows[y - 1], hit[0])

    def _pointer_input(self, event: events.MouseEvent) -> PointerInput:
        return PointerInput(
            x=(event.x - self.GUTTER) * PX_PER_CHAR + self.engine.port.scroll_left,
            y=event.y * PX_PER_LINE,
            cell=self.cell_at(event.x, event.y),
            shift=event.shift,
        )

    # ---- Input ----
    def on_key(self, event: events.Key) -> None:
        in_editable = isinstance(self.app.focused, (Input, TextArea))
        results = self.hub.emit("keydown", KeyInput.parse(event.key, in_editable=in_editable))
        self._apply_results(results, event)

    def _apply_results(self, results: list[DispatchResult], event: events.Event) -> None:
        for result in results:
            if not result.handled:
                continue
            if result.prevent_default:
                event.prevent_default()
            event.stop()
            if result.pending is not None:
                self.run_worker(result.pending, exclusive=False)

    def on_mouse_down(self, event: events.MouseDown) -> None:
        self.focus()
        pointer = self._pointer_input(event)
        # any press outside an open menu closes it
        self.hub.emit("click", pointer)
        if event.y == 0:
            self._header_down(event)
            return
        if event.button == 3:
            result = self.engine.dispatcher.handle_context_menu(pointer, self.size.width * PX_PER_CHAR)
            if result.handled:
                self.post_message(self.MenuRequested())
            return
        if pointer.cell is None:
            return
        self._apply_results(self.hub.emit("pointerdown", pointer), event)
        self.capture_mouse()

    def _header_down(self, event: events.MouseDown) -> None:
        hit = self.column_at(event.x)
        if hit is None:
            return
        idx, right_char = hit
        key = self.engine.columns[idx]
        if event.button == 3:
            self.engine.header_menu.open(key, event.x * PX_PER_CHAR, 0)
            self.post_message(self.MenuRequested())
            return
        if event.x >= right_char - 1:
            # grabbing the column border
            self.engine.dispatcher.handle_header_resize_start(key, self._pointer_input(event).x)
            self.capture_mouse()
            return
        self.post_message(self.SortRequested(key))

    def on_mouse_move(self, event: events.MouseMove) -> None:
        self._apply_results(self.hub.emit("pointermove", self._pointer_input(event)), event)

    def on_mouse_up(self, event: events.MouseUp) -> None:
        self.release_mouse()
        self._apply_results(self.hub.emit("pointerup", self._pointer_input(event)), event)

    def on_click(self, event: events.Click) -> None:
        if getattr(event, "chain", 1) == 2 and event.y > 0:
            self._apply_results(self.hub.emit("dblclick", self._pointer_input(event)), event)

    def on_mouse_scroll_down(self, event: events.MouseScrollDown) -> None:
        self.scroll_rows(self.SCROLL_STEP)
        event.stop()

    def on_mouse_scroll_up(self, event: events.MouseScrollUp) -> None:
        self.scroll_rows(-self.SCROLL_STEP)
        event.stop()

    def scroll_rows(self, delta: int) -> None:
        engine = self.engine
        max_top = max(0, len(engine.rows) - 1) * engine.viewport.row_height
        port = engine.port
        port.scroll_top = max(0, min(max_top, port.scroll_top + delta * engine.viewport.row_height))
        engine.viewport.handle_scroll(port.scroll_top)
        engine.selection.update_overlay()
        self.refresh()

    # ---- Rendering ----
    def _style_for(self, row: int, col: int, zebra: bool) -> Style:
        engine = self.engine
        sel = engine.selection
        if engine.edit.is_editing_cell(row, col):
            return Style(bgcolor=PALETTE.editing_bg, color=PALETTE.editing_fg, bold=True)
        anchor = sel.anchor()
        if anchor is not None and anchor.row == row and anchor.col == col:
            return Style(bgcolor=PALETTE.anchor_bg, color=PALETTE.selection_fg, bold=True)
        if sel.contains(row, col):
            return Style(bgcolor=PALETTE.selection_bg, color=PALETTE.selection_fg)
        if sel.is_cell_in_copy_overlay(row, col):
            return Style(bgcolor=PALETTE.copied_bg, color=PALETTE.copied_fg)
        return Style(color=PALETTE.cell_fg, bgcolor=PALETTE.row_alt_bg if zebra else None)

    def _header_line(self) -> Text:
        engine = self.engine
        line = Text(" " * self.GUTTER, style=Style(bgcolor=PALETTE.header_bg))
        for key in engine.columns:
            chars = self._col_chars(key)
            label = key
            active, direction = engine.sort.state_for(key)
            fg = PALETTE.header_fg
            if active:
                label = f"{key} {'▲' if direction == 'asc' else '▼'}"
                fg = PALETTE.header_sorted_fg
            cell = label[: chars - 1].ljust(chars - 1) + "│"
            line.append(cell, style=Style(color=fg, bgcolor=PALETTE.header_bg, bold=True))
        return line

    def _row_lines(self, row: int) -> list[Text]:
        engine = self.engine
        record = engine.rows[row]
        n_lines = self._lines_for(row)
        zebra = row % 2 == 1
        lines = [Text(f"{row + 1:>{self.GUTTER - 1}} ", style=Style(color=PALETTE.gutter_fg))]
        lines += [Text(" " * self.GUTTER) for _ in range(n_lines - 1)]
        for col, key in enumerate(engine.columns):
            chars = self._col_chars(key)
            if engine.edit.is_editing_cell(row, col):
                value = engine.edit.input_value
            else:
                value = cell_text(record.get(key)).replace("\n", " ")
            style = self._style_for(row, col, zebra)
            width = chars - 1
            chunks = [value[i : i + width] for i in range(0, max(len(value), 1), max(width, 1))]
            for ln in range(n_lines):
                chunk = chunks[ln] if ln < len(chunks) else ""
                if ln == n_lines - 1 and len(chunks) > n_lines and width > 1:
                    chunk = chunk[: width - 1] + "…"
                lines[ln].append(chunk.ljust(width), style=style)
                lines[ln].append(" ")
        return lines

    def render(self) -> Text:
        engine = self.engine
        if not engine.columns:
            return Text("<no columns>")
        height = max(1, self.size.height or 1)
        skip = int(engine.port.scroll_left // PX_PER_CHAR)
        width = max(1, self.size.width or 80)

        out: list[Text] = [self._header_line()]
        self._line_rows = []
        start, end = engine.viewport.visible_range()
        end = min(end, len(engine.rows))
        row = max(self._top_row(), start)
        while len(out) < height and row < end:
            for line in self._row_lines(row):
                if len(out) >= height:
                    break
                out.append(line)
                self._line_rows.append(row)
            row += 1

        if len(out) == 1 and not engine.rows:
            out.append(Text("<no rows>", style=Style(color=PALETTE.cell_empty_fg)))

        text = Text()
        for i, line in enumerate(out):
            if skip:
                gutter = line[: self.GUTTER]
                body = line[self.GUTTER + skip :]
                line = gutter
                line.append_text(body)
            line.truncate(width)
            text.append_text(line)
            if i < len(out) - 1:
                text.append("\n")
        return text

    # ---- Edit measurement ----
    def measure_edit(self) -> None:
        """Report the editor's wrapped content height to the engine."""
        state = self.engine.edit.state
        if state is None:
            return
        chars = max(1, self._col_chars(state.key) - 1)
        lines = max(1, ceil(len(self.engine.edit.input_value) / chars))
        self.engine.measure_edit(lines * PX_PER_LINE)
