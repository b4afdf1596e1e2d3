"""Inline editor bar for the cell being edited."""

from __future__ import annotations

from textual import events
from textual.widgets import Input

from cellgrid.core.engine import GridEngine


class CellEditor(Input):
    """Single-line editor bound to the engine's edit session.

    Enter commits, Escape cancels. Every keystroke mirrors into the session
    so the grid can grow the row while typing.
    """

    def __init__(self, engine: GridEngine, *, id: str | None = None) -> None:
        super().__init__(placeholder="(empty)", id=id)
        self.engine = engine

    def open_for_edit(self) -> None:
        state = self.engine.edit.state
        if state is None:
            return
        self.value = self.engine.edit.input_value
        self.border_title = f"{state.key} (row {state.row + 1})"
        self.remove_class("hidden")
        self.styles.width = max(20, int(self.engine.edit.content_width(self.value) // 8) + 4)
        self.focus()
        self.cursor_position = len(self.value)

    def close_editor(self) -> None:
        self.add_class("hidden")
        grid = self.app.query_one("#grid")
        grid.focus()

    def on_input_changed(self, event: Input.Changed) -> None:
        event.stop()
        if not self.engine.edit.is_editing:
            return
        self.engine.set_edit_value(event.value)
        grid = self.app.query_one("#grid")
        if hasattr(grid, "measure_edit"):
            grid.measure_edit()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.engine.commit_edit()
        self.close_editor()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            event.prevent_default()
            event.stop()
            self.engine.cancel_edit()
            self.close_editor()

    def on_blur(self, event: events.Blur) -> None:
        # leaving the editor commits, like clicking elsewhere in the grid
        if self.engine.edit.is_editing:
            self.engine.commit_edit()
        self.add_class("hidden")
