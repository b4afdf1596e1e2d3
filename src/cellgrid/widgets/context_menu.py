"""Floating cell/header menu."""

from __future__ import annotations

from textual import events
from textual.message import Message
from textual.widgets import OptionList

from cellgrid.core.engine import GridEngine
from cellgrid.widgets.grid_view import PX_PER_CHAR, PX_PER_LINE

CELL_ACTIONS = [("Copy", "copy"), ("Paste", "paste"), ("Edit", "edit")]
HEADER_ACTIONS = [
    ("Sort ascending", "sort_asc"),
    ("Sort descending", "sort_desc"),
    ("Reset width", "reset_width"),
]


class ContextMenu(OptionList):
    """Shows whichever of the engine's menus is open and reports the choice."""

    class Chosen(Message):
        def __init__(self, action: str, row: int, col: int, key: str | None) -> None:
            super().__init__()
            self.action = action
            self.row = row
            self.col = col
            self.key = key

    def __init__(self, engine: GridEngine, *, id: str | None = None) -> None:
        super().__init__(id=id)
        self.engine = engine
        self._actions: list[str] = []

    def sync(self, *, offset_x: int = 0, offset_y: int = 0) -> None:
        """Show or hide to match the engine's menu state."""
        engine = self.engine
        self.clear_options()
        if engine.context_menu.visible:
            entries = CELL_ACTIONS
            x, y = engine.context_menu.x, engine.context_menu.y
        elif engine.header_menu.visible:
            entries = HEADER_ACTIONS
            x, y = engine.header_menu.x, engine.header_menu.y
        else:
            self._actions = []
            self.add_class("hidden")
            return
        self._actions = [action for _, action in entries]
        for label, _ in entries:
            self.add_option(label)
        self.styles.offset = (
            max(0, int(x // PX_PER_CHAR) + offset_x),
            max(0, int(y // PX_PER_LINE) + offset_y),
        )
        self.remove_class("hidden")
        self.highlighted = 0
        self.focus()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        event.stop()
        if not (0 <= event.option_index < len(self._actions)):
            return
        engine = self.engine
        action = self._actions[event.option_index]
        message = self.Chosen(action, engine.context_menu.row, engine.context_menu.col, engine.header_menu.key)
        engine.context_menu.close()
        engine.header_menu.close()
        self.add_class("hidden")
        self.post_message(message)

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            event.prevent_default()
            event.stop()
            self.engine.context_menu.close()
            self.engine.header_menu.close()
            self.add_class("hidden")
            self.app.query_one("#grid").focus()

    def on_blur(self, event: events.Blur) -> None:
        if self.engine.context_menu.visible or self.engine.header_menu.visible:
            self.engine.context_menu.close()
            self.engine.header_menu.close()
        self.add_class("hidden")
