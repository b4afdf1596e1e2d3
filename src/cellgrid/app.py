from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from rich.text import Text
from textual.app import App, ComposeResult
from textual.widgets import Footer, Header, Static

from cellgrid.core.clipboard import ClipboardUnavailable, PlatformClipboard, SystemClipboard
from cellgrid.core.engine import GridEngine
from cellgrid.core.rows import Row, RowsError, save_rows
from cellgrid.core.settings import DEFAULT_SETTINGS, GridSettings, get_user_config_dir
from cellgrid.ui.palette import PALETTE
from cellgrid.widgets.cell_editor import CellEditor
from cellgrid.widgets.context_menu import ContextMenu
from cellgrid.widgets.grid_view import PX_PER_CHAR, GridView
from cellgrid.widgets.search_bar import SearchBar

logger = logging.getLogger(__name__)


def column_widths_path(data_path: str | Path) -> Path:
    """Per-file location of persisted column widths."""
    return get_user_config_dir() / "widths" / f"{Path(data_path).stem}.yaml"


class TerminalClipboard:
    """Clipboard through Textual (OSC 52) with the OS tools as fallback."""

    def __init__(self, app: App, fallback: PlatformClipboard | None = None) -> None:
        self.app = app
        self.fallback: PlatformClipboard = fallback or SystemClipboard()

    async def write_text(self, text: str) -> None:
        try:
            self.app.copy_to_clipboard(text)
            return
        except Exception as e:
            logger.debug("Terminal clipboard write failed: %s", e)
        await self.fallback.write_text(text)

    async def read_text(self) -> str:
        try:
            return await self.fallback.read_text()
        except ClipboardUnavailable:
            # last text this app copied, e.g. over SSH without OS tools
            if self.app.clipboard:
                return self.app.clipboard
            raise


class CellGridApp(App):
    """Textual application shell for cellgrid."""

    CSS_PATH = "ui/theme.tcss"
    BINDINGS = [
        ("q", "quit", "Quit"),
        ("ctrl+s", "save", "Save"),
        ("ctrl+f", "focus_search", "Search"),
        ("ctrl+r", "reset_widths", "Reset Widths"),
    ]

    def __init__(
        self,
        path: str,
        rows: list[Row],
        columns: list[str],
        *,
        settings: GridSettings = DEFAULT_SETTINGS,
        clipboard: PlatformClipboard | None = None,
        widths_path: Path | None = None,
    ) -> None:
        super().__init__()
        self._path = path
        self._dirty = False
        self._widths_path = widths_path or column_widths_path(path)
        self.title = f"cellgrid — {os.path.basename(path)}"
        self.engine = GridEngine(
            rows,
            columns,
            settings=settings,
            clipboard=clipboard if clipboard is not None else TerminalClipboard(self),
            persist=self._on_persist,
        )
        self.grid = GridView(self.engine, id="grid")
        self.editor = CellEditor(self.engine, id="cell-editor")
        self.menu = ContextMenu(self.engine, id="context-menu")
        self.search_bar = SearchBar(columns, id="search-bar")
        self.status = Static(id="status")
        self._unsubscribe = None

    def compose(self) -> ComposeResult:  # noqa: D401 - Textual API
        yield Header(show_clock=False, id="header")
        yield self.search_bar
        yield self.grid
        yield self.editor
        yield self.menu
        yield self.status
        yield Footer(id="footer")

    def on_mount(self) -> None:
        self.editor.add_class("hidden")
        self.menu.add_class("hidden")
        self.engine.load_column_widths(self._widths_path)
        self._unsubscribe = self.engine.subscribe(self.update_status)
        self.update_status()
        self._update_banner()
        self.set_focus(self.grid)

    def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # ---- Persistence ----
    def _on_persist(self, row_id: Any, key: str, value: Any) -> None:
        logger.debug("Row %r field %s changed", row_id, key)
        self._dirty = True

    def action_save(self) -> None:
        try:
            save_rows(self._path, self.engine.base_rows, self.engine.columns)
        except (OSError, RowsError) as e:
            logger.error("Save failed: %s", e)
            self.notify(f"Save failed: {e}", severity="error")
            return
        self.engine.save_column_widths(self._widths_path)
        self._dirty = False
        self.notify(f"Saved {os.path.basename(self._path)}")
        self.update_status()

    def action_reset_widths(self) -> None:
        self.engine.sizing.columns.reset_all()
        self.engine.selection.update_overlay()
        self.grid.refresh()

    def action_focus_search(self) -> None:
        self.search_bar.focus_input()

    # ---- Grid events ----
    def on_grid_view_edit_started(self, event: GridView.EditStarted) -> None:
        self.editor.open_for_edit()

    def on_grid_view_edit_ended(self, event: GridView.EditEnded) -> None:
        if not self.editor.has_class("hidden"):
            self.editor.add_class("hidden")
            self.set_focus(self.grid)

    def on_grid_view_menu_requested(self, event: GridView.MenuRequested) -> None:
        region = self.grid.content_region
        if self.engine.context_menu.visible:
            scroll_chars = int(self.engine.port.scroll_left // PX_PER_CHAR)
            self.menu.sync(offset_x=region.x + GridView.GUTTER - scroll_chars, offset_y=region.y)
        else:
            self.menu.sync(offset_x=region.x, offset_y=region.y + 1)

    def on_grid_view_sort_requested(self, event: GridView.SortRequested) -> None:
        active, _ = self.engine.sort.state_for(event.key)
        # off -> ascending -> descending -> off
        if not active:
            self.engine.sort_by(event.key, "asc")
        else:
            self.engine.sort_by(event.key, "desc")
        self._update_banner()

    def on_context_menu_chosen(self, event: ContextMenu.Chosen) -> None:
        engine = self.engine
        if event.action == "copy":
            engine.copy()
        elif event.action == "paste":
            self.run_worker(engine.paste(), exclusive=False)
        elif event.action == "edit":
            engine.begin_edit(event.row, event.col)
        elif event.action in ("sort_asc", "sort_desc") and event.key:
            engine.sort_by(event.key, "asc" if event.action == "sort_asc" else "desc")
            self._update_banner()
        elif event.action == "reset_width" and event.key:
            engine.sizing.columns.set_width(event.key, engine.settings.default_column_width)
            engine.selection.update_overlay()
        if event.action != "edit":
            self.set_focus(self.grid)
        self.grid.refresh()

    # ---- Search ----
    def on_search_bar_submitted(self, event: SearchBar.Submitted) -> None:
        self.engine.apply_search(event.term, event.filters)
        self._update_banner()
        self.set_focus(self.grid)

    def clear_filters(self) -> None:
        self.engine.apply_search(filters=[])
        self._update_banner()

    def _update_banner(self) -> None:
        search = self.engine.search
        self.search_bar.show_status(search.selected_filters, len(self.engine.rows), search.error)

    # ---- Status ----
    def update_status(self) -> None:
        engine = self.engine
        sel = engine.selection
        text = Text()
        anchor = sel.anchor()
        if anchor is not None and engine.columns:
            text.append(f"{engine.columns[anchor.col]} r{anchor.row + 1}", style=f"bold {PALETTE.accent}")
            bounds = sel.get_bounds()
            if bounds is not None and (bounds.row_count > 1 or bounds.col_count > 1):
                text.append(f"  {bounds.row_count}×{bounds.col_count} selected")
        else:
            text.append("no selection", style=PALETTE.cell_empty_fg)
        text.append(f"  |  {len(engine.rows)}/{len(engine.base_rows)} rows")
        if engine.clipboard.has_data():
            text.append("  |  copied", style=PALETTE.copied_fg)
        if engine.history.can_undo:
            text.append(f"  |  {len(engine.history.undo_stack)} undo")
        if self._dirty:
            text.append("  |  modified", style=f"bold {PALETTE.focus_border}")
        self.status.update(text)
