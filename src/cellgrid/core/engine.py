"""Grid interaction engine.

`GridEngine` wires the sizing store, viewport window, selection model, edit
session, clipboard bridge, history log and dispatcher around one row list.
The row list belongs to the caller; the engine mutates fields in place and
swaps in whole replacement lists only through `replace_rows`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine, Sequence
from pathlib import Path
from typing import Any

from cellgrid.core import settings as settings_store
from cellgrid.core.clipboard import ClipboardBridge, PlatformClipboard
from cellgrid.core.dispatch import (
    ContextMenuState,
    DispatchCallbacks,
    DispatchResult,
    EventHub,
    HeaderMenuState,
    InteractionDispatcher,
    KeyInput,
    PointerInput,
)
from cellgrid.core.edit import EditSession
from cellgrid.core.filters import Filter, SearchFn, SearchState, search_rows
from cellgrid.core.history import HistoryAction, HistoryLog
from cellgrid.core.rows import ID_KEY, Row, index_of
from cellgrid.core.selection import Cell, CellLocator, SelectionModel
from cellgrid.core.settings import DEFAULT_SETTINGS, GridSettings
from cellgrid.core.sizing import ColumnWidths, RowHeights, Sizing
from cellgrid.core.sort import SortDirection, SortState
from cellgrid.core.viewport import ScrollPort, ViewportWindow, VisibleSlice

logger = logging.getLogger(__name__)

PersistHook = Callable[[Any, str, Any], Any]


class GridEngine:
    def __init__(
        self,
        rows: list[Row],
        columns: Sequence[str],
        *,
        settings: GridSettings = DEFAULT_SETTINGS,
        locator: CellLocator | None = None,
        clipboard: PlatformClipboard | None = None,
        persist: PersistHook | None = None,
        search_fn: SearchFn | None = None,
    ) -> None:
        self.settings = settings
        self.base_rows = rows
        self.rows: list[Row] = rows
        self.columns = list(columns)
        self.persist = persist
        self.search_fn: SearchFn = search_fn or self._local_search

        self.sizing = Sizing(
            ColumnWidths(default_width=settings.default_column_width, min_width=settings.min_column_width),
            RowHeights(default_height=settings.default_row_height),
        )
        self.viewport = ViewportWindow(
            row_height=settings.default_row_height,
            overscan=settings.overscan,
            header_height=settings.header_height,
            bottom_buffer=settings.bottom_buffer,
        )
        self.port = ScrollPort()
        self.selection = SelectionModel(locator)
        self.edit = EditSession(
            max_width=settings.edit_max_width,
            char_width=settings.edit_char_width,
            padding=settings.edit_padding,
            row_height=settings.default_row_height,
        )
        self.clipboard = ClipboardBridge(clipboard)
        self.history = HistoryLog()
        self.context_menu = ContextMenuState(menu_width=settings.menu_width)
        self.header_menu = HeaderMenuState()
        self.search = SearchState()
        self.sort = SortState()
        self._filtered: list[Row] = rows

        self.dispatcher = InteractionDispatcher(
            self.selection,
            self.sizing.columns,
            self.context_menu,
            self.header_menu,
            DispatchCallbacks(
                on_copy=self.copy,
                on_paste=self.paste,
                on_undo=self.undo,
                on_redo=self.redo,
                on_escape=self.escape,
                grid_size=self.grid_size,
                on_scroll_into_view=self.scroll_into_view,
                on_edit=self.begin_edit_at,
                on_change=self._notify,
            ),
        )
        self._listeners: list[Callable[[], Any]] = []
        self._tasks: set[asyncio.Task[Any]] = set()

    # ---- Change notification ----
    def subscribe(self, listener: Callable[[], Any]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    def set_locator(self, locator: CellLocator) -> None:
        self.selection.locator = locator

    # ---- Geometry ----
    def grid_size(self) -> tuple[int, int]:
        return len(self.rows), len(self.columns)

    def visible(self) -> VisibleSlice[Row]:
        return self.viewport.get_visible_items(self.rows)

    def scroll_into_view(self, cell: Cell) -> None:
        self.viewport.ensure_visible(cell.row, cell.col, self.port, self.columns, self.sizing.columns)

    def load_column_widths(self, path: str | Path) -> None:
        self.sizing.columns.load_record(settings_store.load_column_widths(path))
        self._notify()

    def save_column_widths(self, path: str | Path) -> bool:
        return settings_store.save_column_widths(path, self.sizing.columns.to_record())

    # ---- Persistence hook ----
    def _persist(self, row_id: Any, key: str, value: Any) -> None:
        if self.persist is None:
            return
        try:
            self.persist(row_id, key, value)
        except Exception:
            # the in-memory edit stays committed
            logger.exception("Persistence hook failed for %r.%s", row_id, key)

    def _schedule(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any] | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(coro)
            return None
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # ---- Clipboard ----
    def copy(self) -> str | None:
        """Copy the selection. The internal snapshot is ready on return."""
        text = self.clipboard.copy(self.selection, self.rows, self.columns)
        if text is not None:
            self._schedule(self.clipboard.publish(text))
        self._notify()
        return text

    async def paste(self) -> bool:
        target = self.selection.anchor()
        row = await self.clipboard.paste(target, self.rows, self.columns, self.history)
        if row is None or target is None:
            return False
        key = self.columns[target.col]
        self._persist(row.get(ID_KEY), key, row.get(key))
        self._notify()
        return True

    # ---- History ----
    def undo(self) -> HistoryAction | None:
        if self.edit.is_editing:
            self.cancel_edit()
        action = self.history.undo(self.rows)
        if action is not None:
            self._persist(action.id, action.key, action.old_value)
            self._notify()
        return action

    def redo(self) -> HistoryAction | None:
        if self.edit.is_editing:
            self.cancel_edit()
        action = self.history.redo(self.rows)
        if action is not None:
            self._persist(action.id, action.key, action.new_value)
            self._notify()
        return action

    # ---- Editing ----
    def begin_edit(self, row: int, col: int) -> bool:
        if not (0 <= row < len(self.rows) and 0 <= col < len(self.columns)):
            return False
        if self.edit.is_editing_cell(row, col):
            return True
        if self.edit.is_editing:
            self.commit_edit()
        record = self.rows[row]
        key = self.columns[col]
        self.edit.start_edit(row, col, key, record.get(key), self.sizing, row_id=record.get(ID_KEY))
        self.selection.select_cell(row, col)
        self.selection.update_overlay()
        self._notify()
        return True

    def begin_edit_at(self, cell: Cell) -> bool:
        return self.begin_edit(cell.row, cell.col)

    def set_edit_value(self, text: str) -> None:
        if self.edit.is_editing:
            self.edit.input_value = text

    def measure_edit(self, rendered_height: float | None) -> None:
        self.edit.update_row_height(rendered_height, self.sizing)
        self._notify()

    def commit_edit(self) -> bool:
        if not self.edit.is_editing:
            return False
        committed: list[tuple[Any, str, Any]] = []

        def on_record(row_id: Any, key: str, old_value: Any, new_value: Any) -> None:
            self.history.record(row_id, key, old_value, new_value)
            committed.append((row_id, key, new_value))

        ok = self.edit.save(self.rows, on_record, self.sizing)
        for row_id, key, value in committed:
            self._persist(row_id, key, value)
        self.selection.update_overlay()
        self._notify()
        return ok

    def cancel_edit(self) -> None:
        if not self.edit.is_editing:
            return
        self.edit.cancel(self.sizing)
        self.selection.update_overlay()
        self._notify()

    # ---- Escape ----
    def escape(self) -> None:
        if self.edit.is_editing:
            self.edit.cancel(self.sizing)
        self.selection.reset_all()
        self.selection.end_selection()
        self.context_menu.close()
        self.header_menu.close()
        self._notify()

    # ---- Row replacement, search and sort ----
    def replace_rows(self, rows: list[Row]) -> None:
        """Swap in a new row list and revalidate index-based state by row id."""
        old_rows = self.rows
        self.rows = rows

        state = self.edit.state
        if state is not None:
            idx = index_of(rows, state.row_id) if state.row_id is not None else None
            if idx is None:
                self.edit.cancel(self.sizing)
            else:
                self.edit.retarget(idx, self.sizing)

        self.selection.clear_copy_overlay()
        if self.selection.has_selection():
            n_rows, n_cols = self.grid_size()
            if n_rows == 0 or n_cols == 0:
                self.selection.reset()
            else:
                start = self._follow_cell(self.selection.start, old_rows, n_rows, n_cols)
                end = self._follow_cell(self.selection.end, old_rows, n_rows, n_cols)
                if start is None or end is None:
                    self.selection.reset()
                else:
                    self.selection.start, self.selection.end = start, end
                    self.selection.update_overlay()
        self._notify()

    def _follow_cell(self, cell: Cell, old_rows: Sequence[Row], n_rows: int, n_cols: int) -> Cell | None:
        col = min(cell.col, n_cols - 1)
        row_id = old_rows[cell.row].get(ID_KEY) if 0 <= cell.row < len(old_rows) else None
        if row_id is None:
            # no identity to follow; keep the index inside the grid
            return Cell(min(cell.row, n_rows - 1), col)
        idx = index_of(self.rows, row_id)
        return Cell(idx, col) if idx is not None else None

    def _local_search(self, term: str, filters: list[str]) -> list[Row]:
        return search_rows(self.base_rows, term, filters, self.columns)

    def apply_search(self, term: str | None = None, filters: Sequence[str] | None = None) -> list[Row]:
        if term is not None:
            self.search.input_value = term
            self.search.execute_search()
        if filters is not None:
            self.search.selected_filters = [f for f in (Filter.parse(t) for t in filters) if f is not None]
            self.search.cleanup_filter_cache()
        self._filtered = self.search.search(self.base_rows, self.search_fn)
        view = list(self.sort.apply(self._filtered))
        self.replace_rows(view)
        return view

    def sort_by(self, key: str, direction: SortDirection = "asc") -> list[Row]:
        self.sort.update(key, direction)
        view = list(self.sort.apply(self._filtered))
        self.replace_rows(view)
        return view

    # ---- Input ----
    def handle_key(self, event: KeyInput) -> DispatchResult:
        return self.dispatcher.handle_key(event)

    def handle_pointer_down(self, event: PointerInput) -> DispatchResult:
        return self.dispatcher.handle_pointer_down(event)

    def handle_pointer_move(self, event: PointerInput) -> DispatchResult:
        return self.dispatcher.handle_pointer_move(event)

    def handle_pointer_up(self, event: PointerInput) -> DispatchResult:
        return self.dispatcher.handle_pointer_up(event)

    def mount(self, hub: EventHub) -> Callable[[], None]:
        return self.dispatcher.mount(hub)
