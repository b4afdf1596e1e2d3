"""Translation of raw key and pointer input into engine actions.

The dispatcher is the only place that knows about modifiers and shortcuts.
It mutates the selection and column-resize state directly and reaches every
other component through `DispatchCallbacks`.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Any, Callable

from cellgrid.core.navigation import DIRECTIONS, jump, step
from cellgrid.core.selection import Cell, SelectionModel
from cellgrid.core.settings import DEFAULT_SETTINGS
from cellgrid.core.sizing import ColumnWidths

_MODIFIERS = {"ctrl", "meta", "shift", "alt", "super"}


@dataclass(frozen=True)
class KeyInput:
    key: str
    ctrl: bool = False
    meta: bool = False
    shift: bool = False
    in_editable: bool = False

    @property
    def command(self) -> bool:
        """Ctrl on Linux/Windows, Cmd on macOS."""
        return self.ctrl or self.meta

    @classmethod
    def parse(cls, combo: str, *, in_editable: bool = False) -> KeyInput:
        """Build from a Textual-style key name such as ``"ctrl+shift+z"``."""
        if combo == "backtab":
            return cls("tab", shift=True, in_editable=in_editable)
        parts = combo.split("+")
        # "ctrl++" style names end with an empty part for the plus key itself
        if len(parts) > 1 and parts[-1] == "":
            parts = [*parts[:-2], "+"]
        mods = {p.lower() for p in parts[:-1] if p.lower() in _MODIFIERS}
        key = parts[-1]
        shift = "shift" in mods
        if len(key) == 1 and key.isalpha() and key.isupper():
            shift = True
        return cls(
            key=key.lower(),
            ctrl="ctrl" in mods,
            meta="meta" in mods or "super" in mods,
            shift=shift,
            in_editable=in_editable,
        )


@dataclass(frozen=True)
class PointerInput:
    x: float = 0
    y: float = 0
    cell: Cell | None = None
    shift: bool = False
    inside_menu: bool = False


@dataclass
class DispatchResult:
    handled: bool = False
    prevent_default: bool = False
    pending: Awaitable[Any] | None = None


@dataclass
class DispatchCallbacks:
    on_copy: Callable[[], Any]
    on_paste: Callable[[], Any]
    on_undo: Callable[[], Any]
    on_redo: Callable[[], Any]
    on_escape: Callable[[], Any]
    grid_size: Callable[[], tuple[int, int]]
    on_scroll_into_view: Callable[[Cell], Any] | None = None
    on_edit: Callable[[Cell], Any] | None = None
    on_change: Callable[[], Any] | None = None


class ContextMenuState:
    def __init__(self, *, menu_width: int = DEFAULT_SETTINGS.menu_width) -> None:
        self.menu_width = menu_width
        self.visible = False
        self.x: float = 0
        self.y: float = 0
        self.row = -1
        self.col = -1

    def open(self, x: float, y: float, row: int, col: int, viewport_width: float) -> None:
        self.visible = True
        # open leftwards when it would run off the right edge
        self.x = x - self.menu_width if x + self.menu_width > viewport_width else x
        self.y = y
        self.row = row
        self.col = col

    def close(self) -> None:
        self.visible = False


class HeaderMenuState:
    def __init__(self) -> None:
        self.visible = False
        self.key: str | None = None
        self.x: float = 0
        self.y: float = 0

    def open(self, key: str, x: float, y: float) -> None:
        self.visible = True
        self.key = key
        self.x = x
        self.y = y

    def close(self) -> None:
        self.visible = False
        self.key = None

    def handle_outside_click(self, inside: bool) -> None:
        if self.visible and not inside:
            self.close()


class EventHub:
    """Named-event registry that hands back unregister handles."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[Callable[[Any], Any]]] = {}

    def subscribe(self, kind: str, handler: Callable[[Any], Any]) -> Callable[[], None]:
        self._handlers.setdefault(kind, []).append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(kind, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def emit(self, kind: str, event: Any) -> list[Any]:
        return [handler(event) for handler in list(self._handlers.get(kind, []))]

    def listener_count(self, kind: str) -> int:
        return len(self._handlers.get(kind, []))


@dataclass
class _Mount:
    handles: list[Callable[[], None]] = field(default_factory=list)

    def __call__(self) -> None:
        for handle in self.handles:
            handle()
        self.handles.clear()


class InteractionDispatcher:
    def __init__(
        self,
        selection: SelectionModel,
        columns: ColumnWidths,
        context_menu: ContextMenuState,
        header_menu: HeaderMenuState,
        callbacks: DispatchCallbacks,
    ) -> None:
        self.selection = selection
        self.columns = columns
        self.context_menu = context_menu
        self.header_menu = header_menu
        self.callbacks = callbacks

    def mount(self, hub: EventHub) -> Callable[[], None]:
        """Register on `hub`; calling the returned handle unregisters everything."""
        mount = _Mount()
        mount.handles.append(hub.subscribe("keydown", self.handle_key))
        mount.handles.append(hub.subscribe("click", self.handle_outside_click))
        mount.handles.append(hub.subscribe("pointerdown", self.handle_pointer_down))
        mount.handles.append(hub.subscribe("pointermove", self.handle_pointer_move))
        mount.handles.append(hub.subscribe("pointerup", self.handle_pointer_up))
        mount.handles.append(hub.subscribe("dblclick", self.handle_double_click))
        return mount

    # ---- helpers ----
    @staticmethod
    def _invoke(callback: Callable[..., Any] | None, *args: Any) -> DispatchResult:
        if callback is None:
            return DispatchResult(handled=True, prevent_default=True)
        outcome = callback(*args)
        pending = outcome if inspect.isawaitable(outcome) else None
        return DispatchResult(handled=True, prevent_default=True, pending=pending)

    def _changed(self) -> None:
        if self.callbacks.on_change is not None:
            self.callbacks.on_change()

    # ---- Keyboard ----
    def handle_key(self, event: KeyInput) -> DispatchResult:
        if event.in_editable:
            return DispatchResult()

        key = event.key
        cb = self.callbacks

        if key == "escape":
            result = self._invoke(cb.on_escape)
            result.prevent_default = False
            return result

        if event.command and key not in DIRECTIONS:
            if key == "z":
                return self._invoke(cb.on_redo if event.shift else cb.on_undo)
            if key == "y":
                return self._invoke(cb.on_redo)
            if key == "c":
                return self._invoke(cb.on_copy)
            if key == "v":
                return self._invoke(cb.on_paste)
            return DispatchResult()

        if key in DIRECTIONS:
            self._navigate(key, extend=event.shift, to_edge=event.command)
            return DispatchResult(handled=True, prevent_default=True)

        if key == "tab":
            self._navigate("left" if event.shift else "right", extend=False, to_edge=False)
            return DispatchResult(handled=True, prevent_default=True)

        if key in ("enter", "f2"):
            anchor = self.selection.anchor()
            if anchor is None or cb.on_edit is None:
                return DispatchResult()
            return self._invoke(cb.on_edit, anchor)

        return DispatchResult()

    def _navigate(self, direction: str, *, extend: bool, to_edge: bool) -> None:
        rows, cols = self.callbacks.grid_size()
        move = jump if to_edge else step
        sel = self.selection
        if extend:
            target = move(sel.focus(), direction, rows, cols)
            if target is None:
                return
            if sel.has_selection():
                sel.set_focus(target.row, target.col)
            else:
                sel.move_to(target.row, target.col)
        else:
            target = move(sel.anchor(), direction, rows, cols)
            if target is None:
                return
            sel.move_to(target.row, target.col)
        if self.callbacks.on_scroll_into_view is not None:
            self.callbacks.on_scroll_into_view(target)
        self._changed()

    # ---- Pointer ----
    def handle_pointer_down(self, event: PointerInput) -> DispatchResult:
        if event.cell is None:
            return DispatchResult()
        if self.context_menu.visible:
            self.context_menu.close()
        self.selection.start_selection(event.cell.row, event.cell.col, expand=event.shift)
        self._changed()
        return DispatchResult(handled=True)

    def handle_pointer_move(self, event: PointerInput) -> DispatchResult:
        if self.columns.resizing_column is not None:
            self.columns.update_resize(event.x)
            # resizing shifts every cell right of the column
            if self.selection.has_selection():
                self.selection.update_overlay()
            self._changed()
            return DispatchResult(handled=True, prevent_default=True)
        if self.selection.is_selecting and event.cell is not None:
            self.selection.extend_selection(event.cell.row, event.cell.col)
            self._changed()
            return DispatchResult(handled=True)
        return DispatchResult()

    def handle_pointer_up(self, event: PointerInput) -> DispatchResult:
        was_resizing = self.columns.resizing_column is not None
        if was_resizing:
            self.columns.end_resize()
        was_selecting = self.selection.is_selecting
        self.selection.end_selection()
        if self.selection.has_selection():
            self.selection.update_overlay()
        if was_resizing or was_selecting:
            self._changed()
        return DispatchResult(handled=was_resizing or was_selecting)

    def handle_outside_click(self, event: PointerInput) -> DispatchResult:
        handled = self.context_menu.visible or self.header_menu.visible
        if self.context_menu.visible:
            self.context_menu.close()
        self.header_menu.handle_outside_click(event.inside_menu)
        if handled:
            self._changed()
        return DispatchResult(handled=handled)

    def handle_double_click(self, event: PointerInput) -> DispatchResult:
        if event.cell is None or self.callbacks.on_edit is None:
            return DispatchResult()
        self.selection.move_to(event.cell.row, event.cell.col)
        return self._invoke(self.callbacks.on_edit, event.cell)

    def handle_context_menu(self, event: PointerInput, viewport_width: float) -> DispatchResult:
        if event.cell is None:
            return DispatchResult()
        self.selection.select_cell(event.cell.row, event.cell.col)
        self.context_menu.open(event.x, event.y, event.cell.row, event.cell.col, viewport_width)
        self._changed()
        return DispatchResult(handled=True, prevent_default=True)

    def handle_header_resize_start(self, key: str, x: float) -> DispatchResult:
        self.columns.start_resize(key, x)
        return DispatchResult(handled=True, prevent_default=True)
