from __future__ import annotations

import asyncio
from typing import Any

import pytest

from cellgrid.core.dispatch import (
    ContextMenuState,
    DispatchCallbacks,
    EventHub,
    HeaderMenuState,
    InteractionDispatcher,
    KeyInput,
    PointerInput,
)
from cellgrid.core.selection import Cell, OverlayRect, SelectionModel
from cellgrid.core.sizing import ColumnWidths


class GridLocator:
    def locate(self, row: int, col: int) -> OverlayRect | None:
        return OverlayRect(top=row * 32, left=col * 150, width=150, height=32, visible=True)


class Harness:
    def __init__(self, rows: int = 5, cols: int = 4) -> None:
        self.calls: list[Any] = []
        self.size = (rows, cols)
        self.selection = SelectionModel(GridLocator())
        self.columns = ColumnWidths()
        self.context_menu = ContextMenuState()
        self.header_menu = HeaderMenuState()
        self.dispatcher = InteractionDispatcher(
            self.selection,
            self.columns,
            self.context_menu,
            self.header_menu,
            DispatchCallbacks(
                on_copy=lambda: self.calls.append("copy"),
                on_paste=self._paste,
                on_undo=lambda: self.calls.append("undo"),
                on_redo=lambda: self.calls.append("redo"),
                on_escape=lambda: self.calls.append("escape"),
                grid_size=lambda: self.size,
                on_scroll_into_view=lambda cell: self.calls.append(("scroll", cell)),
                on_edit=lambda cell: self.calls.append(("edit", cell)),
            ),
        )

    async def _paste_impl(self) -> None:
        self.calls.append("paste")

    def _paste(self) -> Any:
        return self._paste_impl()

    def key(self, combo: str, **kw: Any):  # type: ignore[no-untyped-def]
        return self.dispatcher.handle_key(KeyInput.parse(combo, **kw))


@pytest.mark.parametrize(
    "combo,expected",
    [
        ("ctrl+z", "undo"),
        ("meta+z", "undo"),
        ("ctrl+shift+z", "redo"),
        ("ctrl+Z", "redo"),
        ("ctrl+y", "redo"),
        ("ctrl+c", "copy"),
    ],
)
def test_shortcuts(combo: str, expected: str) -> None:
    h = Harness()
    result = h.key(combo)
    assert result.handled
    assert result.prevent_default
    assert h.calls == [expected]


def test_paste_returns_pending_awaitable() -> None:
    h = Harness()
    result = h.key("ctrl+v")
    assert result.handled
    assert result.pending is not None
    assert h.calls == []
    asyncio.run(result.pending)
    assert h.calls == ["paste"]


def test_shortcuts_suppressed_in_editable() -> None:
    h = Harness()
    for combo in ("ctrl+z", "ctrl+c", "escape", "down"):
        result = h.key(combo, in_editable=True)
        assert not result.handled
    assert h.calls == []


def test_escape_calls_handler_without_prevent_default() -> None:
    h = Harness()
    result = h.key("escape")
    assert result.handled
    assert not result.prevent_default
    assert h.calls == ["escape"]


def test_arrow_moves_and_scrolls() -> None:
    h = Harness()
    h.selection.move_to(1, 1)
    h.key("down")
    assert h.selection.start == h.selection.end == Cell(2, 1)
    assert h.calls == [("scroll", Cell(2, 1))]


def test_arrow_with_no_selection_starts_at_origin() -> None:
    h = Harness()
    h.key("right")
    assert h.selection.anchor() == Cell(0, 0)


def test_arrow_clamps_at_boundary() -> None:
    h = Harness(rows=3, cols=3)
    h.selection.move_to(0, 0)
    result = h.key("up")
    assert result.handled
    assert h.selection.anchor() == Cell(0, 0)


def test_shift_arrow_extends_focus_only() -> None:
    h = Harness()
    h.selection.move_to(1, 1)
    h.key("shift+down")
    h.key("shift+right")
    assert h.selection.start == Cell(1, 1)
    assert h.selection.end == Cell(2, 2)


def test_shift_arrow_without_selection_establishes_one() -> None:
    h = Harness()
    h.key("shift+down")
    assert h.selection.start == h.selection.end == Cell(0, 0)


def test_ctrl_arrow_jumps_and_ctrl_shift_extends() -> None:
    h = Harness(rows=10, cols=4)
    h.selection.move_to(3, 2)
    h.key("ctrl+down")
    assert h.selection.start == h.selection.end == Cell(9, 2)
    h.key("ctrl+shift+left")
    assert h.selection.start == Cell(9, 2)
    assert h.selection.end == Cell(9, 0)


def test_tab_and_backtab_move_horizontally() -> None:
    h = Harness()
    h.selection.move_to(0, 1)
    result = h.key("tab")
    assert result.prevent_default
    assert h.selection.anchor() == Cell(0, 2)
    h.key("backtab")
    assert h.selection.anchor() == Cell(0, 1)
    h.key("shift+tab")
    assert h.selection.anchor() == Cell(0, 0)


def test_enter_and_f2_request_edit() -> None:
    h = Harness()
    assert not h.key("enter").handled
    h.selection.move_to(2, 3)
    h.key("enter")
    h.key("f2")
    assert h.calls == [("edit", Cell(2, 3)), ("edit", Cell(2, 3))]


def test_pointer_drag_selects_rectangle() -> None:
    h = Harness()
    h.dispatcher.handle_pointer_down(PointerInput(cell=Cell(1, 1)))
    h.dispatcher.handle_pointer_move(PointerInput(cell=Cell(3, 2)))
    h.dispatcher.handle_pointer_up(PointerInput())
    assert not h.selection.is_selecting
    bounds = h.selection.get_bounds()
    assert bounds is not None
    assert (bounds.min_row, bounds.max_row, bounds.min_col, bounds.max_col) == (1, 3, 1, 2)


def test_shift_pointer_down_extends() -> None:
    h = Harness()
    h.selection.move_to(0, 0)
    h.dispatcher.handle_pointer_down(PointerInput(cell=Cell(2, 2), shift=True))
    assert h.selection.start == Cell(0, 0)
    assert h.selection.end == Cell(2, 2)


def test_column_resize_drag_resyncs_overlay() -> None:
    h = Harness()
    h.selection.move_to(0, 0)
    h.dispatcher.handle_header_resize_start("a", 100)
    result = h.dispatcher.handle_pointer_move(PointerInput(x=160))
    assert result.handled
    assert h.columns.get_width("a") == 210
    h.dispatcher.handle_pointer_up(PointerInput(x=160))
    assert h.columns.resizing_column is None
    assert h.selection.selection_overlay.visible


def test_outside_click_closes_menus() -> None:
    h = Harness()
    h.context_menu.open(10, 10, 0, 0, 1000)
    h.header_menu.open("a", 0, 0)
    result = h.dispatcher.handle_outside_click(PointerInput())
    assert result.handled
    assert not h.context_menu.visible
    assert not h.header_menu.visible


def test_header_menu_survives_click_inside() -> None:
    h = Harness()
    h.header_menu.open("a", 0, 0)
    h.dispatcher.handle_outside_click(PointerInput(inside_menu=True))
    assert h.header_menu.visible


def test_context_menu_flips_left_near_edge() -> None:
    menu = ContextMenuState(menu_width=130)
    menu.open(900, 40, 1, 2, 1000)
    assert menu.x == 770
    menu.open(100, 40, 1, 2, 1000)
    assert menu.x == 100
    assert (menu.row, menu.col) == (1, 2)


def test_context_menu_selects_cell() -> None:
    h = Harness()
    result = h.dispatcher.handle_context_menu(PointerInput(x=10, y=10, cell=Cell(3, 1)), 1000)
    assert result.handled
    assert h.context_menu.visible
    assert h.selection.anchor() == Cell(3, 1)


def test_double_click_requests_edit() -> None:
    h = Harness()
    h.dispatcher.handle_double_click(PointerInput(cell=Cell(1, 2)))
    assert h.selection.anchor() == Cell(1, 2)
    assert h.calls == [("edit", Cell(1, 2))]


def test_mount_returns_unregister_handle() -> None:
    h = Harness()
    hub = EventHub()
    unmount = h.dispatcher.mount(hub)
    assert hub.listener_count("keydown") == 1
    hub.emit("keydown", KeyInput.parse("ctrl+c"))
    assert h.calls == ["copy"]
    unmount()
    assert hub.listener_count("keydown") == 0
    assert hub.listener_count("pointerdown") == 0
    hub.emit("keydown", KeyInput.parse("ctrl+c"))
    assert h.calls == ["copy"]


def test_key_input_parse() -> None:
    k = KeyInput.parse("ctrl+shift+z")
    assert (k.key, k.ctrl, k.shift, k.command) == ("z", True, True, True)
    assert KeyInput.parse("backtab") == KeyInput("tab", shift=True)
    assert KeyInput.parse("Z").shift
    assert KeyInput.parse("meta+c").command
