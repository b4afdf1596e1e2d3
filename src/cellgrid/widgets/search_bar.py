"""Search input plus active-filter banner above the grid."""

from __future__ import annotations

from collections.abc import Sequence

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.message import Message
from textual.widgets import Input, Static

from cellgrid.core.filters import Filter
from cellgrid.ui.palette import PALETTE


def parse_query(query: str, columns: Sequence[str]) -> tuple[str, list[str]]:
    """Split a query into free text and ``key:value`` filter tokens.

    Only tokens whose key is a known column become filters; anything else is
    kept as search text.
    """
    known = set(columns)
    words: list[str] = []
    filters: list[str] = []
    for token in query.split():
        flt = Filter.parse(token)
        if flt is not None and flt.key in known:
            filters.append(flt.as_param())
        else:
            words.append(token)
    return " ".join(words), filters


class FilterBanner(Static):
    """Shows the active filters, the row count and any search error."""

    def show(self, filters: Sequence[Filter], row_count: int, error: str = "") -> None:
        text = Text()
        if error:
            text.append(f" {error} ", style=f"bold {PALETTE.status_error}")
            self.update(text)
            return
        chip = f"{PALETTE.filter_chip_fg} on {PALETTE.filter_chip_bg}"
        for flt in filters:
            text.append(f" {flt.key}: {flt.value} ", style=chip)
            text.append(" ")
        text.append(f"{row_count} row{'s' if row_count != 1 else ''}", style=PALETTE.accent)
        if filters:
            text.append("   [✕ Clear filters]", style=f"bold {PALETTE.accent_dim}")
        self.update(text)

    def on_click(self, event) -> None:  # type: ignore[no-untyped-def, override]
        if hasattr(self.app, "clear_filters"):
            self.app.clear_filters()  # type: ignore[attr-defined]


class SearchBar(Vertical):
    class Submitted(Message):
        def __init__(self, term: str, filters: list[str]) -> None:
            super().__init__()
            self.term = term
            self.filters = filters

    def __init__(self, columns: Sequence[str], *, id: str | None = None) -> None:
        super().__init__(id=id)
        self.columns = list(columns)
        self.can_focus = False

    def compose(self) -> ComposeResult:  # type: ignore[override]
        self._input = Input(placeholder="Search…  (column:value narrows by column)", id="search-input")
        yield self._input
        self._banner = FilterBanner(id="filter-banner")
        yield self._banner

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        term, filters = parse_query(event.value, self.columns)
        self.post_message(self.Submitted(term, filters))

    def show_status(self, filters: Sequence[Filter], row_count: int, error: str = "") -> None:
        self._banner.show(filters, row_count, error)

    def clear(self) -> None:
        self._input.value = ""

    def focus_input(self) -> None:
        self._input.focus()
