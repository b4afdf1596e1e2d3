from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class Cell:
    row: int
    col: int


# row == -1 marks "no selection"; never normalized
NO_CELL = Cell(-1, -1)


@dataclass(frozen=True)
class Bounds:
    min_row: int
    max_row: int
    min_col: int
    max_col: int

    @property
    def row_count(self) -> int:
        return self.max_row - self.min_row + 1

    @property
    def col_count(self) -> int:
        return self.max_col - self.min_col + 1

    def contains(self, row: int, col: int) -> bool:
        return self.min_row <= row <= self.max_row and self.min_col <= col <= self.max_col


@dataclass(frozen=True)
class OverlayRect:
    top: float = 0
    left: float = 0
    width: float = 0
    height: float = 0
    visible: bool = False

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height


HIDDEN = OverlayRect()


class CellLocator(Protocol):
    def locate(self, row: int, col: int) -> OverlayRect | None:
        """Rendered geometry of one cell, or None if it is not materialized."""
        ...


class _NoLocator:
    def locate(self, row: int, col: int) -> OverlayRect | None:
        return None


def normalize(start: Cell, end: Cell) -> Bounds | None:
    if start.row == -1 or end.row == -1:
        return None
    return Bounds(
        min_row=min(start.row, end.row),
        max_row=max(start.row, end.row),
        min_col=min(start.col, end.col),
        max_col=max(start.col, end.col),
    )


class SelectionModel:
    """Single rectangular selection held as an anchor/focus pair.

    Overlays are derived from the rendered cells at the rectangle's corners.
    When either corner is outside the virtualization window the overlay is
    hidden instead of estimated.
    """

    def __init__(self, locator: CellLocator | None = None) -> None:
        self.locator: CellLocator = locator or _NoLocator()
        self.start: Cell = NO_CELL
        self.end: Cell = NO_CELL
        self.is_selecting = False
        self.selection_overlay: OverlayRect = HIDDEN
        self.copy_overlay: OverlayRect = HIDDEN

    # ---- Overlay geometry ----
    def _calculate_overlay(self, start: Cell, end: Cell) -> OverlayRect:
        bounds = normalize(start, end)
        if bounds is None:
            return HIDDEN
        top_left = self.locator.locate(bounds.min_row, bounds.min_col)
        bottom_right = self.locator.locate(bounds.max_row, bounds.max_col)
        if top_left is None or bottom_right is None:
            return HIDDEN
        return OverlayRect(
            top=top_left.top,
            left=top_left.left,
            width=bottom_right.right - top_left.left,
            height=bottom_right.bottom - top_left.top,
            visible=True,
        )

    def update_overlay(self) -> None:
        self.selection_overlay = self._calculate_overlay(self.start, self.end)

    # ---- Pointer-driven selection ----
    def start_selection(self, row: int, col: int, expand: bool = False) -> None:
        self.is_selecting = True

        if expand and self.start.row != -1:
            self.end = Cell(row, col)
            self.update_overlay()
            return

        target = Cell(row, col)
        if self.start == target and self.end == target:
            # clicking the sole selected cell again deselects it
            self.reset()
            self.is_selecting = False
            return

        self.start = target
        self.end = target
        self.update_overlay()

    def extend_selection(self, row: int, col: int) -> None:
        if not self.is_selecting:
            return
        self.end = Cell(row, col)
        self.update_overlay()

    def end_selection(self) -> None:
        self.is_selecting = False

    # ---- Keyboard / menu-driven selection ----
    def move_to(self, row: int, col: int) -> None:
        self.start = Cell(row, col)
        self.end = Cell(row, col)
        self.update_overlay()

    def select_cell(self, row: int, col: int) -> None:
        bounds = self.get_bounds()
        if bounds is not None and bounds.contains(row, col):
            return
        self.move_to(row, col)

    def set_focus(self, row: int, col: int) -> None:
        """Move the focus corner only; the anchor stays put."""
        if self.start.row == -1:
            self.move_to(row, col)
            return
        self.end = Cell(row, col)
        self.update_overlay()

    # ---- Copy overlay ----
    def snapshot_as_copied(self) -> None:
        rect = self._calculate_overlay(self.start, self.end)
        if rect.visible:
            self.copy_overlay = rect

    def clear_copy_overlay(self) -> None:
        self.copy_overlay = HIDDEN

    def selection_matches_copy(self) -> bool:
        if not self.selection_overlay.visible or not self.copy_overlay.visible:
            return False
        return self.selection_overlay == self.copy_overlay

    def is_cell_in_copy_overlay(self, row: int, col: int) -> bool:
        if not self.copy_overlay.visible:
            return False
        rect = self.locator.locate(row, col)
        if rect is None:
            return False
        copy = self.copy_overlay
        return (
            rect.left >= copy.left
            and rect.right <= copy.right
            and rect.top >= copy.top
            and rect.bottom <= copy.bottom
        )

    # ---- Reset / queries ----
    def reset(self) -> None:
        """Clear the selection but keep the copy overlay."""
        self.start = NO_CELL
        self.end = NO_CELL
        self.selection_overlay = HIDDEN

    def reset_all(self) -> None:
        self.reset()
        self.copy_overlay = HIDDEN

    def get_bounds(self) -> Bounds | None:
        return normalize(self.start, self.end)

    def has_selection(self) -> bool:
        return self.start.row != -1 and self.end.row != -1

    def anchor(self) -> Cell | None:
        return self.start if self.start.row != -1 else None

    def focus(self) -> Cell | None:
        if self.end.row != -1:
            return self.end
        return self.anchor()

    def contains(self, row: int, col: int) -> bool:
        bounds = self.get_bounds()
        return bounds is not None and bounds.contains(row, col)
