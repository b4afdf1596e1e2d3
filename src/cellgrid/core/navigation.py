from __future__ import annotations

from cellgrid.core.selection import Cell

DIRECTIONS: dict[str, tuple[int, int]] = {
    "up": (-1, 0),
    "down": (1, 0),
    "left": (0, -1),
    "right": (0, 1),
}


def _clamp(value: int, upper: int) -> int:
    return max(0, min(value, upper - 1))


def step(current: Cell | None, direction: str, rows: int, cols: int) -> Cell | None:
    """One cell in `direction`, clamped to the grid.

    With no current cell navigation starts at the top-left. Returns None for
    an empty grid or an unknown direction.
    """
    if rows <= 0 or cols <= 0 or direction not in DIRECTIONS:
        return None
    if current is None:
        return Cell(0, 0)
    dr, dc = DIRECTIONS[direction]
    return Cell(_clamp(current.row + dr, rows), _clamp(current.col + dc, cols))


def jump(current: Cell | None, direction: str, rows: int, cols: int) -> Cell | None:
    """To the grid edge in `direction`, keeping the other axis."""
    if rows <= 0 or cols <= 0 or direction not in DIRECTIONS:
        return None
    if current is None:
        current = Cell(0, 0)
    row = _clamp(current.row, rows)
    col = _clamp(current.col, cols)
    if direction == "up":
        return Cell(0, col)
    if direction == "down":
        return Cell(rows - 1, col)
    if direction == "left":
        return Cell(row, 0)
    return Cell(row, cols - 1)
