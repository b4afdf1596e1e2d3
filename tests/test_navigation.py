from __future__ import annotations

from cellgrid.core.navigation import jump, step
from cellgrid.core.selection import Cell


def test_step_moves_one_cell() -> None:
    assert step(Cell(2, 2), "up", 5, 5) == Cell(1, 2)
    assert step(Cell(2, 2), "down", 5, 5) == Cell(3, 2)
    assert step(Cell(2, 2), "left", 5, 5) == Cell(2, 1)
    assert step(Cell(2, 2), "right", 5, 5) == Cell(2, 3)


def test_step_clamps_at_edges() -> None:
    assert step(Cell(0, 0), "up", 5, 5) == Cell(0, 0)
    assert step(Cell(0, 0), "left", 5, 5) == Cell(0, 0)
    assert step(Cell(4, 4), "down", 5, 5) == Cell(4, 4)
    assert step(Cell(4, 4), "right", 5, 5) == Cell(4, 4)


def test_step_from_nothing_and_empty_grid() -> None:
    assert step(None, "down", 3, 3) == Cell(0, 0)
    assert step(Cell(0, 0), "down", 0, 3) is None
    assert step(Cell(0, 0), "sideways", 3, 3) is None


def test_jump_to_edges() -> None:
    assert jump(Cell(2, 3), "up", 10, 6) == Cell(0, 3)
    assert jump(Cell(2, 3), "down", 10, 6) == Cell(9, 3)
    assert jump(Cell(2, 3), "left", 10, 6) == Cell(2, 0)
    assert jump(Cell(2, 3), "right", 10, 6) == Cell(2, 5)
    assert jump(None, "right", 10, 6) == Cell(0, 5)
