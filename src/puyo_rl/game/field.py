from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np


Coordinate = Tuple[int, int]  # (row, col)


class Color(IntEnum):
    EMPTY = 0
    RED = 1
    GREEN = 2
    BLUE = 3
    YELLOW = 4


PLAYABLE_COLORS: Tuple[Color, ...] = (Color.RED, Color.GREEN, Color.BLUE, Color.YELLOW)

_NEIGHBOURS = ((1, 0), (-1, 0), (0, 1), (0, -1))


@dataclass(frozen=True)
class Group:
    """A maximal 4-connected region of one colour."""

    color: Color
    cells: Tuple[Coordinate, ...]

    def __len__(self) -> int:
        return len(self.cells)


class Field:
    """Fixed-size grid of settled cells.

    Row 0 is the top, row ``rows - 1`` the bottom. Cells hold ``Color`` values
    with 0 meaning empty. Operations that change contents (``apply_gravity``,
    ``erase``, ``with_cell``) return a new field and leave the receiver alone.
    """

    def __init__(self, rows: int, cols: int, cells: Optional[np.ndarray] = None) -> None:
        self.rows = int(rows)
        self.cols = int(cols)
        if cells is None:
            self.cells = np.zeros((self.rows, self.cols), dtype=np.int8)
        else:
            cells = np.asarray(cells, dtype=np.int8)
            if cells.shape != (self.rows, self.cols):
                raise ValueError(f"expected a {self.rows}x{self.cols} grid, got {cells.shape}")
            self.cells = cells.copy()

    @classmethod
    def empty(cls, rows: int, cols: int) -> "Field":
        return cls(rows, cols)

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[int]]) -> "Field":
        """Build a field from nested lists, top row first."""
        array = np.array(rows, dtype=np.int8)
        if array.ndim != 2:
            raise ValueError("rows must form a rectangular 2D grid")
        return cls(array.shape[0], array.shape[1], array)

    def is_inside(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def occupied(self, row: int, col: int) -> bool:
        # Anything outside the grid counts as blocked for collision.
        if not self.is_inside(row, col):
            return True
        return self.cells[row, col] != Color.EMPTY

    def color_at(self, row: int, col: int) -> Color:
        if not self.is_inside(row, col):
            return Color.EMPTY
        return Color(int(self.cells[row, col]))

    def with_cell(self, row: int, col: int, color: Color) -> "Field":
        new = self.copy()
        new.cells[row, col] = int(color)
        return new

    def apply_gravity(self) -> "Field":
        """Compact every column downward, keeping top-to-bottom order."""
        out = np.zeros_like(self.cells)
        for col in range(self.cols):
            column = self.cells[:, col]
            filled = column[column != Color.EMPTY]
            if filled.size:
                out[self.rows - filled.size :, col] = filled
        return Field(self.rows, self.cols, out)

    def find_groups(self, min_size: int = 4) -> List[Group]:
        visited = np.zeros((self.rows, self.cols), dtype=np.bool_)
        groups: List[Group] = []
        for r in range(self.rows):
            for c in range(self.cols):
                value = int(self.cells[r, c])
                if value == Color.EMPTY or visited[r, c]:
                    continue
                visited[r, c] = True
                stack = [(r, c)]
                cells = [(r, c)]
                while stack:
                    cr, cc = stack.pop()
                    for dr, dc in _NEIGHBOURS:
                        nr, nc = cr + dr, cc + dc
                        if (
                            self.is_inside(nr, nc)
                            and not visited[nr, nc]
                            and self.cells[nr, nc] == value
                        ):
                            visited[nr, nc] = True
                            stack.append((nr, nc))
                            cells.append((nr, nc))
                if len(cells) >= min_size:
                    groups.append(Group(Color(value), tuple(cells)))
        return groups

    def erase(self, groups: Iterable[Group]) -> "Field":
        out = self.cells.copy()
        for group in groups:
            for r, c in group.cells:
                out[r, c] = Color.EMPTY
        return Field(self.rows, self.cols, out)

    def count_filled(self) -> int:
        return int(np.count_nonzero(self.cells))

    def copy(self) -> "Field":
        return Field(self.rows, self.cols, self.cells)

    def to_array(self) -> np.ndarray:
        return self.cells.copy()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Field):
            return NotImplemented
        return self.cells.shape == other.cells.shape and bool(np.array_equal(self.cells, other.cells))

    def __repr__(self) -> str:
        return f"Field(rows={self.rows}, cols={self.cols}, filled={self.count_filled()})"

    def render_text(self) -> str:
        symbols = {0: ".", 1: "R", 2: "G", 3: "B", 4: "Y"}
        return "\n".join("".join(symbols.get(int(v), "?") for v in row) for row in self.cells)
