"""Pure steps used when a pair locks into the field."""

from __future__ import annotations

from typing import List, Optional, Tuple

from .field import Color, Coordinate, Field
from .pieces import ActivePiece


def write_piece(field: Field, piece: ActivePiece) -> Optional[Tuple[Field, List[Coordinate]]]:
    """Write both halves of ``piece`` at their resolved cells.

    Returns the new field and the written cells (axis first), or ``None`` if a
    target cell is already occupied. A half whose target lies outside the
    field is dropped.
    """
    cells = field.to_array()
    written: List[Coordinate] = []
    for row, col, color in piece.landing_cells():
        if not field.is_inside(row, col):
            continue
        if cells[row, col] != Color.EMPTY:
            return None
        cells[row, col] = int(color)
        written.append((row, col))
    return Field(field.rows, field.cols, cells), written


def drop_cells(field: Field, cells: List[Coordinate]) -> Field:
    """Slide each given cell straight down until it rests on something."""
    out = field.to_array()
    for row, col in cells:
        color = out[row, col]
        if color == Color.EMPTY:
            continue
        target = row
        while target + 1 < field.rows and out[target + 1, col] == Color.EMPTY:
            target += 1
        if target != row:
            out[target, col] = color
            out[row, col] = Color.EMPTY
    return Field(field.rows, field.cols, out)


def settle(field: Field, piece: ActivePiece) -> Optional[Field]:
    """Write, drop each half independently, then apply gravity once."""
    result = write_piece(field, piece)
    if result is None:
        return None
    written_field, written = result
    return drop_cells(written_field, written).apply_gravity()


def highlight_cells(groups) -> frozenset:
    return frozenset(cell for group in groups for cell in group.cells)
