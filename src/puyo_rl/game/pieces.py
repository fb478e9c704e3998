from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import List, Optional, Tuple

from .field import Color, Coordinate, Field
from .geometry import (
    cell_fits,
    column_clear,
    covered_rows,
    satellite_col,
    satellite_half_y,
    satellite_offset,
)


MAX_LIFTS = 2


class Rotation(IntEnum):
    UP = 0
    RIGHT = 1
    DOWN = 2
    LEFT = 3


class Turn(IntEnum):
    CW = 1
    CCW = -1


@dataclass(frozen=True)
class ActivePiece:
    """The falling pair.

    ``colors`` is ``(satellite, axis)``. ``fall_y`` is the axis position in
    half-row units, ``col`` its column and ``rotation`` the direction of the
    satellite around the axis (0=up, 1=right, 2=down, 3=left).
    """

    colors: Tuple[Color, Color]
    fall_y: int
    col: int
    rotation: int = Rotation.UP

    @property
    def axis_color(self) -> Color:
        return self.colors[1]

    @property
    def satellite_color(self) -> Color:
        return self.colors[0]

    @property
    def satellite_half_y(self) -> int:
        return satellite_half_y(self.fall_y, self.rotation)

    @property
    def satellite_col(self) -> int:
        return satellite_col(self.col, self.rotation)

    def sub_cells(self) -> List[Tuple[int, int, Color]]:
        """(half_y, col, color) for the axis then the satellite."""
        return [
            (self.fall_y, self.col, self.axis_color),
            (self.satellite_half_y, self.satellite_col, self.satellite_color),
        ]

    def covered_cells(self, rows: int) -> List[Coordinate]:
        cells: List[Coordinate] = []
        for half_y, col, _ in self.sub_cells():
            cells.extend((r, col) for r in covered_rows(half_y, rows))
        return cells

    def landing_cells(self) -> List[Tuple[int, int, Color]]:
        """(row, col, color) the pair resolves to when locked, axis first."""
        row = self.fall_y // 2
        d_row, d_col = satellite_offset(self.rotation)
        return [
            (row, self.col, self.axis_color),
            (row + d_row, self.col + d_col, self.satellite_color),
        ]


def move_lateral(piece: ActivePiece, field: Field, direction: int) -> ActivePiece:
    """Shift the pair one column, or return it unchanged when blocked."""
    if direction not in (-1, 1):
        raise ValueError(f"direction must be -1 or 1, got {direction!r}")
    new_col = piece.col + direction
    if not column_clear(field, piece.fall_y, new_col):
        return piece
    if not column_clear(field, piece.satellite_half_y, satellite_col(new_col, piece.rotation)):
        return piece
    return replace(piece, col=new_col)


def _lift_search(field: Field, fall_y: int, col: int, rotation: int, max_lifts: int) -> Optional[int]:
    """Lowest ``fall_y`` (at most ``max_lifts`` rows up) where ``rotation`` fits."""
    for lift in range(max_lifts + 1):
        test_y = fall_y - 2 * lift
        if not cell_fits(field, test_y, col):
            return None
        if cell_fits(field, satellite_half_y(test_y, rotation), satellite_col(col, rotation)):
            return test_y
    return None


def rotate(piece: ActivePiece, field: Field, turn: int, max_lifts: int = MAX_LIFTS) -> ActivePiece:
    """Rotate the pair with kick resolution.

    Tried in order: in place, lifted by up to ``max_lifts`` rows, a wall kick
    one column away from a horizontal satellite, then a further quarter turn
    with its own lift search. Returns the unchanged piece if nothing fits.
    """
    if turn not in (Turn.CW, Turn.CCW):
        raise ValueError(f"turn must be 1 (CW) or -1 (CCW), got {turn!r}")
    target = (piece.rotation + turn) % 4

    lifted_y = _lift_search(field, piece.fall_y, piece.col, target, max_lifts)
    if lifted_y is not None:
        return replace(piece, fall_y=lifted_y, rotation=target)

    d_row, d_col = satellite_offset(target)
    if d_row != 0:
        return piece

    kick_col = piece.col - d_col
    if cell_fits(field, piece.fall_y, kick_col) and cell_fits(field, piece.fall_y, kick_col + d_col):
        return replace(piece, col=kick_col, rotation=target)

    flipped = (target + turn) % 4
    lifted_y = _lift_search(field, piece.fall_y, piece.col, flipped, max_lifts)
    if lifted_y is not None:
        return replace(piece, fall_y=lifted_y, rotation=flipped)
    return piece
