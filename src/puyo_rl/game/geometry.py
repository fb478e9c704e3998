"""Pure collision geometry for the falling pair.

Vertical positions are measured in half-row units: ``2k`` sits exactly on row
``k`` while ``2k + 1`` straddles rows ``k`` and ``k + 1``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Tuple

from .field import Field

if TYPE_CHECKING:
    from .pieces import ActivePiece


SATELLITE_OFFSETS: Tuple[Tuple[int, int], ...] = (
    (-1, 0),  # up
    (0, 1),  # right
    (1, 0),  # down
    (0, -1),  # left
)


def covered_rows(half_y: int, rows: int) -> List[int]:
    """Grid rows touched by a cell at ``half_y``, limited to ``0..rows-1``."""
    base = half_y // 2
    candidates = [base, base + 1] if half_y % 2 else [base]
    return [r for r in candidates if 0 <= r < rows]


def satellite_offset(rotation: int) -> Tuple[int, int]:
    return SATELLITE_OFFSETS[rotation % 4]


def satellite_half_y(fall_y: int, rotation: int) -> int:
    d_row, _ = satellite_offset(rotation)
    return fall_y + 2 * d_row


def satellite_col(col: int, rotation: int) -> int:
    _, d_col = satellite_offset(rotation)
    return col + d_col


def cell_fits(field: Field, half_y: int, col: int) -> bool:
    """Strict fit: every row the cell touches is inside the field and empty."""
    if not 0 <= col < field.cols:
        return False
    base = half_y // 2
    rows = [base, base + 1] if half_y % 2 else [base]
    return all(not field.occupied(r, col) for r in rows)


def column_clear(field: Field, half_y: int, col: int) -> bool:
    """Lenient fit: column in range and the in-field rows it covers are empty."""
    if not 0 <= col < field.cols:
        return False
    return all(not field.occupied(r, col) for r in covered_rows(half_y, field.rows))


def _sub_cell_can_descend(field: Field, half_y: int, col: int) -> bool:
    if not 0 <= col < field.cols:
        return False
    rows = covered_rows(half_y, field.rows)
    # A straddling cell never blocks; only a row-aligned one checks below.
    if rows and half_y % 2 == 0:
        return not field.occupied(max(rows) + 1, col)
    return True


def can_descend(piece: "ActivePiece", field: Field) -> bool:
    return _sub_cell_can_descend(field, piece.fall_y, piece.col) and _sub_cell_can_descend(
        field,
        satellite_half_y(piece.fall_y, piece.rotation),
        satellite_col(piece.col, piece.rotation),
    )
