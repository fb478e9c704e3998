import unittest

from puyo_rl.game import ActivePiece, Color, Field, can_descend, covered_rows, satellite_offset
from puyo_rl.game.geometry import cell_fits, column_clear

R, G = Color.RED, Color.GREEN


def field_with(cells, rows=14, cols=6):
    field = Field.empty(rows, cols)
    for (r, c), color in cells.items():
        field = field.with_cell(r, c, color)
    return field


class CoveredRowsTests(unittest.TestCase):
    def test_aligned_and_straddling(self):
        self.assertEqual(covered_rows(0, 14), [0])
        self.assertEqual(covered_rows(1, 14), [0, 1])
        self.assertEqual(covered_rows(26, 14), [13])

    def test_filters_rows_outside_the_field(self):
        self.assertEqual(covered_rows(27, 14), [13])
        self.assertEqual(covered_rows(-1, 14), [0])
        self.assertEqual(covered_rows(-2, 14), [])


class OffsetTests(unittest.TestCase):
    def test_offsets_cycle_clockwise(self):
        self.assertEqual(satellite_offset(0), (-1, 0))
        self.assertEqual(satellite_offset(1), (0, 1))
        self.assertEqual(satellite_offset(2), (1, 0))
        self.assertEqual(satellite_offset(3), (0, -1))


class FitTests(unittest.TestCase):
    def test_cell_fits_is_strict_at_edges(self):
        field = Field.empty(14, 6)
        self.assertTrue(cell_fits(field, 26, 0))
        self.assertFalse(cell_fits(field, 27, 0))
        self.assertFalse(cell_fits(field, -1, 0))
        self.assertFalse(cell_fits(field, 0, 6))

    def test_column_clear_ignores_rows_above_the_field(self):
        field = Field.empty(14, 6)
        self.assertTrue(column_clear(field, -2, 3))
        self.assertFalse(column_clear(field, 0, -1))


class CanDescendTests(unittest.TestCase):
    def test_floor_blocks_aligned_axis(self):
        field = Field.empty(14, 6)
        self.assertFalse(can_descend(ActivePiece((G, R), fall_y=26, col=2), field))
        self.assertTrue(can_descend(ActivePiece((G, R), fall_y=24, col=2), field))

    def test_straddling_piece_never_blocks(self):
        field = field_with({(13, 2): R})
        self.assertTrue(can_descend(ActivePiece((G, R), fall_y=23, col=2), field))
        self.assertFalse(can_descend(ActivePiece((G, R), fall_y=24, col=2), field))

    def test_satellite_over_filled_cell_blocks(self):
        field = field_with({(13, 3): R})
        piece = ActivePiece((G, R), fall_y=24, col=2, rotation=1)
        self.assertFalse(can_descend(piece, field))
        self.assertTrue(can_descend(ActivePiece((G, R), fall_y=24, col=1, rotation=1), field))

    def test_satellite_below_axis_hits_floor(self):
        piece = ActivePiece((G, R), fall_y=24, col=2, rotation=2)
        self.assertFalse(can_descend(piece, Field.empty(14, 6)))


if __name__ == "__main__":
    unittest.main()
