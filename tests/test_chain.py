import itertools
import unittest

from puyo_rl.game import (
    Action,
    ActivePiece,
    Chaining,
    ChainStep,
    Color,
    Falling,
    Field,
    GameEngine,
)
from puyo_rl.game.chain import drop_cells, settle, write_piece

R, G, B, Y = Color.RED, Color.GREEN, Color.BLUE, Color.YELLOW


def pair_cycle(*pairs):
    it = itertools.cycle(pairs)
    return lambda: next(it)


def field_with(cells, rows=14, cols=6):
    field = Field.empty(rows, cols)
    for (r, c), color in cells.items():
        field = field.with_cell(r, c, color)
    return field


class WritePieceTests(unittest.TestCase):
    def test_writes_axis_then_satellite(self):
        piece = ActivePiece((G, R), fall_y=26, col=2, rotation=1)
        field, written = write_piece(Field.empty(14, 6), piece)
        self.assertEqual(written, [(13, 2), (13, 3)])
        self.assertEqual(field.color_at(13, 2), R)
        self.assertEqual(field.color_at(13, 3), G)

    def test_conflict_writes_nothing(self):
        original = field_with({(12, 2): B})
        piece = ActivePiece((G, R), fall_y=26, col=2)
        self.assertIsNone(write_piece(original, piece))
        self.assertIsNone(settle(original, piece))
        self.assertEqual(original.count_filled(), 1)

    def test_satellite_above_the_field_is_dropped(self):
        piece = ActivePiece((G, R), fall_y=0, col=2)
        field, written = write_piece(Field.empty(14, 6), piece)
        self.assertEqual(written, [(0, 2)])
        self.assertEqual(field.count_filled(), 1)


class DropTests(unittest.TestCase):
    def test_each_cell_slides_to_support(self):
        field = field_with({(13, 2): Y, (12, 2): R, (12, 3): G})
        dropped = drop_cells(field, [(12, 2), (12, 3)])
        self.assertEqual(dropped.color_at(12, 2), R)
        self.assertEqual(dropped.color_at(13, 3), G)
        self.assertEqual(dropped.color_at(12, 3), Color.EMPTY)

    def test_settle_applies_gravity_after_the_drop(self):
        piece = ActivePiece((G, R), fall_y=20, col=2, rotation=2)
        settled = settle(Field.empty(14, 6), piece)
        self.assertEqual(settled.color_at(13, 2), G)
        self.assertEqual(settled.color_at(12, 2), R)
        self.assertEqual(settled.count_filled(), 2)


class ChainScenarioTests(unittest.TestCase):
    def test_fourth_cell_triggers_one_link(self):
        engine = GameEngine(pair_source=pair_cycle((G, R)))
        engine.reset(field_with({(13, 0): R, (13, 1): R, (13, 2): R}))
        self.assertTrue(engine.handle(Action.MOVE_RIGHT))
        engine.handle(Action.SOFT_DROP_ON)

        engine.advance(2800)
        phase = engine.phase
        self.assertIsInstance(phase, Chaining)
        self.assertEqual((phase.step, phase.link), (ChainStep.HIGHLIGHT, 1))
        self.assertEqual(engine.highlight, frozenset({(13, 0), (13, 1), (13, 2), (13, 3)}))
        self.assertIsNone(engine.piece)

        engine.advance(500)
        self.assertEqual(engine.phase.step, ChainStep.PAUSE)
        self.assertEqual(engine.highlight, frozenset())
        self.assertEqual(engine.field.color_at(13, 0), R)

        engine.advance(499)
        self.assertEqual(engine.phase.step, ChainStep.PAUSE)
        engine.advance(1)
        self.assertIsInstance(engine.phase, Falling)
        snap = engine.snapshot()
        self.assertEqual(snap.field[13, 3], G)
        self.assertEqual(engine.field.count_filled(), 1)
        self.assertEqual((snap.chain_links, snap.erased_cells), (1, 4))
        self.assertEqual(snap.pair_seq, 2)

    def test_gravity_after_a_clear_starts_a_second_link(self):
        engine = GameEngine(pair_source=pair_cycle((Y, R)))
        engine.reset(field_with({
            (13, 1): R, (13, 2): R, (13, 3): R,
            (12, 3): B, (11, 3): B, (10, 3): B,
            (13, 4): B, (12, 4): G,
        }))
        engine.handle(Action.MOVE_LEFT)
        engine.handle(Action.MOVE_LEFT)
        engine.handle(Action.SOFT_DROP_ON)

        engine.advance(2800)
        self.assertEqual(engine.phase.link, 1)
        self.assertEqual(engine.highlight, frozenset({(13, 0), (13, 1), (13, 2), (13, 3)}))

        engine.advance(1000)
        self.assertIsInstance(engine.phase, Chaining)
        self.assertEqual((engine.phase.step, engine.phase.link), (ChainStep.HIGHLIGHT, 2))
        self.assertEqual(engine.highlight, frozenset({(11, 3), (12, 3), (13, 3), (13, 4)}))

        engine.advance(1000)
        self.assertIsInstance(engine.phase, Falling)
        self.assertEqual(engine.field.color_at(13, 0), Y)
        self.assertEqual(engine.field.color_at(13, 4), G)
        self.assertEqual(engine.field.count_filled(), 2)
        self.assertEqual((engine.chain_links, engine.erased_cells), (2, 8))

    def test_inputs_ignored_while_chaining(self):
        engine = GameEngine(pair_source=pair_cycle((G, R)))
        engine.reset(field_with({(13, 0): R, (13, 1): R, (13, 2): R}))
        engine.handle(Action.MOVE_RIGHT)
        engine.handle(Action.SOFT_DROP_ON)
        engine.advance(2800)

        for action in (Action.MOVE_LEFT, Action.ROTATE_CW, Action.ROTATE_CCW, Action.SPEED_UP):
            self.assertFalse(engine.handle(action))
        self.assertEqual(engine.speed, 2)
        # Releasing soft drop is still tracked so the next pair falls normally.
        self.assertTrue(engine.handle(Action.SOFT_DROP_OFF))

        engine.advance(1000)
        self.assertIsInstance(engine.phase, Falling)
        engine.advance(999)
        self.assertEqual(engine.piece.fall_y, 2)
        engine.advance(1)
        self.assertEqual(engine.piece.fall_y, 3)

    def test_custom_dwell_times(self):
        from puyo_rl.game import GameConfig

        config = GameConfig(reveal_pause_ms=50, clear_pause_ms=0)
        engine = GameEngine(config, pair_source=pair_cycle((G, R)))
        engine.reset(field_with({(13, 0): R, (13, 1): R, (13, 2): R}))
        engine.handle(Action.MOVE_RIGHT)
        engine.handle(Action.SOFT_DROP_ON)
        engine.advance(2800)
        self.assertEqual(engine.phase.step, ChainStep.HIGHLIGHT)
        engine.advance(50)
        self.assertIsInstance(engine.phase, Falling)


if __name__ == "__main__":
    unittest.main()
