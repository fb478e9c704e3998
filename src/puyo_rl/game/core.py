from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field as dc_field, replace
from enum import IntEnum
from typing import Callable, FrozenSet, List, Optional, Tuple

import numpy as np

from .chain import highlight_cells, settle
from .field import PLAYABLE_COLORS, Color, Coordinate, Field
from .geometry import can_descend, satellite_offset
from .phases import (
    PIECE_PHASES,
    ChainStep,
    Chaining,
    Falling,
    GameOver,
    LockedAwaitingSettle,
    LockWait,
    Phase,
    Settling,
    Waiting,
)
from .pieces import ActivePiece, Rotation, Turn, move_lateral, rotate
from .scheduler import Scheduler, TimerHandle


logger = logging.getLogger(__name__)

PairSource = Callable[[], Tuple[Color, Color]]


class Action(IntEnum):
    MOVE_LEFT = 0
    MOVE_RIGHT = 1
    ROTATE_CW = 2
    ROTATE_CCW = 3
    SOFT_DROP_ON = 4
    SOFT_DROP_OFF = 5
    SPEED_DOWN = 6
    SPEED_UP = 7
    NONE = 8


@dataclass
class GameConfig:
    rows: int = 14
    cols: int = 6
    speed_table_ms: Tuple[int, ...] = (10000, 2000, 1000, 500)
    soft_drop_interval_ms: int = 100
    lock_threshold: int = 4
    reveal_pause_ms: int = 500
    clear_pause_ms: int = 500
    group_min_size: int = 4
    spawn_column: int = 2
    spawn_row_from_bottom: int = 13
    warning_row_from_bottom: int = 13
    initial_speed: int = 2
    random_seed: Optional[int] = None

    def __post_init__(self) -> None:
        self.speed_table_ms = tuple(int(v) for v in self.speed_table_ms)
        if self.rows < 2 or self.cols < 1:
            raise ValueError(f"field must be at least 2x1, got {self.rows}x{self.cols}")
        if not self.speed_table_ms or min(self.speed_table_ms) <= 0:
            raise ValueError("speed_table_ms needs at least one positive interval")
        if self.soft_drop_interval_ms <= 0:
            raise ValueError("soft_drop_interval_ms must be positive")
        if not 0 <= self.initial_speed < len(self.speed_table_ms):
            raise ValueError(f"initial_speed {self.initial_speed} outside the speed table")
        if self.lock_threshold < 1 or self.group_min_size < 1:
            raise ValueError("lock_threshold and group_min_size must be at least 1")
        if self.reveal_pause_ms < 0 or self.clear_pause_ms < 0:
            raise ValueError("chain pauses cannot be negative")
        if not 0 <= self.spawn_column < self.cols:
            raise ValueError(f"spawn_column {self.spawn_column} outside 0..{self.cols - 1}")
        # The satellite spawns one row above the axis, so it needs a row there.
        if not 1 <= self.spawn_row_from_bottom <= self.rows - 1:
            raise ValueError(f"spawn_row_from_bottom must be within 1..{self.rows - 1}")
        if not 1 <= self.warning_row_from_bottom <= self.rows:
            raise ValueError(f"warning_row_from_bottom must be within 1..{self.rows}")

    @property
    def spawn_row(self) -> int:
        return self.rows - self.spawn_row_from_bottom

    @property
    def warning_cell(self) -> Coordinate:
        return self.rows - self.warning_row_from_bottom, self.spawn_column

    @property
    def max_speed(self) -> int:
        return len(self.speed_table_ms) - 1


@dataclass(frozen=True, eq=False)
class Snapshot:
    """Everything a presentation layer needs to draw one frame."""

    field: np.ndarray
    phase: Phase
    piece: Optional[ActivePiece]
    highlight: FrozenSet[Coordinate] = dc_field(default_factory=frozenset)
    lock_counter: int = 0
    speed: int = 0
    soft_drop: bool = False
    pair_seq: int = 0
    chain_links: int = 0
    erased_cells: int = 0
    time_ms: int = 0

    @property
    def phase_name(self) -> str:
        return self.phase.name


class GameEngine:
    """Single owner of the field, the falling pair and the game phase.

    Time only moves through ``advance``; inputs arrive through ``handle``.
    Presentation layers ``subscribe`` and receive a ``Snapshot`` after every
    change.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        pair_source: Optional[PairSource] = None,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        self.config = config or GameConfig()
        self.rng = random.Random(self.config.random_seed)
        self._pair_source = pair_source or self._random_pair
        self.scheduler = scheduler or Scheduler()
        self._sinks: List[Callable[[Snapshot], None]] = []
        self._fall_timer: Optional[TimerHandle] = None
        self._chain_timer: Optional[TimerHandle] = None

        self.field = Field.empty(self.config.rows, self.config.cols)
        self.piece: Optional[ActivePiece] = None
        self.phase: Phase = Waiting()
        self.lock_counter = 0
        self.speed = self.config.initial_speed
        self.soft_drop = False
        self.highlight: FrozenSet[Coordinate] = frozenset()
        self.pair_seq = 0
        self.chain_links = 0
        self.erased_cells = 0
        self.reset()

    # ---------- Lifecycle ----------
    def reset(self, field: Optional[Field] = None) -> None:
        """Start a new game, optionally on a pre-filled field."""
        if field is not None and (field.rows, field.cols) != (self.config.rows, self.config.cols):
            raise ValueError(
                f"field is {field.rows}x{field.cols}, config expects {self.config.rows}x{self.config.cols}"
            )
        self._cancel_timers()
        self.field = field.copy() if field is not None else Field.empty(self.config.rows, self.config.cols)
        self.piece = None
        self.lock_counter = 0
        self.speed = self.config.initial_speed
        self.soft_drop = False
        self.highlight = frozenset()
        self.pair_seq = 0
        self.chain_links = 0
        self.erased_cells = 0
        logger.info("new game on a %dx%d field", self.config.rows, self.config.cols)
        self._set_phase(Waiting())
        self._spawn()

    def subscribe(self, sink: Callable[[Snapshot], None]) -> Callable[[], None]:
        """Register a presentation sink; returns a function that removes it."""
        self._sinks.append(sink)

        def unsubscribe() -> None:
            if sink in self._sinks:
                self._sinks.remove(sink)

        return unsubscribe

    def advance(self, elapsed_ms: int) -> None:
        self.scheduler.advance(elapsed_ms)

    @property
    def game_over(self) -> bool:
        return isinstance(self.phase, GameOver)

    @property
    def fall_interval_ms(self) -> int:
        if self.soft_drop:
            return self.config.soft_drop_interval_ms
        return self.config.speed_table_ms[self.speed]

    def snapshot(self) -> Snapshot:
        return Snapshot(
            field=self.field.to_array(),
            phase=self.phase,
            piece=self.piece,
            highlight=self.highlight,
            lock_counter=self.lock_counter,
            speed=self.speed,
            soft_drop=self.soft_drop,
            pair_seq=self.pair_seq,
            chain_links=self.chain_links,
            erased_cells=self.erased_cells,
            time_ms=self.scheduler.now_ms,
        )

    # ---------- Input ----------
    def handle(self, action: Action) -> bool:
        """Apply one input action. Returns True if the game state changed."""
        action = Action(action)
        if self.game_over or action == Action.NONE:
            return False
        if action == Action.SOFT_DROP_ON:
            return self.set_soft_drop(True)
        if action == Action.SOFT_DROP_OFF:
            return self.set_soft_drop(False)
        if not isinstance(self.phase, PIECE_PHASES):
            return False
        if action == Action.MOVE_LEFT:
            return self.move(-1)
        if action == Action.MOVE_RIGHT:
            return self.move(1)
        if action == Action.ROTATE_CW:
            return self.rotate(Turn.CW)
        if action == Action.ROTATE_CCW:
            return self.rotate(Turn.CCW)
        if action == Action.SPEED_DOWN:
            return self.set_speed(self.speed - 1)
        if action == Action.SPEED_UP:
            return self.set_speed(self.speed + 1)
        return False

    def move(self, direction: int) -> bool:
        if self.piece is None or not isinstance(self.phase, PIECE_PHASES):
            return False
        moved = move_lateral(self.piece, self.field, direction)
        return self._replace_piece(moved)

    def rotate(self, turn: int) -> bool:
        if self.piece is None or not isinstance(self.phase, PIECE_PHASES):
            return False
        rotated = rotate(self.piece, self.field, turn)
        return self._replace_piece(rotated)

    def set_soft_drop(self, held: bool) -> bool:
        if self.game_over or held == self.soft_drop:
            return False
        self.soft_drop = held
        if isinstance(self.phase, PIECE_PHASES):
            self._arm_fall_timer()
        self._publish()
        return True

    def set_speed(self, speed: int) -> bool:
        speed = max(0, min(self.config.max_speed, int(speed)))
        if self.game_over or speed == self.speed:
            return False
        self.speed = speed
        logger.debug("speed set to %d (%d ms)", speed, self.config.speed_table_ms[speed])
        if isinstance(self.phase, PIECE_PHASES):
            self._arm_fall_timer()
        self._publish()
        return True

    def _replace_piece(self, piece: ActivePiece) -> bool:
        if piece is self.piece:
            return False
        self.piece = piece
        self._publish()
        return True

    # ---------- Spawn ----------
    def _random_pair(self) -> Tuple[Color, Color]:
        return self.rng.choice(PLAYABLE_COLORS), self.rng.choice(PLAYABLE_COLORS)

    def _spawn(self) -> None:
        cfg = self.config
        row, col = cfg.spawn_row, cfg.spawn_column
        d_row, d_col = satellite_offset(Rotation.UP)
        if self.field.occupied(row, col) or self.field.occupied(row + d_row, col + d_col):
            logger.info("spawn cell blocked after %d pairs, game over", self.pair_seq)
            self._set_phase(GameOver())
            return
        self.piece = ActivePiece(colors=tuple(Color(c) for c in self._pair_source()), fall_y=row * 2, col=col)
        self.lock_counter = 0
        self.pair_seq += 1
        logger.debug("spawned pair #%d %s", self.pair_seq, self.piece.colors)
        self._set_phase(Falling())
        self._arm_fall_timer()

    # ---------- Fall scheduler ----------
    def _arm_fall_timer(self) -> None:
        if self._fall_timer is not None:
            self._fall_timer.cancel()
        self._fall_timer = self.scheduler.call_later(self.fall_interval_ms, self._on_fall_tick)

    def _on_fall_tick(self) -> None:
        self._fall_timer = None
        if self.piece is None or not isinstance(self.phase, PIECE_PHASES):
            return
        descend = can_descend(self.piece, self.field)
        if not descend:
            self.lock_counter = min(self.lock_counter + 1, self.config.lock_threshold)
        if self.lock_counter >= self.config.lock_threshold:
            logger.debug("pair #%d locked at fall_y=%d col=%d", self.pair_seq, self.piece.fall_y, self.piece.col)
            self._set_phase(LockedAwaitingSettle())
            self._chain_timer = self.scheduler.call_later(0, self._settle_locked)
            return
        if descend:
            self.piece = replace(self.piece, fall_y=self.piece.fall_y + 1)
        # The counter is sticky: a successful descent does not clear it.
        self._set_phase(LockWait(self.lock_counter) if self.lock_counter else Falling())
        self._arm_fall_timer()

    # ---------- Settle and chain ----------
    def _settle_locked(self) -> None:
        self._chain_timer = None
        if not isinstance(self.phase, LockedAwaitingSettle) or self.piece is None:
            return
        piece, self.piece = self.piece, None
        self.chain_links = 0
        self.erased_cells = 0
        self._set_phase(Settling())
        settled = settle(self.field, piece)
        if settled is None:
            logger.warning("lock conflict for pair #%d, discarding it", self.pair_seq)
            self._set_phase(Waiting())
            self._spawn()
            return
        self.field = settled
        self._publish()
        row, col = self.config.warning_cell
        if self.field.occupied(row, col):
            logger.info("warning cell (%d, %d) filled, game over", row, col)
            self._set_phase(GameOver())
            return
        self._scan_chain(1)

    def _scan_chain(self, link: int) -> None:
        groups = tuple(self.field.find_groups(self.config.group_min_size))
        if not groups:
            self.highlight = frozenset()
            if self.chain_links:
                logger.info("chain finished: %d link(s), %d cells", self.chain_links, self.erased_cells)
            self._set_phase(Waiting())
            self._spawn()
            return
        self.chain_links = link
        self.highlight = highlight_cells(groups)
        logger.debug("chain link %d: %d group(s), %d cells", link, len(groups), len(self.highlight))
        self._set_phase(Chaining(groups, ChainStep.HIGHLIGHT, link))
        self._chain_timer = self.scheduler.call_later(self.config.reveal_pause_ms, self._chain_pause)

    def _chain_pause(self) -> None:
        phase = self.phase
        if not isinstance(phase, Chaining):
            return
        self.highlight = frozenset()
        self._set_phase(Chaining(phase.groups, ChainStep.PAUSE, phase.link))
        self._chain_timer = self.scheduler.call_later(self.config.clear_pause_ms, self._chain_erase)

    def _chain_erase(self) -> None:
        self._chain_timer = None
        phase = self.phase
        if not isinstance(phase, Chaining):
            return
        self._set_phase(Chaining(phase.groups, ChainStep.ERASE, phase.link))
        self.field = self.field.erase(phase.groups)
        self.erased_cells += sum(len(group) for group in phase.groups)
        self._set_phase(Chaining(phase.groups, ChainStep.GRAVITY_THEN_RESCAN, phase.link))
        self.field = self.field.apply_gravity()
        self._publish()
        self._scan_chain(phase.link + 1)

    # ---------- Plumbing ----------
    def _set_phase(self, phase: Phase) -> None:
        if phase != self.phase:
            logger.debug("phase %s -> %s", self.phase.name, phase.name)
        self.phase = phase
        self._publish()

    def _publish(self) -> None:
        if not self._sinks:
            return
        snap = self.snapshot()
        for sink in list(self._sinks):
            sink(snap)

    def _cancel_timers(self) -> None:
        for handle in (self._fall_timer, self._chain_timer):
            if handle is not None:
                handle.cancel()
        self._fall_timer = None
        self._chain_timer = None
