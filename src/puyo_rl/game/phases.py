"""Game phases as a closed set of tagged records."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Tuple, Union

from .field import Group


class ChainStep(Enum):
    HIGHLIGHT = "highlight"
    PAUSE = "pause"
    ERASE = "erase"
    GRAVITY_THEN_RESCAN = "gravity_then_rescan"


@dataclass(frozen=True)
class Waiting:
    name: ClassVar[str] = "waiting"


@dataclass(frozen=True)
class Falling:
    name: ClassVar[str] = "falling"


@dataclass(frozen=True)
class LockWait:
    count: int
    name: ClassVar[str] = "lock_wait"


@dataclass(frozen=True)
class LockedAwaitingSettle:
    name: ClassVar[str] = "locked"


@dataclass(frozen=True)
class Settling:
    name: ClassVar[str] = "settling"


@dataclass(frozen=True)
class Chaining:
    groups: Tuple[Group, ...]
    step: ChainStep
    link: int  # 1-based position of this clear within the chain
    name: ClassVar[str] = "chaining"


@dataclass(frozen=True)
class GameOver:
    name: ClassVar[str] = "game_over"


Phase = Union[Waiting, Falling, LockWait, LockedAwaitingSettle, Settling, Chaining, GameOver]

# Phases in which the pair is under player control.
PIECE_PHASES = (Falling, LockWait)

PHASE_NAMES: Tuple[str, ...] = (
    Waiting.name,
    Falling.name,
    LockWait.name,
    LockedAwaitingSettle.name,
    Settling.name,
    Chaining.name,
    GameOver.name,
)
