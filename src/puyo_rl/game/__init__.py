"""Game module for Puyo RL.

Exports the simulation engine and its building blocks:
- Field, Color, Group: settled cells, gravity and group detection
- ActivePiece, move_lateral, rotate: the falling pair and its kick resolution
- Scheduler: virtual clock driving fall ticks and chain pauses
- GameEngine, GameConfig, Action, Snapshot: the phase controller and its I/O
"""

from .field import Color, Field, Group, PLAYABLE_COLORS
from .geometry import can_descend, covered_rows, satellite_offset
from .pieces import ActivePiece, Rotation, Turn, move_lateral, rotate
from .phases import (
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
from .scheduler import Scheduler, TimerHandle
from .core import Action, GameConfig, GameEngine, Snapshot

__all__ = [
    "Color",
    "Field",
    "Group",
    "PLAYABLE_COLORS",
    "can_descend",
    "covered_rows",
    "satellite_offset",
    "ActivePiece",
    "Rotation",
    "Turn",
    "move_lateral",
    "rotate",
    "ChainStep",
    "Chaining",
    "Falling",
    "GameOver",
    "LockedAwaitingSettle",
    "LockWait",
    "Phase",
    "Settling",
    "Waiting",
    "Scheduler",
    "TimerHandle",
    "Action",
    "GameConfig",
    "GameEngine",
    "Snapshot",
]
