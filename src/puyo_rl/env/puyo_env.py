from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from puyo_rl.game import Action, Chaining, ChainStep, GameConfig, GameEngine, Snapshot
from puyo_rl.game.core import PairSource
from puyo_rl.game.phases import PHASE_NAMES


_RGB = {
    0: (30, 30, 36),
    1: (230, 60, 60),    # red
    2: (70, 200, 90),    # green
    3: (70, 110, 240),   # blue
    4: (240, 210, 60),   # yellow
}


def _piece_vector(snapshot: Snapshot) -> np.ndarray:
    piece = snapshot.piece
    if piece is None:
        return np.full((5,), -1, dtype=np.int16)
    return np.array(
        [int(piece.satellite_color), int(piece.axis_color), piece.fall_y, piece.col, piece.rotation],
        dtype=np.int16,
    )


class PuyoEnv(gym.Env):
    """Real-time pair puzzle exposed as a gymnasium environment.

    Each step applies one abstract input action and then advances the game
    clock by ``step_ms`` milliseconds, so fall ticks and chain pauses play out
    between agent decisions exactly as they would for a human player.
    """

    metadata = {"render_modes": ["human", "rgb_array"], "render_fps": 30}

    def __init__(self, config: Optional[GameConfig] = None, render_mode: Optional[str] = None,
                 pair_source: Optional[PairSource] = None,
                 step_ms: int = 100,
                 max_episode_steps: int = 20000,
                 reward_weights: Optional[Dict[str, float]] = None,
                 step_penalty: float = 0.0,
                 terminal_penalty: float = -1.0) -> None:
        super().__init__()
        if step_ms <= 0:
            raise ValueError(f"step_ms must be positive, got {step_ms}")
        self.config = config or GameConfig()
        self._pair_source = pair_source
        self.game = GameEngine(self.config, pair_source=pair_source)
        self.render_mode = render_mode
        self.step_ms = int(step_ms)
        self.max_episode_steps = int(max_episode_steps)

        self.step_penalty = float(step_penalty)
        self.terminal_penalty = float(terminal_penalty)
        self.reward_weights: Dict[str, float] = {
            "erased": 1.0,     # per cell erased
            "links": 2.0,      # per chain link beyond the first
        }
        if reward_weights:
            self.reward_weights.update({k: float(v) for k, v in reward_weights.items()})

        rows, cols = self.config.rows, self.config.cols
        self.observation_space = spaces.Dict(
            {
                "field": spaces.Box(low=0, high=4, shape=(rows, cols), dtype=np.int8),
                # satellite color, axis color, fall_y, col, rotation; -1 when no pair
                "piece": spaces.Box(low=-1, high=max(2 * rows, 4), shape=(5,), dtype=np.int16),
                "phase": spaces.Discrete(len(PHASE_NAMES)),
                "lock_counter": spaces.Discrete(self.config.lock_threshold + 1),
                "speed": spaces.Discrete(len(self.config.speed_table_ms)),
            }
        )
        self.action_space = spaces.Discrete(len(Action))

        self._steps = 0
        self._erased = 0
        self._links = 0
        self._last_snapshot: Optional[Snapshot] = None
        self._unsubscribe = self.game.subscribe(self._on_snapshot)

    def _on_snapshot(self, snapshot: Snapshot) -> None:
        phase = snapshot.phase
        if isinstance(phase, Chaining) and phase.step == ChainStep.ERASE:
            self._erased += sum(len(group) for group in phase.groups)
            if phase.link > 1:
                self._links += 1

    def _get_obs(self) -> Dict[str, Any]:
        snap = self.game.snapshot()
        self._last_snapshot = snap
        return {
            "field": snap.field.astype(np.int8),
            "piece": _piece_vector(snap),
            "phase": PHASE_NAMES.index(snap.phase_name),
            "lock_counter": int(snap.lock_counter),
            "speed": int(snap.speed),
        }

    def _get_info(self) -> Dict[str, Any]:
        snap = self._last_snapshot or self.game.snapshot()
        return {
            "phase": snap.phase_name,
            "pair_seq": snap.pair_seq,
            "time_ms": snap.time_ms,
            "steps": self._steps,
        }

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        super().reset(seed=seed)
        if seed is not None:
            self.config = replace(self.config, random_seed=seed)
            self._unsubscribe()
            self.game = GameEngine(self.config, pair_source=self._pair_source)
            self._unsubscribe = self.game.subscribe(self._on_snapshot)
        else:
            self.game.reset()
        self._steps = 0
        self._erased = 0
        self._links = 0
        obs = self._get_obs()
        return obs, self._get_info()

    def step(self, action):
        if not self.action_space.contains(action):
            raise ValueError(f"action {action!r} is outside {self.action_space}")
        self._erased = 0
        self._links = 0

        self.game.handle(Action(int(action)))
        self.game.advance(self.step_ms)
        self._steps += 1

        reward_components: Dict[str, float] = {
            "erased": self.reward_weights["erased"] * float(self._erased),
            "links": self.reward_weights["links"] * float(self._links),
            "step": self.step_penalty,
        }
        terminated = bool(self.game.game_over)
        truncated = self._steps >= self.max_episode_steps
        if terminated:
            reward_components["terminal"] = self.terminal_penalty
        reward = float(sum(reward_components.values()))

        obs = self._get_obs()
        info = self._get_info()
        info["reward_components"] = reward_components
        return obs, reward, terminated, truncated, info

    def render(self) -> Optional[np.ndarray]:
        if self.render_mode == "rgb_array":
            snap = self._last_snapshot or self.game.snapshot()
            grid = snap.field.copy()
            if snap.piece is not None:
                for row, col, color in snap.piece.landing_cells():
                    if 0 <= row < grid.shape[0] and 0 <= col < grid.shape[1]:
                        grid[row, col] = int(color)
            cell = 12
            h, w = grid.shape
            img = np.zeros((h * cell, w * cell, 3), dtype=np.uint8)
            for y in range(h):
                for x in range(w):
                    color = _RGB.get(int(grid[y, x]), (200, 200, 200))
                    if (y, x) in snap.highlight:
                        color = (255, 255, 255)
                    img[y * cell : (y + 1) * cell, x * cell : (x + 1) * cell, :] = color
            return img
        # human rendering delegated to the pygame front end; noop
        return None

    def close(self) -> None:
        self._unsubscribe()
