"""Gymnasium environments for Puyo RL."""

from __future__ import annotations

from gymnasium.envs.registration import register

# Register the default 14x6 real-time environment
register(
    id="Puyo-14x6-v0",
    entry_point="puyo_rl.env.puyo_env:PuyoEnv",
)

__all__: list = []
