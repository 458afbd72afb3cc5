"""Gymnasium environments for TetroCube."""

from __future__ import annotations

from gymnasium.envs.registration import register

from tetrocube.game import GameConfig

# Default 7x7 board
register(
    id="TetroCube-7x7-v0",
    entry_point="tetrocube.env.tetrocube_env:TetroCubeEnv",
)

# Larger 8x8 configuration
register(
    id="TetroCube-8x8-v0",
    entry_point="tetrocube.env.tetrocube_env:TetroCubeEnv",
    kwargs={"config": GameConfig(width=8, height=8)},
)

__all__ = ["TetroCube-7x7-v0", "TetroCube-8x8-v0"]
