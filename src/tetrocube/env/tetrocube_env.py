from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from tetrocube.game import GameConfig, PieceColor, PieceKind, TetroCubeGame
from tetrocube.game.pieces import shape_for, shape_offsets


def _compute_action_mask(game: TetroCubeGame) -> np.ndarray:
    """Boolean mask [y, x, rotation] of legal placements for the queued piece."""
    h, w = game.grid.height, game.grid.width
    mask = np.zeros((h, w, 4), dtype=np.bool_)
    if game.is_game_over():
        return mask
    kind = game.next_pieces[0].kind
    for r in range(4):
        offsets = shape_offsets(shape_for(kind, r))
        for y in range(h):
            for x in range(w):
                mask[y, x, r] = game.grid.can_place_cells((y + dr, x + dc) for dr, dc in offsets)
    return mask


class TetroCubeEnv(gym.Env):
    metadata = {"render_modes": ["rgb_array"], "render_fps": 30}

    def __init__(self, config: Optional[GameConfig] = None, render_mode: Optional[str] = None,
                 invalid_action_penalty: float = -1.0,
                 step_penalty: float = 0.0,
                 terminal_penalty: float = 0.0) -> None:
        super().__init__()
        self.game = TetroCubeGame(config)
        self.render_mode = render_mode

        # Reward shaping parameters
        self.invalid_action_penalty = float(invalid_action_penalty)
        self.step_penalty = float(step_penalty)
        self.terminal_penalty = float(terminal_penalty)

        h, w = self.game.grid.height, self.game.grid.width
        k = self.game.config.preview_size

        # Observation: color grid, queued piece kinds, current score
        self.observation_space = spaces.Dict(
            {
                "grid": spaces.Box(low=0, high=len(PieceColor), shape=(h, w), dtype=np.int8),
                "next": spaces.Box(low=0, high=len(PieceKind), shape=(k,), dtype=np.int8),
                "score": spaces.Box(low=0, high=np.inf, shape=(1,), dtype=np.float32),
            }
        )

        # Action: (y, x, rotation) for the queued piece
        self.action_space = spaces.MultiDiscrete((h, w, 4))

        self._last_obs: Optional[Dict[str, Any]] = None
        self._steps = 0

    def _get_obs(self) -> Dict[str, Any]:
        k = self.game.config.preview_size
        upcoming = np.zeros((k,), dtype=np.int8)
        for i, queued in enumerate(self.game.get_next_pieces()[:k]):
            upcoming[i] = int(queued.kind)
        return {
            "grid": self.game.grid.color_map(),
            "next": upcoming,
            "score": np.array([self.game.get_score()], dtype=np.float32),
        }

    def _get_info(self) -> Dict[str, Any]:
        return {
            "action_mask": _compute_action_mask(self.game),
            "score": self.game.get_score(),
            "level": self.game.get_level(),
            "lines_cleared": self.game.get_lines_cleared(),
            "steps": self._steps,
        }

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        super().reset(seed=seed)
        self.game.reset(seed)
        self._steps = 0
        obs = self._get_obs()
        info = self._get_info()
        self._last_obs = obs
        return obs, info

    def step(self, action: np.ndarray | Tuple[int, int, int]):
        y, x, r = map(int, action)

        score_before = self.game.get_score()
        result = self.game.request_placement(None, r, x, y)

        reward_components: Dict[str, float] = {}
        if result.report is not None:
            reward_components["score"] = float(self.game.get_score() - score_before)
        else:
            reward_components["invalid"] = self.invalid_action_penalty
        reward_components["step"] = self.step_penalty

        terminated = bool(self.game.is_game_over())
        self._steps += 1
        truncated = self._steps >= self.game.config.max_episode_steps
        if terminated:
            reward_components["terminal"] = self.terminal_penalty

        reward = float(sum(reward_components.values()))

        obs = self._get_obs()
        info = self._get_info()
        info["reward_components"] = reward_components
        info["status"] = result.status.value
        self._last_obs = obs
        return obs, reward, terminated, truncated, info

    def get_action_mask(self) -> np.ndarray:
        return _compute_action_mask(self.game)

    def render(self) -> Optional[np.ndarray]:
        if self.render_mode != "rgb_array":
            return None
        from tetrocube.visualization.palette import palette_lut

        colors = self._last_obs["grid"] if self._last_obs is not None else self.game.grid.color_map()
        # 12px per cell
        frame = palette_lut()[colors.astype(np.intp)]
        return np.repeat(np.repeat(frame, 12, axis=0), 12, axis=1)

    def close(self) -> None:
        pass
