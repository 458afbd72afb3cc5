from __future__ import annotations

from typing import Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces


class FlattenDiscreteActionWrapper(gym.ActionWrapper):
    """Expose the (y, x, rotation) placement grid as a single Discrete(N) action.

    Indices are C-order over (y, x, r), so ``get_action_mask()`` is simply the
    env's (h, w, 4) mask raveled.
    """

    def __init__(self, env: gym.Env):
        super().__init__(env)
        if not isinstance(env.action_space, spaces.MultiDiscrete):
            raise TypeError("FlattenDiscreteActionWrapper needs a MultiDiscrete action space")
        self.dims: Tuple[int, ...] = tuple(int(n) for n in env.action_space.nvec)
        self.action_space = spaces.Discrete(int(np.prod(self.dims)))

    def _unflatten(self, idx: int) -> Tuple[int, int, int]:
        y, x, r = np.unravel_index(int(idx), self.dims)
        return int(y), int(x), int(r)

    def flatten(self, y: int, x: int, r: int) -> int:
        return int(np.ravel_multi_index((y, x, r), self.dims))

    def action(self, action: int):  # type: ignore[override]
        return np.array(self._unflatten(action), dtype=np.int64)

    def get_action_mask(self) -> np.ndarray:
        return self.env.unwrapped.get_action_mask().reshape(-1)


class ResampleInvalidActionWrapper(gym.Wrapper):
    """Swap a masked-out Discrete action for a uniformly drawn legal one.

    Lets vanilla PPO train without mask support. Leaves the action alone when
    nothing is legal so the env can report the invalid placement.
    """

    def step(self, action):  # type: ignore[override]
        if isinstance(self.action_space, spaces.Discrete):
            mask = self.get_action_mask()
            idx = int(action)
            if not (0 <= idx < mask.shape[0] and mask[idx]):
                legal = np.flatnonzero(mask)
                if legal.size:
                    action = int(self.np_random.choice(legal))
        return self.env.step(action)

    def get_action_mask(self) -> np.ndarray:
        inner = self.env
        if isinstance(inner, FlattenDiscreteActionWrapper):
            return inner.get_action_mask()
        return inner.unwrapped.get_action_mask().reshape(-1)
