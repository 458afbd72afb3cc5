from __future__ import annotations

import argparse

import numpy as np
import gymnasium as gym

import tetrocube.env  # noqa: F401  (registers environments)


def run_random(steps: int = 200, env_id: str = "TetroCube-7x7-v0", seed: int | None = None) -> float:
    env = gym.make(env_id)
    rng = np.random.default_rng(seed)
    obs, info = env.reset(seed=seed)
    total_reward = 0.0
    episodes = 0
    for _ in range(steps):
        # Prefer legal placements if any exist
        legal = np.argwhere(info["action_mask"])
        if len(legal):
            action = legal[rng.integers(len(legal))]
        else:
            action = env.action_space.sample()
        obs, reward, terminated, truncated, info = env.step(action)
        total_reward += float(reward)
        if terminated or truncated:
            episodes += 1
            obs, info = env.reset()
    env.close()
    print(f"Random agent total reward: {total_reward:.2f} over {episodes} finished episodes")
    return total_reward


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser()
    p.add_argument("--steps", type=int, default=200)
    p.add_argument("--env", choices=["7x7", "8x8"], default="7x7")
    p.add_argument("--seed", type=int, default=None)
    return p


if __name__ == "__main__":  # pragma: no cover
    args = build_parser().parse_args()
    run_random(args.steps, f"TetroCube-{args.env}-v0", args.seed)
