from __future__ import annotations

import argparse
import os
from typing import Callable, List

import numpy as np
import gymnasium as gym

import tetrocube.env  # noqa: F401  (registers environments)
from tetrocube.env.wrappers import FlattenDiscreteActionWrapper, ResampleInvalidActionWrapper


def make_env(env_id: str, seed: int | None = None) -> gym.Env:
    # Discrete actions so the policy head and the flat mask share one index
    env = ResampleInvalidActionWrapper(FlattenDiscreteActionWrapper(gym.make(env_id)))
    if seed is not None:
        env.reset(seed=seed)
    return env


def _env_factories(env_id: str, n_envs: int, seed: int, masked: bool) -> List[Callable[[], gym.Env]]:
    def factory(rank: int) -> Callable[[], gym.Env]:
        def thunk() -> gym.Env:
            env = make_env(env_id, seed=seed + rank)
            if masked:
                from sb3_contrib.common.wrappers import ActionMasker

                env = ActionMasker(env, lambda e: e.get_action_mask())
            return env
        return thunk

    return [factory(rank) for rank in range(n_envs)]


def build_model(algo: str, env_id: str, n_envs: int, seed: int, logdir: str):
    from stable_baselines3.common.vec_env import SubprocVecEnv, VecMonitor

    masked = algo == "maskable"
    vec_env = VecMonitor(SubprocVecEnv(_env_factories(env_id, n_envs, seed, masked)))
    if masked:
        from sb3_contrib import MaskablePPO as Algo
    else:
        from stable_baselines3 import PPO as Algo
    return Algo(policy="MultiInputPolicy", env=vec_env, verbose=1, seed=seed, tensorboard_log=logdir)


def evaluate(model, env_id: str, episodes: int, seed: int, masked: bool) -> float:
    """Greedy rollouts on a fresh env; returns the mean final engine score."""
    env = make_env(env_id)
    scores = []
    for ep in range(episodes):
        obs, info = env.reset(seed=seed + 10_000 + ep)
        done = False
        while not done:
            if masked:
                action, _ = model.predict(obs, deterministic=True, action_masks=env.get_action_mask())
            else:
                action, _ = model.predict(obs, deterministic=True)
            obs, _, terminated, truncated, info = env.step(int(action))
            done = terminated or truncated
        scores.append(info["score"])
        print(f"eval episode {ep}: score={info['score']} lines={info['lines_cleared']} steps={info['steps']}")
    env.close()
    return float(np.mean(scores)) if scores else 0.0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser()
    p.add_argument("--algo", choices=["ppo", "maskable"], default="maskable")
    p.add_argument("--env", choices=["7x7", "8x8"], default="7x7")
    p.add_argument("--timesteps", type=int, default=200_000)
    p.add_argument("--n_envs", type=int, default=4)
    p.add_argument("--seed", type=int, default=0)
    p.add_argument("--eval_episodes", type=int, default=5)
    p.add_argument("--logdir", type=str, default="./logs/tetrocube")
    p.add_argument("--save_path", type=str, default="./models/tetrocube_ppo.zip")
    return p


def main() -> None:
    args = build_parser().parse_args()
    env_id = f"TetroCube-{args.env}-v0"

    model = build_model(args.algo, env_id, args.n_envs, args.seed, args.logdir)
    model.learn(total_timesteps=args.timesteps)

    os.makedirs(os.path.dirname(args.save_path) or ".", exist_ok=True)
    model.save(args.save_path)
    print(f"Saved model to {args.save_path}")

    if args.eval_episodes > 0:
        mean_score = evaluate(model, env_id, args.eval_episodes, args.seed, args.algo == "maskable")
        print(f"Mean eval score over {args.eval_episodes} episodes: {mean_score:.1f}")


if __name__ == "__main__":  # pragma: no cover
    main()
