import numpy as np
import gymnasium as gym

import tetrocube.env  # noqa: F401
from tetrocube.env.tetrocube_env import TetroCubeEnv
from tetrocube.env.wrappers import FlattenDiscreteActionWrapper, ResampleInvalidActionWrapper
from tetrocube.game import GameConfig, PieceKind, QueuedPiece


def _force_next(env, kind):
    env.unwrapped.game.next_pieces[0] = QueuedPiece(kind, 0)


def test_reset_observation_matches_space():
    env = TetroCubeEnv(GameConfig(random_seed=0))
    obs, info = env.reset(seed=0)
    assert obs["grid"].shape == (7, 7)
    assert obs["next"].shape == (2,)
    assert obs["score"][0] == 20.0
    assert env.observation_space.contains(obs)
    assert info["action_mask"].shape == (7, 7, 4)
    assert info["action_mask"].any()


def test_legal_step_places_queued_piece():
    env = TetroCubeEnv(GameConfig(random_seed=0))
    obs, info = env.reset(seed=0)
    y, x, r = np.argwhere(info["action_mask"])[0]
    obs, reward, terminated, truncated, info = env.step((y, x, r))
    assert info["status"] == "ok"
    assert not terminated and not truncated
    assert np.count_nonzero(obs["grid"]) > 0
    assert reward == info["reward_components"]["score"]


def test_invalid_step_is_penalized():
    env = TetroCubeEnv(GameConfig(random_seed=0))
    env.reset(seed=0)
    _force_next(env, PieceKind.O)
    assert env.get_action_mask()[:, :, 0].sum() == 36
    obs, reward, terminated, truncated, info = env.step((6, 6, 0))
    assert info["status"] == "blocked"
    assert reward == -1.0
    assert np.count_nonzero(obs["grid"]) == 0


def test_truncates_at_step_limit():
    env = TetroCubeEnv(GameConfig(random_seed=0, max_episode_steps=2))
    env.reset(seed=0)
    _force_next(env, PieceKind.O)
    env.step((6, 6, 0))
    *_, truncated, _ = env.step((6, 6, 0))
    assert truncated


def test_registered_ids():
    env = gym.make("TetroCube-8x8-v0")
    obs, info = env.reset(seed=1)
    assert obs["grid"].shape == (8, 8)
    assert env.action_space.nvec.tolist() == [8, 8, 4]
    env.close()


def test_rgb_render():
    env = TetroCubeEnv(render_mode="rgb_array")
    env.reset(seed=0)
    frame = env.render()
    assert frame.shape == (7 * 12, 7 * 12, 3)
    assert frame.dtype == np.uint8


def test_flatten_wrapper_index_order():
    env = FlattenDiscreteActionWrapper(TetroCubeEnv(GameConfig(random_seed=0)))
    assert env.action_space.n == 7 * 7 * 4
    assert env._unflatten(0) == (0, 0, 0)
    assert env._unflatten(1) == (0, 0, 1)
    assert env._unflatten(4) == (0, 1, 0)
    assert env._unflatten(28) == (1, 0, 0)
    env.reset(seed=0)
    mask = env.get_action_mask()
    assert mask.shape == (196,)
    assert np.array_equal(mask, env.unwrapped.get_action_mask().reshape(-1))


def test_resample_wrapper_replaces_invalid_action():
    env = ResampleInvalidActionWrapper(FlattenDiscreteActionWrapper(TetroCubeEnv(GameConfig(random_seed=0))))
    env.reset(seed=0)
    _force_next(env, PieceKind.O)
    invalid = (6 * 7 + 6) * 4
    assert not env.get_action_mask()[invalid]
    _, _, _, _, info = env.step(invalid)
    assert info["status"] == "ok"


def test_random_agent_smoke():
    from tetrocube.rl.random_agent import run_random

    assert isinstance(run_random(steps=20, seed=0), float)
