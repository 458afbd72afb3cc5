import sys, os

import pytest

# Ensure src is on path for test imports
ROOT = os.path.dirname(os.path.dirname(__file__))
SRC = os.path.join(ROOT, 'src')
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from tetrocube.game import GameConfig, GameGrid, TetroCubeGame


@pytest.fixture
def grid():
    return GameGrid(7, 7)


@pytest.fixture
def game():
    return TetroCubeGame(GameConfig(random_seed=0))
